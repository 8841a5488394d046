from flask import jsonify


def ok(data=None, message="success", status=200, **extra):
    payload = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def error(message, status=400, code=None, **extra):
    payload = {
        "success": False,
        "error": message,
        "code": code or status,
    }
    payload.update(extra)
    return jsonify(payload), status


def validation_error_response(details):
    return error("Invalid request body", status=400, details=details)


def internal_error_response():
    return error("An unexpected error occurred, please try again later", status=500)
