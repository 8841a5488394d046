import json
import logging
from flask import Blueprint
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException
from app.services.exceptions import CartError
from app.utils.responses import error, internal_error_response, validation_error_response

errors_bp = Blueprint("errors_bp", __name__)

@errors_bp.app_errorhandler(CartError)
def handle_cart_error(e):
    logging.getLogger("app.cart").info(
        {"event": "cart.rejected", "reason": type(e).__name__, "detail": e.message}
    )
    return error(e.message, status=e.status, reason=type(e).__name__)

@errors_bp.app_errorhandler(PydanticValidationError)
def handle_validation_error(e):
    return validation_error_response(json.loads(e.json()))

@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code, code=e.code)

@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return internal_error_response()
