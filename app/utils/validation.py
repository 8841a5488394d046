from functools import wraps
from flask import request


def validate_schema(schema):
    """Parse the JSON body into ``schema`` and expose it as ``request.validated_data``.

    A missing or non-JSON body is validated as ``{}``. Pydantic errors
    propagate to the errors blueprint, which answers 400 with the details.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            body = request.get_json(silent=True)
            request.validated_data = schema.model_validate(body if body is not None else {})
            return fn(*args, **kwargs)
        return wrapper

    return decorator
