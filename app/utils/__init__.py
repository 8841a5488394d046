from .responses import ok, error, validation_error_response, internal_error_response
from .auth import user_scoped, resolve_user_id
from .validation import validate_schema
from .db import transactional

__all__ = [
    'ok',
    'error',
    'validation_error_response',
    'internal_error_response',
    'user_scoped',
    'resolve_user_id',
    'validate_schema',
    'transactional',
]
