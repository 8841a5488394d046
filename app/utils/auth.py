from functools import wraps
from flask import current_app, request, g
from app.services.exceptions import ValidationError

USER_ID_HEADER = "X-User-ID"
MAX_USER_ID_LENGTH = 100


def resolve_user_id():
    """Return the caller-supplied cart owner, or the guest sentinel."""
    guest = current_app.config.get("GUEST_USER_ID", "guest")
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    return user_id or guest


def user_scoped(func):
    """Bind the request to a cart owner taken from the X-User-ID header.

    Identity is issued by an external provider; this only scopes cart state.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        user_id = resolve_user_id()
        if len(user_id) > MAX_USER_ID_LENGTH or "/" in user_id:
            raise ValidationError("Invalid user id")
        g.user_id = user_id
        request.user_id = user_id
        return func(*args, **kwargs)

    return wrapper
