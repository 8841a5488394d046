"""Python client for the partscart cart API with a locally persisted cache."""
from .api import CartApi, CartApiError, GUEST_USER_ID
from .client import CartClient
from .state import CartAction, CartPhase, CartState, reduce
from .storage import LocalStorage, default_path

__all__ = [
    "CartApi",
    "CartApiError",
    "GUEST_USER_ID",
    "CartClient",
    "CartAction",
    "CartPhase",
    "CartState",
    "reduce",
    "LocalStorage",
    "default_path",
]
