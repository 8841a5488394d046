"""Local cart state and the reducer that moves it between phases.

The client cart is a small state machine: ``idle`` while nothing is in
flight, ``mutating`` while a request and its follow-up refresh run, and
``error`` after a failed request. An error never clears the cart contents.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class CartPhase(str, Enum):
    IDLE = "idle"
    MUTATING = "mutating"
    ERROR = "error"


class CartAction(str, Enum):
    MUTATION_STARTED = "mutation_started"
    CART_LOADED = "cart_loaded"
    CART_HYDRATED = "cart_hydrated"
    MUTATION_FAILED = "mutation_failed"


def empty_summary() -> dict:
    return {
        "subtotal": 0.0,
        "discount": 0.0,
        "tax": 0.0,
        "shipping": 0.0,
        "total": 0.0,
        "itemCount": 0,
    }


@dataclass
class CartState:
    """Client copy of the server cart, in the server's wire format"""
    items: list = field(default_factory=list)
    saved_items: list = field(default_factory=list)
    summary: dict = field(default_factory=empty_summary)
    applied_promo_code: Optional[dict] = None
    phase: CartPhase = CartPhase.IDLE
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.phase == CartPhase.MUTATING

    @property
    def is_empty(self) -> bool:
        return not self.items and not self.saved_items

    def to_dict(self) -> dict:
        """Contents worth persisting; phase and error are session-only."""
        return {
            "items": self.items,
            "savedItems": self.saved_items,
            "summary": self.summary,
            "appliedPromoCode": self.applied_promo_code,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CartState":
        data = data or {}
        return cls(
            items=list(data.get("items") or []),
            saved_items=list(data.get("savedItems") or []),
            summary=dict(data.get("summary") or empty_summary()),
            applied_promo_code=data.get("appliedPromoCode"),
        )


def reduce(state: CartState, action: CartAction, payload=None) -> CartState:
    """Return the state that follows ``action``; ``state`` is left untouched."""
    if action == CartAction.MUTATION_STARTED:
        return replace(state, phase=CartPhase.MUTATING)

    if action == CartAction.CART_LOADED:
        loaded = CartState.from_dict(payload)
        return replace(loaded, phase=CartPhase.IDLE, error=None)

    if action == CartAction.CART_HYDRATED:
        # first load after start-up: a cold server store answers with an
        # empty cart, which must not wipe a cart restored from storage
        loaded = CartState.from_dict(payload)
        if loaded.is_empty and not state.is_empty:
            return replace(state, phase=CartPhase.IDLE, error=None)
        return replace(loaded, phase=CartPhase.IDLE, error=None)

    if action == CartAction.MUTATION_FAILED:
        return replace(state, phase=CartPhase.ERROR, error=payload or "Cart request failed")

    raise ValueError(f"Unknown cart action: {action}")
