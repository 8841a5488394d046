"""Storage for per-user cart state.

The cart store only talks to a ``CartRepository``. ``transaction(user_id)``
yields a mutable ``CartState`` and persists it when the block exits cleanly;
if the block raises, nothing is written. ``snapshot(user_id)`` returns a
read-only copy and creates an empty cart for an unknown user.
"""
import abc
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict

from app.schemas.cart import CartItem, CartState, Product, SavedItem
from app.utils.db import transactional
from models import db
from models.cart import Cart, CartItem as CartItemRow, SavedItem as SavedItemRow

logger = logging.getLogger(__name__)


class CartRepository(abc.ABC):
    @abc.abstractmethod
    def transaction(self, user_id: str):
        """Context manager yielding the user's mutable cart state."""

    @abc.abstractmethod
    def snapshot(self, user_id: str) -> CartState:
        """Copy of the user's cart state, creating an empty cart if needed."""


class InMemoryCartRepository(CartRepository):
    """Process-local carts; state is lost on restart and not shared.

    Every user seen gets a cart and a lock together, and both live for the
    life of the process. Carts are never deleted, so the lock table grows
    exactly as the cart table does.
    """

    def __init__(self):
        self._carts: Dict[str, CartState] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            if user_id not in self._locks:
                self._carts[user_id] = CartState(user_id=user_id)
                self._locks[user_id] = threading.Lock()
            return self._locks[user_id]

    @contextmanager
    def transaction(self, user_id: str):
        with self._lock_for(user_id):
            current = self._carts[user_id]
            working = current.model_copy(deep=True)
            yield working
            working.version = current.version + 1
            self._carts[user_id] = working

    def snapshot(self, user_id: str) -> CartState:
        with self._lock_for(user_id):
            return self._carts[user_id].model_copy(deep=True)


def _as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _naive_utc(value: datetime) -> datetime:
    # DateTime columns are stored without a zone
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SqlCartRepository(CartRepository):
    """Carts in the relational store.

    The cart row is read with ``SELECT ... FOR UPDATE`` and carries a
    version column, so a write racing another instance fails with
    ``ConcurrentModification`` instead of silently overwriting it.
    """

    def _load(self, user_id: str, lock: bool) -> Cart:
        query = Cart.query.filter_by(user_id=user_id)
        if lock:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            row = Cart(user_id=user_id)
            db.session.add(row)
            db.session.flush()
            logger.info({"event": "cart.created", "cart_owner": user_id})
        return row

    @staticmethod
    def _to_state(row: Cart) -> CartState:
        return CartState(
            user_id=row.user_id,
            applied_promo_code=row.applied_promo_code,
            version=row.version or 0,
            items=[
                CartItem(
                    id=r.id,
                    product=Product.model_validate(r.product),
                    quantity=r.quantity,
                    added_at=_as_utc(r.added_at),
                )
                for r in row.items
            ],
            saved_items=[
                SavedItem(
                    id=r.id,
                    product=Product.model_validate(r.product),
                    saved_at=_as_utc(r.saved_at),
                )
                for r in row.saved_items
            ],
        )

    @staticmethod
    def _sync_items(row: Cart, state: CartState) -> None:
        existing = {r.id: r for r in row.items}
        kept = []
        for position, item in enumerate(state.items):
            rec = existing.get(item.id) or CartItemRow(id=item.id, user_id=row.user_id)
            rec.product_id = item.product.id
            rec.product = item.product.to_json()
            rec.quantity = item.quantity
            rec.position = position
            rec.added_at = _naive_utc(item.added_at)
            kept.append(rec)
        row.items = kept

        existing = {r.id: r for r in row.saved_items}
        kept = []
        for position, item in enumerate(state.saved_items):
            rec = existing.get(item.id) or SavedItemRow(id=item.id, user_id=row.user_id)
            rec.product_id = item.product.id
            rec.product = item.product.to_json()
            rec.position = position
            rec.saved_at = _naive_utc(item.saved_at)
            kept.append(rec)
        row.saved_items = kept

    @contextmanager
    def transaction(self, user_id: str):
        row = self._load(user_id, lock=True)
        state = self._to_state(row)
        try:
            yield state
        except Exception:
            db.session.rollback()
            raise

        with transactional(f"Failed to persist cart for {user_id}"):
            row.applied_promo_code = state.applied_promo_code
            # always touch the row so the version column is bumped
            row.updated_at = _naive_utc(datetime.now(timezone.utc))
            self._sync_items(row, state)

    def snapshot(self, user_id: str) -> CartState:
        row = db.session.get(Cart, user_id)
        if row is None:
            with transactional("Failed to create cart"):
                row = self._load(user_id, lock=False)
        return self._to_state(row)
