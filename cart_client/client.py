"""Client-side cart cache.

The server is the source of truth. Each mutation sends its request and then
re-fetches the whole cart, because only the server can price it; local
contents are replaced by that refresh, never patched from the request.
Mutations on one client run one at a time, so rapid quantity changes reach
the server in call order and the last one wins.
"""
import logging
import threading
from typing import Callable, Optional

from .api import CartApi, CartApiError
from .state import CartAction, CartState, reduce
from .storage import LocalStorage

logger = logging.getLogger(__name__)


class CartClient:
    def __init__(self, api: CartApi, storage: Optional[LocalStorage] = None):
        self.api = api
        self.storage = storage
        self._lock = threading.RLock()
        self.state = CartState.from_dict(storage.load() if storage else None)
        self.validation_errors: list = []

    # --- state plumbing ---

    def _dispatch(self, action: CartAction, payload=None) -> None:
        self.state = reduce(self.state, action, payload)
        if self.storage is not None:
            try:
                self.storage.save(self.state.to_dict())
            except OSError as e:
                logger.warning("Could not persist cart: %s", e)

    def _mutate(self, request: Callable[[], object], failure_message: str) -> bool:
        with self._lock:
            self._dispatch(CartAction.MUTATION_STARTED)
            try:
                request()
                data = self.api.get_cart()
            except CartApiError as e:
                logger.warning("%s: %s", failure_message, e.message)
                self._dispatch(CartAction.MUTATION_FAILED, e.message or failure_message)
                return False
            self._dispatch(CartAction.CART_LOADED, data)
            return True

    # --- loading ---

    def load(self) -> None:
        """First fetch after start-up, merged with the cart restored from storage.

        A non-empty local cart survives an empty server answer, and its items,
        saved items and promo code are pushed back so the server catches up
        with the client.
        """
        with self._lock:
            self._dispatch(CartAction.MUTATION_STARTED)
            try:
                data = self.api.get_cart()
            except CartApiError as e:
                self._dispatch(CartAction.MUTATION_FAILED, e.message or "Failed to load cart")
                return
            server_empty = not (data.get("items") or data.get("savedItems"))
            local = self.state
            self._dispatch(CartAction.CART_HYDRATED, data)
            if server_empty and not local.is_empty:
                self._restore(local)

    def _restore(self, local: CartState) -> None:
        """Re-create ``local`` on the server one entry at a time.

        An entry the server refuses is reported and skipped; the rest still go
        through and the client ends up with whatever the server accepted.
        """
        errors = []

        def attempt(step: Callable[[], object]) -> None:
            try:
                step()
            except (CartApiError, KeyError, StopIteration) as e:
                message = getattr(e, "message", None) or "Failed to restore cart"
                logger.warning("Restoring local cart entry failed: %s", message)
                if message not in errors:
                    errors.append(message)

        for item in local.items:
            attempt(lambda item=item: self.api.add_item(item["product"], item.get("quantity", 1)))
        for saved in local.saved_items:
            attempt(lambda saved=saved: self._restore_saved(saved["product"]))
        if local.applied_promo_code:
            attempt(lambda: self.api.apply_promo_code(local.applied_promo_code["code"]))

        try:
            data = self.api.get_cart()
        except CartApiError as e:
            self._dispatch(CartAction.MUTATION_FAILED, e.message or "Failed to restore cart")
            return
        self._dispatch(CartAction.CART_LOADED, data)
        if errors:
            self._dispatch(CartAction.MUTATION_FAILED, "; ".join(errors))

    def _restore_saved(self, product: dict) -> None:
        # saved items only come into being by saving a cart line
        self.api.add_item(product, 1)
        items = self.api.get_cart().get("items") or []
        line = next(i for i in items if i["product"]["id"] == product["id"])
        self.api.save_for_later(line["id"])

    def refresh_cart(self) -> None:
        with self._lock:
            self._dispatch(CartAction.MUTATION_STARTED)
            try:
                data = self.api.get_cart()
            except CartApiError as e:
                self._dispatch(CartAction.MUTATION_FAILED, e.message or "Failed to load cart")
                return
            self._dispatch(CartAction.CART_LOADED, data)

    # --- cart operations ---

    def add_to_cart(self, product: dict, quantity: int = 1) -> bool:
        return self._mutate(lambda: self.api.add_item(product, quantity), "Failed to add item to cart")

    def remove_from_cart(self, item_id: str) -> bool:
        return self._mutate(lambda: self.api.remove_item(item_id), "Failed to remove item from cart")

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        if quantity <= 0:
            return self.remove_from_cart(item_id)
        return self._mutate(lambda: self.api.update_item(item_id, quantity), "Failed to update item quantity")

    def clear_cart(self) -> bool:
        return self._mutate(self.api.clear, "Failed to clear cart")

    def save_for_later(self, item_id: str) -> bool:
        return self._mutate(lambda: self.api.save_for_later(item_id), "Failed to save item for later")

    def move_to_cart(self, item_id: str) -> bool:
        return self._mutate(lambda: self.api.move_to_cart(item_id), "Failed to move item to cart")

    def remove_saved_item(self, item_id: str) -> bool:
        return self._mutate(lambda: self.api.remove_saved_item(item_id), "Failed to remove saved item")

    def apply_promo_code(self, code: str) -> bool:
        return self._mutate(lambda: self.api.apply_promo_code(code), "Failed to apply promo code")

    def remove_promo_code(self) -> bool:
        return self._mutate(self.api.remove_promo_code, "Failed to remove promo code")

    def validate_cart(self) -> bool:
        """Run a server validation pass; False if the cart had to be corrected."""
        result = {}

        def _validate():
            result.update(self.api.validate())

        if not self._mutate(_validate, "Failed to validate cart"):
            return False
        self.validation_errors = list(result.get("validationErrors") or [])
        return bool(result.get("success")) and not self.validation_errors

    # --- queries ---

    @property
    def items(self) -> list:
        return self.state.items

    @property
    def saved_items(self) -> list:
        return self.state.saved_items

    @property
    def summary(self) -> dict:
        return self.state.summary

    @property
    def applied_promo_code(self) -> Optional[dict]:
        return self.state.applied_promo_code

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    def get_item_quantity(self, product_id: str) -> int:
        item = next((i for i in self.state.items if i["product"]["id"] == product_id), None)
        return item["quantity"] if item else 0

    def is_in_cart(self, product_id: str) -> bool:
        return any(i["product"]["id"] == product_id for i in self.state.items)
