"""Server-side cart authority.

Every mutation runs inside one repository transaction: a rule violation
raises a ``CartError`` before anything is written, so a failed operation
never leaves a half-applied cart behind.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence

from flask import current_app

from app.metrics import CART_OPERATIONS, PROMO_REJECTIONS
from app.schemas.cart import CartItem, CartView, Product, PromoCode, SavedItem, ValidationResult
from app.services.cart_repository import CartRepository, InMemoryCartRepository, SqlCartRepository
from app.services.exceptions import (
    CartError,
    MaxQuantityExceeded,
    NotFound,
    OutOfStock,
    QuantityInvalid,
)
from app.services.pricing import cart_subtotal, compute_summary
from app.services.promo_codes import PROMO_CODES, active_promo, check_promo

logger = logging.getLogger(__name__)

ProductLookup = Callable[[str], Optional[Product]]


def _utcnow():
    return datetime.now(timezone.utc)


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _find(items, item_id):
    return next((i for i in items if i.id == item_id), None)


def _find_product(items, product_id):
    return next((i for i in items if i.product.id == product_id), None)


class CartStore:
    def __init__(
        self,
        repository: CartRepository,
        product_lookup: Optional[ProductLookup] = None,
        promo_catalog: Sequence[PromoCode] = PROMO_CODES,
        clock: Callable[[], datetime] = _utcnow,
        pricing: Optional[dict] = None,
    ):
        self._repository = repository
        self._product_lookup = product_lookup
        self._promos = promo_catalog
        self._clock = clock
        self._pricing = pricing or {}

    # ------------------------------------------------------------------ reads

    def get_cart(self, user_id: str) -> CartView:
        cart = self._repository.snapshot(user_id)
        promo = None
        if cart.applied_promo_code:
            promo = active_promo(cart.applied_promo_code, self._clock(), self._promos)
        return CartView(
            items=cart.items,
            saved_items=cart.saved_items,
            summary=compute_summary(cart.items, promo, **self._pricing),
            applied_promo_code=promo,
        )

    def get_item_quantity(self, user_id: str, product_id: str) -> int:
        item = _find_product(self._repository.snapshot(user_id).items, product_id)
        return item.quantity if item else 0

    def is_in_cart(self, user_id: str, product_id: str) -> bool:
        return self.get_item_quantity(user_id, product_id) > 0

    # -------------------------------------------------------------- cart items

    def add_item(self, user_id: str, product: Product, quantity: int = 1) -> CartItem:
        if quantity is None or quantity <= 0:
            raise QuantityInvalid()
        if not product.in_stock:
            raise OutOfStock()

        with self._repository.transaction(user_id) as cart:
            item = _find_product(cart.items, product.id)
            if item is not None:
                new_quantity = item.quantity + quantity
                if product.max_quantity and new_quantity > product.max_quantity:
                    raise MaxQuantityExceeded(product.max_quantity)
                item.quantity = new_quantity
            else:
                if product.max_quantity and quantity > product.max_quantity:
                    raise MaxQuantityExceeded(product.max_quantity)
                now = self._clock()
                item = CartItem(
                    id=f"{user_id}_{product.id}_{_millis(now)}",
                    product=product,
                    quantity=quantity,
                    added_at=now,
                )
                cart.items.append(item)
            # a product lives in the cart or in the saved list, never both
            cart.saved_items = [s for s in cart.saved_items if s.product.id != product.id]

        self._record("add_item", user_id, product_id=product.id, quantity=item.quantity)
        return item

    def update_item_quantity(self, user_id: str, item_id: str, quantity: int) -> CartItem:
        with self._repository.transaction(user_id) as cart:
            item = _find(cart.items, item_id)
            if item is None:
                raise NotFound()
            if quantity is None or quantity <= 0:
                raise QuantityInvalid()
            if item.product.max_quantity and quantity > item.product.max_quantity:
                raise MaxQuantityExceeded(item.product.max_quantity)
            item.quantity = quantity

        self._record("update_item_quantity", user_id, item_id=item_id, quantity=quantity)
        return item

    def remove_item(self, user_id: str, item_id: str) -> None:
        with self._repository.transaction(user_id) as cart:
            if _find(cart.items, item_id) is None:
                raise NotFound()
            cart.items = [i for i in cart.items if i.id != item_id]
        self._record("remove_item", user_id, item_id=item_id)

    def clear(self, user_id: str) -> None:
        # promo eligibility depends on the contents, so it goes too
        with self._repository.transaction(user_id) as cart:
            cart.items = []
            cart.applied_promo_code = None
        self._record("clear", user_id)

    # ------------------------------------------------------------- saved items

    def save_for_later(self, user_id: str, item_id: str) -> SavedItem:
        with self._repository.transaction(user_id) as cart:
            item = _find(cart.items, item_id)
            if item is None:
                raise NotFound()
            now = self._clock()
            saved = SavedItem(
                id=f"saved_{user_id}_{item.product.id}_{_millis(now)}",
                product=item.product,
                saved_at=now,
            )
            cart.items = [i for i in cart.items if i.id != item_id]
            cart.saved_items = [s for s in cart.saved_items if s.product.id != item.product.id]
            cart.saved_items.append(saved)

        self._record("save_for_later", user_id, item_id=item_id)
        return saved

    def move_to_cart(self, user_id: str, item_id: str) -> CartItem:
        with self._repository.transaction(user_id) as cart:
            saved = _find(cart.saved_items, item_id)
            if saved is None:
                raise NotFound("Saved item not found")
            product = self._current_product(saved.product)
            if not product.in_stock:
                raise OutOfStock("Product is no longer in stock")
            now = self._clock()
            item = CartItem(
                id=f"{user_id}_{product.id}_{_millis(now)}",
                product=product,
                quantity=1,
                added_at=now,
            )
            cart.saved_items = [s for s in cart.saved_items if s.id != item_id]
            cart.items.append(item)

        self._record("move_to_cart", user_id, item_id=item_id)
        return item

    def remove_saved_item(self, user_id: str, item_id: str) -> None:
        with self._repository.transaction(user_id) as cart:
            if _find(cart.saved_items, item_id) is None:
                raise NotFound("Saved item not found")
            cart.saved_items = [s for s in cart.saved_items if s.id != item_id]
        self._record("remove_saved_item", user_id, item_id=item_id)

    # ------------------------------------------------------------- promo codes

    def apply_promo_code(self, user_id: str, code: str) -> PromoCode:
        try:
            with self._repository.transaction(user_id) as cart:
                promo = check_promo(code, cart_subtotal(cart.items), self._clock(), self._promos)
                cart.applied_promo_code = promo.code
        except CartError as e:
            PROMO_REJECTIONS.labels(type(e).__name__).inc()
            raise

        self._record("apply_promo_code", user_id, promo_code=promo.code)
        return promo

    def remove_promo_code(self, user_id: str) -> None:
        with self._repository.transaction(user_id) as cart:
            cart.applied_promo_code = None
        self._record("remove_promo_code", user_id)

    # -------------------------------------------------------------- validation

    def _current_product(self, product: Product) -> Product:
        """Refresh stock and limits from the catalog, keeping the price snapshot."""
        if self._product_lookup is None:
            return product
        current = self._product_lookup(product.id)
        if current is None:
            return product
        return product.model_copy(
            update={"in_stock": current.in_stock, "max_quantity": current.max_quantity}
        )

    def validate(self, user_id: str) -> ValidationResult:
        errors = []
        with self._repository.transaction(user_id) as cart:
            kept = []
            for item in cart.items:
                product = self._current_product(item.product)
                item.product = product
                if not product.in_stock:
                    errors.append(f"{product.description} is no longer in stock")
                    continue
                if product.max_quantity and item.quantity > product.max_quantity:
                    item.quantity = product.max_quantity
                    errors.append(
                        f"{product.description} quantity reduced to maximum available "
                        f"({product.max_quantity})"
                    )
                kept.append(item)
            cart.items = kept

        self._record("validate", user_id, errors=len(errors))
        return ValidationResult(ok=not errors, errors=errors)

    def _record(self, operation: str, user_id: str, **fields) -> None:
        CART_OPERATIONS.labels(operation).inc()
        logger.info({"event": f"cart.{operation}", "cart_owner": user_id, **fields})


def catalog_lookup(product_id: str) -> Optional[Product]:
    """Current cart projection of a catalog product, if the catalog has it."""
    from models import db
    from models.product import Product as CatalogProduct

    row = db.session.get(CatalogProduct, product_id)
    return row.to_cart_product() if row else None


def build_cart_store(app) -> CartStore:
    kind = (app.config.get("CART_STORE") or "sql").lower()
    if kind == "memory":
        repository = InMemoryCartRepository()
    elif kind == "sql":
        repository = SqlCartRepository()
    else:
        raise RuntimeError(f"Unknown CART_STORE: {kind}")

    pricing = {
        "free_shipping_threshold": Decimal(str(app.config["FREE_SHIPPING_THRESHOLD"])),
        "flat_shipping_fee": Decimal(str(app.config["FLAT_SHIPPING_FEE"])),
        "vat_rate": Decimal(str(app.config["VAT_RATE"])),
    }
    app.logger.info(f"Cart store backed by {kind} repository")
    return CartStore(repository, product_lookup=catalog_lookup, pricing=pricing)


def init_cart_store(app) -> CartStore:
    store = build_cart_store(app)
    app.extensions["cart_store"] = store
    return store


def get_cart_store() -> CartStore:
    return current_app.extensions["cart_store"]
