"""Order summary pricing for a cart.

Summaries are always recomputed from the cart items and the applied promo,
never stored. Money is handled as ``Decimal`` and each component is rounded
to cents before the total is added up, so the parts always sum to the total.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from app.schemas.cart import CartItem, CartSummary, PromoCode

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")

FREE_SHIPPING_THRESHOLD = Decimal("1000")
FLAT_SHIPPING_FEE = Decimal("150")
VAT_RATE = Decimal("0.15")
FREE_SHIPPING_CODE = "FREESHIP"


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _to_money(value) -> Decimal:
    return _to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def cart_subtotal(items: Iterable[CartItem]) -> Decimal:
    return sum(
        (_to_decimal(item.product.price) * item.quantity for item in items),
        ZERO,
    )


def promo_discount(promo: Optional[PromoCode], subtotal: Decimal) -> Decimal:
    """Discount granted by ``promo`` on ``subtotal``, never more than the subtotal."""
    if promo is None or not promo.is_active:
        return ZERO
    if promo.min_order_value is not None and subtotal < _to_decimal(promo.min_order_value):
        return ZERO

    if promo.discount_type == "percentage":
        discount = subtotal * _to_decimal(promo.discount_value) / 100
        if promo.max_discount is not None:
            discount = min(discount, _to_decimal(promo.max_discount))
    else:
        discount = _to_decimal(promo.discount_value)
    return max(ZERO, min(discount, subtotal))


def compute_summary(
    items: Iterable[CartItem],
    promo: Optional[PromoCode] = None,
    *,
    free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD,
    flat_shipping_fee: Decimal = FLAT_SHIPPING_FEE,
    vat_rate: Decimal = VAT_RATE,
) -> CartSummary:
    items = list(items)
    subtotal = cart_subtotal(items)
    item_count = sum(item.quantity for item in items)

    # nothing to ship for an empty cart
    if item_count == 0 or subtotal >= free_shipping_threshold:
        shipping = ZERO
    else:
        shipping = _to_decimal(flat_shipping_fee)
    if promo is not None and promo.is_active and promo.code.upper() == FREE_SHIPPING_CODE:
        shipping = ZERO

    subtotal = _to_money(subtotal)
    discount = _to_money(promo_discount(promo, subtotal))
    # VAT is charged on the discounted goods, not on shipping
    tax = _to_money((subtotal - discount) * _to_decimal(vat_rate))
    shipping = _to_money(shipping)
    total = subtotal - discount + tax + shipping

    return CartSummary(
        subtotal=float(subtotal),
        discount=float(discount),
        tax=float(tax),
        shipping=float(shipping),
        total=float(total),
        item_count=item_count,
    )
