from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from app.schemas.cart import PromoCode
from app.services.exceptions import Expired, InvalidCode, MinOrderNotMet

PROMO_CODES = (
    PromoCode(
        code="SAVE10",
        discount_type="percentage",
        discount_value=10,
        min_order_value=500,
        is_active=True,
    ),
    PromoCode(
        code="WELCOME50",
        discount_type="fixed",
        discount_value=50,
        min_order_value=200,
        is_active=True,
    ),
    # Free shipping only, handled by the pricing rules
    PromoCode(
        code="FREESHIP",
        discount_type="percentage",
        discount_value=0,
        is_active=True,
    ),
)


def _utcnow():
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def find_promo(code: Optional[str], catalog: Sequence[PromoCode] = PROMO_CODES) -> Optional[PromoCode]:
    """Case-insensitive lookup in the promo catalog."""
    if not code:
        return None
    wanted = code.strip().lower()
    return next((pc for pc in catalog if pc.code.lower() == wanted), None)


def is_expired(promo: PromoCode, now: Optional[datetime] = None) -> bool:
    if promo.expires_at is None:
        return False
    return _as_utc(now or _utcnow()) > _as_utc(promo.expires_at)


def check_promo(code, subtotal, now=None, catalog: Sequence[PromoCode] = PROMO_CODES) -> PromoCode:
    """Return the promo for ``code`` if it may be applied to ``subtotal``.

    Raises InvalidCode for unknown or inactive codes, Expired once past
    ``expiresAt`` and MinOrderNotMet when the subtotal is too small.
    """
    promo = find_promo(code, catalog)
    if promo is None or not promo.is_active:
        raise InvalidCode()
    if is_expired(promo, now):
        raise Expired()
    if promo.min_order_value is not None and Decimal(str(subtotal)) < Decimal(str(promo.min_order_value)):
        raise MinOrderNotMet(promo.min_order_value)
    return promo


def active_promo(code, now=None, catalog: Sequence[PromoCode] = PROMO_CODES) -> Optional[PromoCode]:
    """The applied promo if it can still price a cart read, else None."""
    promo = find_promo(code, catalog)
    if promo is None or not promo.is_active or is_expired(promo, now):
        return None
    return promo
