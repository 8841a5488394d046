from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.cart import PromoCode
from app.services.exceptions import Expired, InvalidCode, MinOrderNotMet
from app.services.promo_codes import active_promo, check_promo, find_promo, is_expired

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

CATALOG = (
    PromoCode(code="SUMMER", discount_type="percentage", discount_value=20,
              expires_at=NOW - timedelta(days=1)),
    PromoCode(code="LATER", discount_type="fixed", discount_value=10,
              expires_at=NOW + timedelta(days=1)),
    PromoCode(code="RETIRED", discount_type="fixed", discount_value=10, is_active=False),
)


def test_lookup_ignores_case_and_whitespace():
    assert find_promo("  save10 ").code == "SAVE10"
    assert find_promo("Welcome50").code == "WELCOME50"
    assert find_promo("NOPE") is None
    assert find_promo("") is None


def test_unknown_code_is_invalid():
    with pytest.raises(InvalidCode) as exc:
        check_promo("BOGUS", 1000)
    assert exc.value.message == "Invalid or expired promo code"


def test_inactive_code_is_invalid():
    with pytest.raises(InvalidCode):
        check_promo("RETIRED", 1000, NOW, CATALOG)


def test_expired_code():
    with pytest.raises(Expired) as exc:
        check_promo("summer", 1000, NOW, CATALOG)
    assert exc.value.message == "Promo code has expired"


def test_minimum_order_value_message():
    with pytest.raises(MinOrderNotMet) as exc:
        check_promo("SAVE10", 499.99)
    assert exc.value.message == "Minimum order value of R500 required"


def test_accepts_code_at_minimum():
    promo = check_promo("save10", 500)
    assert promo.code == "SAVE10"


def test_naive_expiry_is_read_as_utc():
    promo = PromoCode(code="X", discount_type="fixed", discount_value=1,
                      expires_at=datetime(2024, 6, 1, 11, 0))
    assert is_expired(promo, NOW)
    assert not is_expired(promo, NOW - timedelta(hours=2))


def test_active_promo_drops_expired_codes():
    assert active_promo("LATER", NOW, CATALOG).code == "LATER"
    assert active_promo("SUMMER", NOW, CATALOG) is None
    assert active_promo("RETIRED", NOW, CATALOG) is None
