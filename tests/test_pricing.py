from datetime import datetime, timezone
from decimal import Decimal

from app.schemas.cart import CartItem, Product, PromoCode
from app.services.pricing import compute_summary, promo_discount
from app.services.promo_codes import find_promo


def _item(price, quantity=1, pid="p1"):
    return CartItem(
        id=f"u1_{pid}_1",
        product=Product(id=pid, product_code=pid.upper(), description="Part", price=price),
        quantity=quantity,
        added_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_empty_cart_is_all_zero():
    s = compute_summary([])
    assert s.subtotal == 0
    assert s.discount == 0
    assert s.tax == 0
    assert s.shipping == 0
    assert s.total == 0
    assert s.item_count == 0


def test_flat_shipping_below_threshold():
    s = compute_summary([_item(200.0, 2)])
    assert s.subtotal == 400.0
    assert s.tax == 60.0
    assert s.shipping == 150.0
    assert s.total == 610.0
    assert s.item_count == 2


def test_free_shipping_at_threshold():
    s = compute_summary([_item(500.0, 2)])
    assert s.subtotal == 1000.0
    assert s.shipping == 0
    assert s.tax == 150.0
    assert s.total == 1150.0


def test_save10_example():
    s = compute_summary([_item(300.0, 2)], find_promo("SAVE10"))
    assert s.subtotal == 600.0
    assert s.discount == 60.0
    assert s.tax == 81.0
    assert s.shipping == 150.0
    assert s.total == 771.0


def test_welcome50_fixed_discount():
    s = compute_summary([_item(100.0, 2)], find_promo("WELCOME50"))
    assert s.discount == 50.0
    assert s.tax == 22.5
    assert s.total == 322.5


def test_freeship_waives_shipping_only():
    s = compute_summary([_item(100.0)], find_promo("FREESHIP"))
    assert s.discount == 0
    assert s.shipping == 0
    assert s.tax == 15.0
    assert s.total == 115.0


def test_promo_below_minimum_grants_nothing():
    s = compute_summary([_item(100.0)], find_promo("SAVE10"))
    assert s.discount == 0
    assert s.total == 265.0


def test_fixed_discount_never_exceeds_subtotal():
    promo = PromoCode(code="BIG", discount_type="fixed", discount_value=50)
    s = compute_summary([_item(30.0)], promo)
    assert s.discount == 30.0
    assert s.tax == 0
    assert s.total == 150.0


def test_percentage_discount_capped_by_max_discount():
    promo = PromoCode(code="HALF", discount_type="percentage", discount_value=50, max_discount=100)
    assert promo_discount(promo, Decimal("400")) == Decimal("100")


def test_inactive_promo_grants_nothing():
    promo = PromoCode(code="OLD", discount_type="fixed", discount_value=50, is_active=False)
    assert promo_discount(promo, Decimal("400")) == 0


def test_rounding_half_up_per_component():
    s = compute_summary([_item(19.99, 3)])
    assert s.subtotal == 59.97
    assert s.tax == 9.0
    assert s.total == 218.97


def test_components_add_up_to_total():
    items = [_item(19.99, 3, "p1"), _item(7.35, 7, "p2")]
    s = compute_summary(items, find_promo("WELCOME50"))
    total = Decimal(str(s.subtotal)) - Decimal(str(s.discount)) + Decimal(str(s.tax)) + Decimal(str(s.shipping))
    assert Decimal(str(s.total)) == total


def test_summary_is_a_pure_function_of_its_inputs():
    items = [_item(45.5, 3)]
    promo = find_promo("WELCOME50")
    assert compute_summary(items, promo) == compute_summary(items, promo)


def test_pricing_constants_can_be_overridden():
    s = compute_summary(
        [_item(100.0)],
        free_shipping_threshold=Decimal("50"),
        flat_shipping_fee=Decimal("99"),
        vat_rate=Decimal("0.1"),
    )
    assert s.shipping == 0
    assert s.tax == 10.0
    assert s.total == 110.0
