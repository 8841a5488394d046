from app import create_app
from app.config import TestingConfig
from app.version import API_PREFIX


class TightPromoLimitConfig(TestingConfig):
    PROMO_LIMIT_PER_IP = "3 per minute"


def _post(client, path, code, addr):
    return client.post(
        f"{API_PREFIX}{path}",
        json={"code": code},
        headers={"X-User-ID": "u1"},
        environ_base={"REMOTE_ADDR": addr},
    )


def test_promo_apply_rate_limit():
    app = create_app(TightPromoLimitConfig)
    client = app.test_client()
    statuses = []
    for i in range(4):
        r = _post(client, "/promo/apply", f"GUESS{i}", "10.0.0.1")
        statuses.append(r.status_code)
    assert statuses[:3] == [400, 400, 400]
    assert statuses[3] == 429
    body = r.get_json()
    assert body["success"] is False
    assert "too many" in body["error"].lower()


def test_promo_limit_is_shared_by_alias_routes():
    app = create_app(TightPromoLimitConfig)
    client = app.test_client()
    for path in ("/promo/apply", "/cart/promo-code", "/promo/apply"):
        _post(client, path, "GUESS", "10.0.0.2")
    r = _post(client, "/cart/promo-code", "GUESS", "10.0.0.2")
    assert r.status_code == 429


def test_promo_limit_is_per_client_address():
    app = create_app(TightPromoLimitConfig)
    client = app.test_client()
    for _ in range(3):
        _post(client, "/promo/apply", "GUESS", "10.0.0.3")
    assert _post(client, "/promo/apply", "GUESS", "10.0.0.3").status_code == 429
    assert _post(client, "/promo/apply", "GUESS", "10.0.0.4").status_code == 400


def test_other_cart_routes_are_not_promo_limited():
    app = create_app(TightPromoLimitConfig)
    client = app.test_client()
    for _ in range(5):
        r = client.get(f"{API_PREFIX}/cart", environ_base={"REMOTE_ADDR": "10.0.0.5"})
    assert r.status_code == 200
