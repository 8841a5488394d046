from app.version import API_PREFIX, API_VERSION


def test_prefix():
    assert API_VERSION == "v1"
    assert API_PREFIX == "/api/v1"


def test_test_support_also_available_under_api_v1(client):
    r = client.get(f"{API_PREFIX}/test_support/__ok")
    assert r.status_code == 200
    assert r.get_json()["data"]["ping"] == "pong"


def test_cart_routes_are_versioned(app):
    rules = {str(r.rule) for r in app.url_map.iter_rules()}
    for rule in (
        "/api/v1/cart",
        "/api/v1/cart/add",
        "/api/v1/cart/item/<item_id>",
        "/api/v1/cart/clear",
        "/api/v1/cart/validate",
        "/api/v1/saved/item/<item_id>",
        "/api/v1/promo/apply",
        "/api/v1/promo/remove",
        "/api/v1/products/<product_id>",
    ):
        assert rule in rules
    assert "/cart" not in rules


def test_openapi_spec_lists_cart_paths(client):
    r = client.get("/apispec.json")
    assert r.status_code == 200
    paths = r.get_json()["paths"]
    assert "/api/v1/cart" in paths
    assert "/api/v1/promo/apply" in paths
