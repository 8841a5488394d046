import importlib
import sys
import pytest


def load_app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    for module in ["wsgi"]:
        if module in sys.modules:
            del sys.modules[module]
    entry = importlib.import_module("wsgi")
    return entry.app


@pytest.fixture()
def test_client(monkeypatch):
    app = load_app(monkeypatch)
    app.config.update(TESTING=True)
    return app.test_client()


def test_traceparent_header(test_client):
    resp = test_client.get("/__ok")
    assert resp.status_code == 200
    assert "traceparent" in resp.headers


def test_traceparent_on_cart_routes(test_client):
    resp = test_client.get("/api/v1/cart")
    assert resp.status_code == 200
    assert resp.headers["traceparent"].startswith("00-")
