import json

import pytest

from cart_client import CartAction, CartPhase, CartState, LocalStorage, default_path, reduce

ITEM = {"id": "u1_p1_1", "product": {"id": "p1"}, "quantity": 2}
SERVER_CART = {
    "items": [ITEM],
    "savedItems": [],
    "summary": {"subtotal": 10.0, "discount": 0.0, "tax": 1.5, "shipping": 150.0, "total": 161.5, "itemCount": 2},
    "appliedPromoCode": None,
}


def test_initial_state_is_idle_and_empty():
    state = CartState()
    assert state.phase == CartPhase.IDLE
    assert state.is_empty
    assert state.summary["total"] == 0.0


def test_mutation_started_sets_loading_without_touching_contents():
    state = CartState(items=[ITEM])
    nxt = reduce(state, CartAction.MUTATION_STARTED)
    assert nxt.is_loading
    assert nxt.items == [ITEM]
    assert state.phase == CartPhase.IDLE


def test_loaded_replaces_contents_and_clears_error():
    state = CartState(phase=CartPhase.ERROR, error="boom")
    nxt = reduce(state, CartAction.CART_LOADED, SERVER_CART)
    assert nxt.phase == CartPhase.IDLE
    assert nxt.error is None
    assert nxt.items == [ITEM]
    assert nxt.summary["total"] == 161.5


def test_loaded_empty_cart_empties_local_state():
    state = CartState(items=[ITEM])
    nxt = reduce(state, CartAction.CART_LOADED, {"items": [], "savedItems": []})
    assert nxt.is_empty


def test_hydrated_empty_server_keeps_local_cart():
    state = CartState(items=[ITEM])
    nxt = reduce(state, CartAction.CART_HYDRATED, {"items": [], "savedItems": []})
    assert nxt.items == [ITEM]
    assert nxt.phase == CartPhase.IDLE


def test_hydrated_non_empty_server_wins():
    state = CartState(items=[{"id": "local", "product": {"id": "p9"}, "quantity": 1}])
    nxt = reduce(state, CartAction.CART_HYDRATED, SERVER_CART)
    assert nxt.items == [ITEM]


def test_failure_keeps_contents():
    state = CartState(items=[ITEM], phase=CartPhase.MUTATING)
    nxt = reduce(state, CartAction.MUTATION_FAILED, "Product is out of stock")
    assert nxt.phase == CartPhase.ERROR
    assert nxt.error == "Product is out of stock"
    assert nxt.items == [ITEM]
    assert not nxt.is_loading


def test_unknown_action():
    with pytest.raises(ValueError):
        reduce(CartState(), "explode")


def test_persisted_form_uses_wire_keys():
    state = CartState.from_dict(SERVER_CART)
    assert state.to_dict() == SERVER_CART
    assert "phase" not in state.to_dict()


def test_storage_round_trip(tmp_path):
    storage = LocalStorage(tmp_path / "nested" / "cart.json")
    assert storage.load() is None
    storage.save(SERVER_CART)
    assert storage.load() == SERVER_CART
    assert [p.name for p in (tmp_path / "nested").iterdir()] == ["cart.json"]
    storage.clear()
    assert storage.load() is None


def test_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text("{not json")
    assert LocalStorage(path).load() is None
    path.write_text(json.dumps([1, 2]))
    assert LocalStorage(path).load() is None


def test_default_path_honours_home_override(monkeypatch, tmp_path):
    monkeypatch.setenv("PARTSCART_HOME", str(tmp_path))
    assert default_path("u1") == tmp_path / "cart-u1.json"


def test_storage_for_user(monkeypatch, tmp_path):
    monkeypatch.setenv("PARTSCART_HOME", str(tmp_path))
    storage = LocalStorage.for_user("guest")
    storage.save({"items": []})
    assert (tmp_path / "cart-guest.json").exists()
