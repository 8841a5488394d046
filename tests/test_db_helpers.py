import pytest

from app.services.exceptions import ConcurrentModification
from app.utils.db import transactional
from models import db
from models.product import Product


def test_transactional_commits(app):
    with transactional() as session:
        session.add(Product(id="p1", product_code="P1", title="Part", price=10.0, stock=1))
    db.session.remove()
    assert db.session.get(Product, "p1") is not None


def test_transactional_rolls_back_and_reraises(app):
    with pytest.raises(RuntimeError):
        with transactional("boom") as session:
            session.add(Product(id="p2", product_code="P2", title="Part", price=10.0))
            session.flush()
            raise RuntimeError("boom")
    assert db.session.get(Product, "p2") is None


def test_stale_flush_becomes_conflict(app):
    from sqlalchemy.orm.exc import StaleDataError

    with pytest.raises(ConcurrentModification):
        with transactional("stale"):
            raise StaleDataError("version mismatch")
