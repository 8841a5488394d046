import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault('APP_ENV', 'testing')

from models import db
from app.services.cart_store import init_cart_store

@pytest.fixture(scope='session')
def app_instance():
    from app import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app

@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        app_instance.config['CART_STORE'] = 'memory'
        init_cart_store(app_instance)
        yield app_instance
        db.session.remove()
        db.drop_all()

@pytest.fixture(scope='function', params=['memory', 'sql'])
def cart_app(request, app):
    """The app with each cart repository in turn."""
    app.config['CART_STORE'] = request.param
    init_cart_store(app)
    return app

@pytest.fixture(scope='function')
def client(app):
    return app.test_client()

@pytest.fixture(scope='function')
def cart_client(cart_app):
    return cart_app.test_client()
