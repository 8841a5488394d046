from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Re-export common models for convenience
from .cart import Cart, CartItem, SavedItem  # noqa: F401,E402
from .product import Product  # noqa: F401,E402
