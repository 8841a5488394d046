from .cart import cart_bp
from .products import products_bp


__all__ = [
    'cart_bp',
    'products_bp',
]
