from app.routes import cart_bp, products_bp
import logging


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(cart_bp)
    app.register_blueprint(products_bp)
    logging.info("Cart API registered")
