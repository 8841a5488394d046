from flask import Blueprint
from app.utils import ok, error
from app.version import API_PREFIX
from models import db
from models.product import Product

products_bp = Blueprint("products", __name__, url_prefix=API_PREFIX)


@products_bp.route("/products/<product_id>", methods=["GET"])
def get_product(product_id):
    """Cart-facing projection of a catalog product, ready for /cart/add."""
    product = db.session.get(Product, product_id)
    if not product:
        return error("Product not found", status=404)
    return ok(product.to_cart_product().to_json())
