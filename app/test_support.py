from flask import Blueprint, request
from app.utils.responses import ok, error
import logging
from models import db
from models.product import Product


test_support_bp = Blueprint("test_support_bp", __name__)


@test_support_bp.route("/__ok", methods=["GET"])
def __ok():
    return ok({"ping": "pong"})


@test_support_bp.route("/__boom", methods=["GET"])
def __boom():
    raise RuntimeError("boom")


@test_support_bp.route("/__log", methods=["GET"])
def __log():
    logging.getLogger(__name__).info("test log line")
    return ok({"logged": True})


@test_support_bp.route("/__catalog/product", methods=["POST"])
def __catalog_seed_product():
    """
    Body:
    {
      "id": "p1",
      "product_code": "BRK-001",
      "title": "Brake pads",
      "price": 450.0,
      "stock": 10,
      "max_quantity": 4,
      "status": "Active"
    }
    Creates or replaces a catalog product.
    Returns the cart projection of the product.
    """
    p = request.get_json() or {}
    if not p.get("id"):
        return error("id required", status=400)
    product = db.session.get(Product, p["id"]) or Product(id=p["id"])
    product.product_code = p.get("product_code", p["id"].upper())
    product.title = p.get("title", "Part")
    product.description = p.get("description")
    product.category = p.get("category")
    product.price = float(p.get("price", 100.0))
    product.stock = int(p.get("stock", 10))
    product.max_quantity = p.get("max_quantity")
    product.status = p.get("status", "Active")
    product.image_url = p.get("image_url")
    db.session.add(product)
    db.session.commit()
    return ok(product.to_cart_product().to_json())


@test_support_bp.route("/__catalog/product/<product_id>", methods=["PATCH"])
def __catalog_update_product(product_id):
    """Body: any of {"stock", "max_quantity", "status"}."""
    product = db.session.get(Product, product_id)
    if not product:
        return error("not found", 404)
    p = request.get_json() or {}
    for field in ("stock", "max_quantity", "status"):
        if field in p:
            setattr(product, field, p[field])
    db.session.commit()
    return ok(product.to_cart_product().to_json())
