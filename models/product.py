# --- models/product.py ---
from models import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.String(100), primary_key=True)

    # Core details
    product_code = db.Column(db.String(50), nullable=False)        # part number / SKU
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    brand = db.Column(db.String(50), nullable=True)
    category = db.Column(db.String(50), nullable=True)             # engine, brakes, etc.
    condition = db.Column(db.String(20), nullable=True)            # New, Used, Refurbished

    # Pricing
    price = db.Column(db.Float, nullable=False)

    # Inventory
    stock = db.Column(db.Integer, default=0)
    max_quantity = db.Column(db.Integer, nullable=True)            # per-order cap
    status = db.Column(db.String(20), default="Active")            # Active, Pending, Sold, Draft

    # Media
    image_url = db.Column(db.String(255), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    @property
    def in_stock(self):
        return self.status == "Active" and (self.stock or 0) > 0

    def cart_limit(self):
        """Most units one cart may hold: the per-order cap or what is on hand."""
        if not self.in_stock:
            return None
        limits = [v for v in (self.max_quantity, self.stock) if v]
        return min(limits) if limits else None

    def to_cart_product(self):
        from app.schemas.cart import Product as CartProduct

        return CartProduct(
            id=self.id,
            product_code=self.product_code,
            description=self.description or self.title,
            price=self.price,
            image_url=self.image_url,
            category=self.category,
            in_stock=self.in_stock,
            max_quantity=self.cart_limit(),
        )
