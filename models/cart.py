from models import db
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Cart(db.Model):
    """One row per cart owner; guards its item rows with a version counter."""

    __tablename__ = "cart"

    user_id = db.Column(db.String(100), primary_key=True)
    applied_promo_code = db.Column(db.String(50), nullable=True)
    version = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )
    saved_items = db.relationship(
        "SavedItem",
        backref="cart",
        cascade="all, delete-orphan",
        order_by="SavedItem.position",
    )

    __mapper_args__ = {"version_id_col": version}


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.String(255), primary_key=True)
    user_id = db.Column(db.String(100), db.ForeignKey("cart.user_id"), nullable=False, index=True)
    product_id = db.Column(db.String(100), nullable=False)
    product = db.Column(db.JSON, nullable=False)  # snapshot taken at add time
    quantity = db.Column(db.Integer, nullable=False, default=1)
    position = db.Column(db.Integer, nullable=False, default=0)
    added_at = db.Column(db.DateTime, default=_utcnow)


class SavedItem(db.Model):
    __tablename__ = "saved_item"

    id = db.Column(db.String(255), primary_key=True)
    user_id = db.Column(db.String(100), db.ForeignKey("cart.user_id"), nullable=False, index=True)
    product_id = db.Column(db.String(100), nullable=False)
    product = db.Column(db.JSON, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    saved_at = db.Column(db.DateTime, default=_utcnow)
