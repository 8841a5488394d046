from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class CartModel(BaseModel):
    """Base for cart payloads: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Product(CartModel):
    """Cart-facing projection of a catalog product, snapshotted on add."""

    id: str = Field(min_length=1, max_length=100)
    product_code: str = Field(alias="productCode")
    description: str
    price: float = Field(ge=0)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    category: Optional[str] = None
    in_stock: bool = Field(default=True, alias="inStock")
    max_quantity: Optional[int] = Field(default=None, alias="maxQuantity", ge=1)


class CartItem(CartModel):
    id: str
    product: Product
    quantity: int = Field(ge=1)
    added_at: datetime = Field(alias="addedAt")


class SavedItem(CartModel):
    id: str
    product: Product
    saved_at: datetime = Field(alias="savedAt")


class PromoCode(CartModel):
    code: str
    discount_type: Literal["percentage", "fixed"] = Field(alias="discountType")
    discount_value: float = Field(alias="discountValue", ge=0)
    min_order_value: Optional[float] = Field(default=None, alias="minOrderValue")
    max_discount: Optional[float] = Field(default=None, alias="maxDiscount")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    is_active: bool = Field(default=True, alias="isActive")


class CartSummary(CartModel):
    subtotal: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0
    item_count: int = Field(default=0, alias="itemCount")


class CartState(CartModel):
    """Mutable per-user cart state as held by a repository."""

    user_id: str = Field(alias="userId")
    items: List[CartItem] = Field(default_factory=list)
    saved_items: List[SavedItem] = Field(default_factory=list, alias="savedItems")
    applied_promo_code: Optional[str] = Field(default=None, alias="appliedPromoCode")
    version: int = 0


class CartView(CartModel):
    items: List[CartItem]
    saved_items: List[SavedItem] = Field(alias="savedItems")
    summary: CartSummary
    applied_promo_code: Optional[PromoCode] = Field(default=None, alias="appliedPromoCode")


class ValidationResult(CartModel):
    ok: bool
    errors: List[str] = Field(default_factory=list)


# --- request bodies ---

class AddItemRequest(CartModel):
    product: Product
    quantity: int = 1


class UpdateQuantityRequest(CartModel):
    quantity: int


class ApplyPromoRequest(CartModel):
    code: str = Field(min_length=1)
