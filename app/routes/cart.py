from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.schemas.cart import AddItemRequest, ApplyPromoRequest, UpdateQuantityRequest
from app.services.cart_store import get_cart_store
from app.utils import ok, user_scoped, validate_schema
from app.version import API_PREFIX

cart_bp = Blueprint("cart", __name__, url_prefix=API_PREFIX)


@cart_bp.before_request
@user_scoped
def _bind_cart_owner():
    """Scope every cart request to the caller's user id."""
    return None


# ========================== Cart ==========================

@cart_bp.route("/cart", methods=["GET"])
def get_cart():
    """
    Current cart with its recomputed order summary.
    ---
    tags: [Cart]
    parameters:
      - in: header
        name: X-User-ID
        type: string
        required: false
    responses:
      200:
        description: items, savedItems, summary and appliedPromoCode
    """
    view = get_cart_store().get_cart(request.user_id)
    return ok(view.to_json())


@cart_bp.route("/cart/add", methods=["POST"])
@validate_schema(AddItemRequest)
def add_to_cart():
    """
    Add a product snapshot to the cart, merging with an existing line.
    ---
    tags: [Cart]
    responses:
      200:
        description: Item added to cart
      400:
        description: Out of stock, invalid quantity or quantity limit exceeded
    """
    body = request.validated_data
    get_cart_store().add_item(request.user_id, body.product, body.quantity)
    return ok(message="Item added to cart")


@cart_bp.route("/cart/item/<item_id>", methods=["PUT"])
@validate_schema(UpdateQuantityRequest)
def update_cart_item(item_id):
    get_cart_store().update_item_quantity(request.user_id, item_id, request.validated_data.quantity)
    return ok(message="Cart item updated")


@cart_bp.route("/cart/item/<item_id>", methods=["DELETE"])
def remove_from_cart(item_id):
    get_cart_store().remove_item(request.user_id, item_id)
    return ok(message="Item removed from cart")


@cart_bp.route("/cart/clear", methods=["DELETE"])
def clear_cart():
    get_cart_store().clear(request.user_id)
    return ok(message="Cart cleared")


@cart_bp.route("/cart/validate", methods=["POST"])
def validate_cart():
    """
    Reconcile the cart against current stock and quantity limits.
    ---
    tags: [Cart]
    responses:
      200:
        description: success is false when the cart had to be corrected
    """
    result = get_cart_store().validate(request.user_id)
    message = "Cart updated with validation changes" if result.errors else "Cart is valid"
    return ok(message=message, success=result.ok, validationErrors=result.errors)


# ========================== Saved for later ==========================

@cart_bp.route("/saved/item/<item_id>", methods=["POST"])
@cart_bp.route("/cart/save-for-later/<item_id>", methods=["POST"])
def save_for_later(item_id):
    get_cart_store().save_for_later(request.user_id, item_id)
    return ok(message="Item saved for later")


@cart_bp.route("/saved/item/<item_id>", methods=["DELETE"])
def remove_or_move_saved_item(item_id):
    """
    Remove a saved item, or move it back to the cart with ?action=move.
    ---
    tags: [Saved]
    parameters:
      - in: query
        name: action
        type: string
        enum: [remove, move]
    responses:
      200:
        description: Saved item removed or moved to cart
    """
    if request.args.get("action", "remove").lower() == "move":
        return move_to_cart(item_id)
    return remove_saved_item(item_id)


@cart_bp.route("/cart/move-to-cart/<item_id>", methods=["POST"])
def move_to_cart(item_id):
    get_cart_store().move_to_cart(request.user_id, item_id)
    return ok(message="Item moved to cart")


@cart_bp.route("/cart/saved/<item_id>", methods=["DELETE"])
def remove_saved_item(item_id):
    get_cart_store().remove_saved_item(request.user_id, item_id)
    return ok(message="Saved item removed")


# ========================== Promo codes ==========================

@cart_bp.route("/promo/apply", methods=["POST"])
@cart_bp.route("/cart/promo-code", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["PROMO_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many promo code attempts, please wait",
)
@validate_schema(ApplyPromoRequest)
def apply_promo_code():
    """
    Apply a promo code to the cart.
    ---
    tags: [Promo]
    responses:
      200:
        description: Promo code applied
      400:
        description: Invalid, expired or minimum order not met
      429:
        description: Too many attempts
    """
    promo = get_cart_store().apply_promo_code(request.user_id, request.validated_data.code)
    return ok(message="Promo code applied successfully", promoCode=promo.to_json())


@cart_bp.route("/promo/remove", methods=["DELETE"])
@cart_bp.route("/cart/promo-code", methods=["DELETE"])
def remove_promo_code():
    get_cart_store().remove_promo_code(request.user_id)
    return ok(message="Promo code removed")
