class CartError(Exception):
    """Business-rule failure raised by the cart store; carries an HTTP status."""

    status = 400
    default_message = "Cart operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(CartError):
    default_message = "Invalid request"


class NotFound(CartError):
    status = 404
    default_message = "Cart item not found"


class OutOfStock(CartError):
    default_message = "Product is out of stock"


class QuantityInvalid(CartError):
    default_message = "Quantity must be greater than 0"


class MaxQuantityExceeded(CartError):
    def __init__(self, max_quantity):
        super().__init__(f"Maximum quantity of {max_quantity} exceeded")
        self.max_quantity = max_quantity


class InvalidCode(CartError):
    default_message = "Invalid or expired promo code"


class Expired(CartError):
    default_message = "Promo code has expired"


class MinOrderNotMet(CartError):
    def __init__(self, min_order_value):
        super().__init__(f"Minimum order value of R{min_order_value:g} required")
        self.min_order_value = min_order_value


class ConcurrentModification(CartError):
    status = 409
    default_message = "Cart was modified concurrently, please retry"
