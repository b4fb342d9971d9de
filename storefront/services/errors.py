"""
Exceptions raised by the checkout pipeline

Each exception carries the HTTP status the API layer should answer with.
"""


class CheckoutError(Exception):
    """Base exception for checkout failures"""
    status_code = 500


class CartValidationError(CheckoutError):
    """Empty cart or non-positive quantity"""
    status_code = 400


class ProductsNotFoundError(CheckoutError):
    """Cart references products that do not exist"""
    status_code = 400
    
    def __init__(self, missing_ids):
        self.missing_ids = list(missing_ids)
        super().__init__(f"Products not found: {', '.join(self.missing_ids)}")


class InsufficientStockError(CheckoutError):
    """Requested quantity exceeds available stock"""
    status_code = 400
    
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, Requested: {requested}"
        )


class PaymentGatewayError(CheckoutError):
    """Payment gateway unreachable or rejected the session request"""
    status_code = 502


class PaymentNotificationError(Exception):
    """Base exception for payment notification failures"""
    status_code = 500


class MissingSignatureError(PaymentNotificationError):
    """Notification arrived without a signature header"""
    status_code = 400


class SignatureVerificationError(PaymentNotificationError):
    """Notification signature did not verify"""
    status_code = 400


class OrderNotFoundError(PaymentNotificationError):
    """Paid session correlates to no known order"""
    pass


class OrderStateConflictError(PaymentNotificationError):
    """Paid session for an order that can no longer become PAID"""
    pass


class OversoldError(PaymentNotificationError):
    """Stock cannot cover a paid order"""
    
    def __init__(self, order_id: str, product_id: str, quantity: int):
        self.order_id = order_id
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            f"Cannot decrement stock of product {product_id} by {quantity} for order {order_id}"
        )


class InvalidStatusTransitionError(Exception):
    """Requested status change is not allowed from the current status"""
    
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current.value} to {requested.value}")
