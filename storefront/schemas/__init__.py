"""
Schemas package
"""
from storefront.schemas.checkout import (
    CartItem,
    CheckoutRequest,
    CheckoutSession,
    ErrorResponse,
)
from storefront.schemas.order import (
    OrderItemResponse,
    OrderResponse,
    OrderListResponse,
    OrderStatusUpdate,
)
from storefront.schemas.payment import (
    VerifiedEvent,
    NotificationOutcome,
    NotificationResult,
    NotificationResponse,
)

__all__ = [
    "CartItem",
    "CheckoutRequest",
    "CheckoutSession",
    "ErrorResponse",
    "OrderItemResponse",
    "OrderResponse",
    "OrderListResponse",
    "OrderStatusUpdate",
    "VerifiedEvent",
    "NotificationOutcome",
    "NotificationResult",
    "NotificationResponse",
]
