"""
Services package
"""
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import StripeCheckoutClient
from storefront.services.payment_notification_service import PaymentNotificationService

__all__ = ["CheckoutService", "OrderService", "StripeCheckoutClient", "PaymentNotificationService"]
