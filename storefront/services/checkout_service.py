"""
Checkout Service - validates a cart, creates a PENDING order and opens a
hosted payment session
"""
from typing import Sequence

import structlog
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.models.order import Order, OrderStatus
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.schemas.checkout import CartItem, CheckoutSession
from storefront.services.cart_pricing import PricedLine, order_total, price_cart, validate_cart
from storefront.services.errors import PaymentGatewayError
from storefront.services.payment_gateway import GatewayLineItem, StripeCheckoutClient

logger = structlog.get_logger(__name__)


class CheckoutService:
    """Service layer for checkout orchestration"""
    
    def __init__(self, db: Session, gateway=None, base_url: str = settings.BASE_URL):
        self.db = db
        self.products = ProductRepository(db)
        self.orders = OrderRepository(db)
        self.gateway = gateway or StripeCheckoutClient()
        self.base_url = base_url.rstrip("/")
    
    def create_checkout_session(self, cart_items: Sequence[CartItem], user_id: str) -> CheckoutSession:
        """
        Turn a cart into a PENDING order and a hosted payment session
        
        Steps:
        1. Validate the cart shape
        2. Load all referenced products in one query
        3. Reject unknown products and insufficient stock
        4. Compute the integer total
        5. Persist the order and its line items in one commit
        6. Request a hosted session carrying the order id as metadata
        
        Args:
            cart_items: Cart lines submitted by the client
            user_id: Identity of the requesting user
        
        Returns:
            Session id, redirect URL and order id
        
        Raises:
            CartValidationError: Empty cart or non-positive quantity
            ProductsNotFoundError: Unknown product ids
            InsufficientStockError: Quantity exceeds current stock
            PaymentGatewayError: Session creation failed; the order is cancelled
        """
        log = logger.bind(user_id=user_id)
        
        validate_cart(cart_items)
        
        products = self.products.get_many(item.product_id for item in cart_items)
        lines = price_cart(cart_items, products)
        total = order_total(lines)
        
        order = self.orders.create(
            user_id=user_id,
            total_in_cents=total,
            items=[
                {
                    "product_id": line.product.id,
                    "product_name": line.product.name,
                    "quantity": line.quantity,
                    "price_in_cents": line.unit_price_in_cents,
                }
                for line in lines
            ],
        )
        log = log.bind(order_id=order.id)
        log.info("order_created", total_in_cents=total, items=len(lines))
        
        try:
            session = self.gateway.create_session(
                line_items=[self._gateway_line(line) for line in lines],
                success_url=(
                    f"{self.base_url}/checkout/success"
                    f"?session_id={{CHECKOUT_SESSION_ID}}&order_id={order.id}"
                ),
                cancel_url=f"{self.base_url}/checkout?canceled=true",
                metadata={"orderId": order.id, "userId": user_id},
                idempotency_key=f"checkout-{order.id}",
            )
        except PaymentGatewayError:
            self._cancel_unpaid(order)
            log.warning("checkout_session_failed_order_cancelled")
            raise
        
        self.orders.set_payment_session(order, session.id)
        log.info("checkout_session_created", session_id=session.id)
        
        return CheckoutSession(session_id=session.id, url=session.url, order_id=order.id)
    
    @staticmethod
    def _gateway_line(line: PricedLine) -> GatewayLineItem:
        product = line.product
        return GatewayLineItem(
            name=product.name,
            unit_amount=line.unit_price_in_cents,
            quantity=line.quantity,
            description=product.description or None,
            images=list(product.images or []),
        )
    
    def _cancel_unpaid(self, order: Order) -> None:
        """Compensate a failed session request; a concurrent PAID transition wins"""
        try:
            self.orders.transition_status(order.id, OrderStatus.PENDING, OrderStatus.CANCELLED)
            self.db.commit()
        except Exception:
            self.db.rollback()
            # The stale-order sweep will retry the cancellation
            logger.exception("order_cancel_failed", order_id=order.id)
