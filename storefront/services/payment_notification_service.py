"""
Payment Notification Service - reconciles Stripe checkout notifications with
the order ledger and inventory
"""
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.models.order import OrderStatus
from storefront.repositories.order_repository import OrderRepository, ProcessedEventRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.schemas.payment import NotificationOutcome, NotificationResult, VerifiedEvent
from storefront.services.errors import (
    OrderNotFoundError,
    OrderStateConflictError,
    OversoldError,
    PaymentNotificationError,
)
from storefront.services.webhook_verifier import verify_notification

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_STATUS_PAID = "paid"

# Statuses an order can only reach after having been PAID
_PAID_OR_LATER = {OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED}


class PaymentNotificationService:
    """Service layer for inbound payment notifications"""
    
    def __init__(self, db: Session, webhook_secret: str = settings.STRIPE_WEBHOOK_SECRET):
        self.db = db
        self.webhook_secret = webhook_secret
        self.orders = OrderRepository(db)
        self.products = ProductRepository(db)
        self.events = ProcessedEventRepository(db)
    
    def handle(self, raw_body: bytes, signature_header: Optional[str]) -> NotificationResult:
        """
        Authenticate a notification and reconcile it
        
        Raises:
            MissingSignatureError: No signature header
            SignatureVerificationError: Signature or payload invalid
            PaymentNotificationError: Reconciliation failed; safe to redeliver
        """
        event = verify_notification(raw_body, signature_header, self.webhook_secret)
        return self.process_event(event)
    
    def process_event(self, event: VerifiedEvent) -> NotificationResult:
        """
        Apply a verified event to the ledger
        
        Only paid ``checkout.session.completed`` events carrying an order id
        cause mutation; everything else is acknowledged as ignored.
        """
        log = logger.bind(event_id=event.id, event_type=event.type, session_id=event.session_id)
        
        if event.type != CHECKOUT_SESSION_COMPLETED:
            log.info("notification_ignored", reason="event_type")
            return NotificationResult(outcome=NotificationOutcome.IGNORED)
        
        if event.payment_status != PAYMENT_STATUS_PAID:
            log.info("notification_ignored", reason="not_paid", payment_status=event.payment_status)
            return NotificationResult(outcome=NotificationOutcome.IGNORED)
        
        order_id = event.order_id
        if not order_id:
            log.warning("notification_ignored", reason="missing_order_metadata")
            return NotificationResult(outcome=NotificationOutcome.IGNORED)
        
        log = log.bind(order_id=order_id)
        
        try:
            outcome = self._mark_paid(event, order_id)
        except PaymentNotificationError:
            self.db.rollback()
            log.exception("notification_reconcile_failed")
            raise
        except Exception as e:
            self.db.rollback()
            log.exception("notification_reconcile_failed")
            raise PaymentNotificationError("Failed to reconcile payment notification") from e
        
        if outcome is NotificationOutcome.ALREADY_PROCESSED:
            log.info("notification_already_processed")
        else:
            log.info("order_paid")
        return NotificationResult(outcome=outcome, order_id=order_id)
    
    def _mark_paid(self, event: VerifiedEvent, order_id: str) -> NotificationOutcome:
        """
        Transition PENDING -> PAID and decrement stock in one transaction
        
        The status change is a compare-and-set, so of two concurrent
        deliveries exactly one performs the decrements. Any failure rolls the
        whole transaction back, leaving the order PENDING.
        """
        status = self.orders.get_status(order_id)
        if status is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        if status in _PAID_OR_LATER:
            return NotificationOutcome.ALREADY_PROCESSED
        
        if not self.orders.transition_status(order_id, OrderStatus.PENDING, OrderStatus.PAID):
            # Lost the race: re-read what the winner left behind
            self.db.rollback()
            status = self.orders.get_status(order_id)
            if status in _PAID_OR_LATER:
                return NotificationOutcome.ALREADY_PROCESSED
            raise OrderStateConflictError(
                f"Order {order_id} is {status.value if status else 'missing'} and cannot be marked PAID"
            )
        
        for item in self.orders.get_items(order_id):
            if not self.products.decrement_stock(item.product_id, item.quantity):
                raise OversoldError(order_id, item.product_id, item.quantity)
        
        self.events.add(event.id, event.type, order_id)
        self.db.commit()
        return NotificationOutcome.RECONCILED
