"""
Order Service - order reads, admin status changes and stale order cleanup
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.models.order import OrderStatus, can_transition
from storefront.repositories.order_repository import OrderRepository
from storefront.schemas.order import OrderResponse, OrderListResponse
from storefront.services.errors import InvalidStatusTransitionError

logger = structlog.get_logger(__name__)


def minimum_pending_ttl_minutes() -> int:
    """Youngest age at which a PENDING order's payment session is certainly expired"""
    return settings.CHECKOUT_SESSION_TTL_MINUTES + settings.SESSION_EXPIRY_MARGIN_MINUTES


class OrderService:
    """Service layer for order business logic"""
    
    def __init__(self, db: Session):
        self.db = db
        self.repository = OrderRepository(db)
    
    def get_all_orders(self, skip: int = 0, limit: int = 100) -> OrderListResponse:
        """Get all orders with pagination"""
        orders = self.repository.get_all(skip=skip, limit=limit)
        total = self.repository.count()
        
        return OrderListResponse(
            orders=[OrderResponse.model_validate(o) for o in orders],
            total=total
        )
    
    def get_order_by_id(self, order_id: str) -> Optional[OrderResponse]:
        """Get order by ID"""
        order = self.repository.get_by_id(order_id)
        if not order:
            return None
        return OrderResponse.model_validate(order)
    
    def get_orders_by_user(self, user_id: str) -> List[OrderResponse]:
        """Get orders placed by a user"""
        orders = self.repository.get_by_user(user_id)
        return [OrderResponse.model_validate(o) for o in orders]
    
    def update_order_status(self, order_id: str, new_status: OrderStatus) -> Optional[OrderResponse]:
        """
        Apply an admin status change
        
        PAID is never accepted here; only payment notifications mark orders paid.
        
        Returns:
            Updated order or None if not found
        
        Raises:
            InvalidStatusTransitionError: If the move is not allowed
        """
        current = self.repository.get_status(order_id)
        if current is None:
            return None
        
        if new_status == OrderStatus.PAID or not can_transition(current, new_status):
            raise InvalidStatusTransitionError(current, new_status)
        
        if not self.repository.transition_status(order_id, current, new_status):
            self.db.rollback()
            latest = self.repository.get_status(order_id)
            raise InvalidStatusTransitionError(latest or current, new_status)
        self.db.commit()
        
        logger.info("order_status_changed", order_id=order_id, old_status=current.value, new_status=new_status.value)
        return self.get_order_by_id(order_id)
    
    def cancel_stale_pending_orders(self, ttl_minutes: int = settings.PENDING_ORDER_TTL_MINUTES) -> List[str]:
        """
        Cancel PENDING orders older than the TTL
        
        The TTL is never shorter than the payment session lifetime plus a
        margin, so an order whose session can still be paid is left open.
        Each cancellation is a compare-and-set against PENDING, so an order
        paid in the meantime is left alone.
        
        Returns:
            Ids of the orders that were cancelled
        """
        ttl_minutes = max(ttl_minutes, minimum_pending_ttl_minutes())
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=ttl_minutes)
        cancelled = []
        
        for order_id in self.repository.get_stale_pending_ids(cutoff):
            if self.repository.transition_status(order_id, OrderStatus.PENDING, OrderStatus.CANCELLED):
                cancelled.append(order_id)
        self.db.commit()
        
        if cancelled:
            logger.info("stale_orders_cancelled", count=len(cancelled), order_ids=cancelled)
        return cancelled
