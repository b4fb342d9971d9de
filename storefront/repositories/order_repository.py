"""
Order Repository - Data Access Layer
"""
from datetime import datetime
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc, func, update

from storefront.models.order import Order, OrderItem, OrderStatus, ProcessedEvent


class OrderRepository:
    """Repository for Order persistence"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def get_all(self, skip: int = 0, limit: int = 100) -> List[Order]:
        """Get all orders with pagination"""
        return self.db.query(Order).options(selectinload(Order.items)).order_by(
            desc(Order.created_at)
        ).offset(skip).limit(limit).all()
    
    def get_by_id(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        return self.db.query(Order).options(selectinload(Order.items)).filter(
            Order.id == order_id
        ).first()
    
    def get_by_user(self, user_id: str) -> List[Order]:
        """Get orders placed by a user"""
        return self.db.query(Order).options(selectinload(Order.items)).filter(
            Order.user_id == user_id
        ).order_by(desc(Order.created_at)).all()
    
    def get_status(self, order_id: str) -> Optional[OrderStatus]:
        """Read only the current status of an order"""
        row = self.db.query(Order.status).filter(Order.id == order_id).first()
        return row[0] if row else None
    
    def get_items(self, order_id: str) -> List[OrderItem]:
        """Get line items of an order in cart order"""
        return self.db.query(OrderItem).filter(
            OrderItem.order_id == order_id
        ).order_by(OrderItem.position).all()
    
    def create(self, user_id: str, total_in_cents: int, items: Sequence[dict]) -> Order:
        """
        Create a PENDING order together with its line items in one commit
        
        Args:
            user_id: Owning user
            total_in_cents: Order total snapshot
            items: Dicts with product_id, product_name, quantity, price_in_cents
        
        Returns:
            Created order
        """
        order = Order(
            user_id=user_id,
            total_in_cents=total_in_cents,
            status=OrderStatus.PENDING,
            items=[OrderItem(position=i, **item) for i, item in enumerate(items)],
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order
    
    def set_payment_session(self, order: Order, session_id: str) -> Order:
        """Record the gateway session id on an order"""
        order.payment_session_id = session_id
        self.db.commit()
        self.db.refresh(order)
        return order
    
    def transition_status(self, order_id: str, expected: OrderStatus, new_status: OrderStatus) -> bool:
        """
        Compare-and-set the status of an order
        
        Does not commit. Returns True only if the order was in ``expected``
        and now holds ``new_status``.
        """
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=new_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
    
    def get_stale_pending_ids(self, created_before: datetime, limit: int = 500) -> List[str]:
        """Ids of PENDING orders created before the cutoff"""
        rows = self.db.query(Order.id).filter(
            Order.status == OrderStatus.PENDING,
            Order.created_at < created_before,
        ).order_by(Order.created_at).limit(limit).all()
        return [row[0] for row in rows]
    
    def count(self) -> int:
        """Get total count of orders"""
        return self.db.query(Order).count()


class ProcessedEventRepository:
    """Repository for gateway notifications that changed an order"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def add(self, event_id: str, event_type: str, order_id: str) -> ProcessedEvent:
        """Record an event within the caller's transaction"""
        processed_event = ProcessedEvent(
            event_id=event_id,
            event_type=event_type,
            order_id=order_id
        )
        self.db.add(processed_event)
        return processed_event
