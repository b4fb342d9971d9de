"""
SQLAlchemy Order, OrderItem and ProcessedEvent models
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base
from storefront.models.product import generate_id


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# Allowed lifecycle moves; PENDING -> PAID is reserved for payment notifications
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


class Order(Base):
    """Order database model"""
    
    __tablename__ = "orders"
    
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(255), nullable=False, index=True)
    total_in_cents = Column(Integer, nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status", native_enum=False, length=20),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    payment_session_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.position",
    )
    
    __table_args__ = (
        CheckConstraint('total_in_cents >= 0', name='check_total_non_negative'),
    )
    
    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, total_in_cents={self.total_in_cents}, status='{self.status}')>"


class OrderItem(Base):
    """Line item with a price snapshot taken at order creation"""
    
    __tablename__ = "order_items"
    
    id = Column(String(36), primary_key=True, default=generate_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    price_in_cents = Column(Integer, nullable=False)
    product_name = Column(String(255), nullable=False)  # Denormalized for history
    
    order = relationship("Order", back_populates="items")
    
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='check_quantity_positive'),
        CheckConstraint('price_in_cents >= 0', name='check_item_price_non_negative'),
    )
    
    @property
    def subtotal_in_cents(self) -> int:
        return self.price_in_cents * self.quantity
    
    def __repr__(self):
        return f"<OrderItem(order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"


class ProcessedEvent(Base):
    """Gateway notifications that performed a PENDING -> PAID transition"""
    
    __tablename__ = "processed_events"
    
    event_id = Column(String(255), primary_key=True)
    event_type = Column(String(100), nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    processed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<ProcessedEvent(event_id='{self.event_id}', event_type='{self.event_type}')>"
