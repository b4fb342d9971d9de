"""
Pydantic schemas for order responses
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal
from datetime import datetime

from storefront.models.order import OrderStatus


class OrderItemResponse(BaseModel):
    """Schema for order line item response"""
    id: str
    product_id: str
    product_name: str
    quantity: int
    price_in_cents: int
    
    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Schema for order response"""
    id: str
    user_id: str
    total_in_cents: int
    status: OrderStatus
    payment_session_id: str | None = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse]
    
    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Schema for list of orders response"""
    orders: list[OrderResponse]
    total: int


class OrderStatusUpdate(BaseModel):
    """Schema for admin status changes"""
    status: Literal['SHIPPED', 'DELIVERED', 'CANCELLED'] = Field(
        ...,
        description="Order status"
    )
