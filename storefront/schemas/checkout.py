"""
Pydantic schemas for checkout requests and responses
"""
from pydantic import BaseModel, Field, ConfigDict


class CartItem(BaseModel):
    """One cart line as submitted by the client"""
    product_id: str = Field(..., alias="productId", min_length=1, description="Product ID")
    quantity: int = Field(..., description="Quantity to purchase")
    
    model_config = ConfigDict(populate_by_name=True)


class CheckoutRequest(BaseModel):
    """Schema for submitting a cart for checkout"""
    cart_items: list[CartItem] = Field(..., alias="cartItems")
    
    model_config = ConfigDict(populate_by_name=True)


class CheckoutSession(BaseModel):
    """Result of a successful checkout: hosted session plus the pending order"""
    session_id: str = Field(..., alias="sessionId")
    url: str
    order_id: str = Field(..., alias="orderId")
    
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Schema for failure responses"""
    error: str
