"""
Order API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status, Query
from typing import List

from storefront.api.deps import get_current_user_id, get_order_service, is_admin, require_admin
from storefront.models.order import OrderStatus
from storefront.schemas.order import OrderResponse, OrderListResponse, OrderStatusUpdate
from storefront.services.errors import InvalidStatusTransitionError
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderListResponse, summary="Get all orders")
def get_orders(
    skip: int = Query(0, ge=0, description="Number of orders to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of orders to return"),
    _admin: str = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve all orders, newest first
    
    - **skip**: Number of orders to skip (default: 0)
    - **limit**: Maximum number of orders to return (default: 100, max: 1000)
    """
    return service.get_all_orders(skip=skip, limit=limit)


@router.get("/user/{user_id}", response_model=List[OrderResponse], summary="Get orders by user")
def get_orders_by_user(
    user_id: str,
    _admin: str = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """Get all orders placed by a user"""
    return service.get_orders_by_user(user_id)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(
    order_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve a specific order by ID
    
    Customers only see their own orders; admins see any order.
    
    - **order_id**: Order ID
    """
    order = service.get_order_by_id(order_id)
    # Someone else's order is reported as missing
    if not order or (order.user_id != user_id and not is_admin(request)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with id={order_id} not found"
        )
    return order


@router.patch("/{order_id}/status", response_model=OrderResponse, summary="Update order status")
def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    _admin: str = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Update order status (admin only)
    
    - **order_id**: Order ID
    - **status**: SHIPPED (from PAID), DELIVERED (from SHIPPED) or CANCELLED (from PENDING)
    """
    try:
        order = service.update_order_status(order_id, OrderStatus(status_data.status))
    except InvalidStatusTransitionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with id={order_id} not found"
        )
    return order
