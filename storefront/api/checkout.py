"""
Checkout API endpoint
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from storefront.api.deps import get_checkout_service, get_optional_user_id
from storefront.schemas.checkout import CheckoutRequest, CheckoutSession, ErrorResponse
from storefront.services.checkout_service import CheckoutService
from storefront.services.errors import CheckoutError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=CheckoutSession,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Start checkout"
)
def create_checkout(
    checkout: CheckoutRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: CheckoutService = Depends(get_checkout_service)
):
    """
    Validate a cart and open a hosted payment session
    
    Process:
    1. Validate cart lines and look up products
    2. Check stock for every line
    3. Create a PENDING order with price snapshots
    4. Create a Stripe Checkout session for the order
    
    - **cartItems**: List of `{productId, quantity}` (quantity must be positive)
    
    Returns the hosted page **url** the client should redirect to.
    """
    if not user_id:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})
    
    try:
        return service.create_checkout_session(checkout.cart_items, user_id)
    except CheckoutError as e:
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
    except Exception:
        logger.exception("checkout_failed", user_id=user_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to create checkout session"}
        )
