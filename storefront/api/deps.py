"""
Shared API dependencies
"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.database import get_db
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import StripeCheckoutClient
from storefront.services.payment_notification_service import PaymentNotificationService


def get_optional_user_id(request: Request) -> Optional[str]:
    """Identity asserted by the upstream identity provider, if any"""
    return request.headers.get(settings.USER_ID_HEADER) or None


def is_admin(request: Request) -> bool:
    return request.headers.get(settings.USER_ROLE_HEADER) == "ADMIN"


def get_current_user_id(request: Request) -> str:
    """Identity of the caller, asserted by the upstream identity provider"""
    user_id = get_optional_user_id(request)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    return user_id


def require_admin(request: Request) -> str:
    """Reject callers whose asserted role is not ADMIN"""
    user_id = get_current_user_id(request)
    if not is_admin(request):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return user_id


def get_payment_gateway() -> StripeCheckoutClient:
    """Dependency to get the payment gateway client"""
    return StripeCheckoutClient()


def get_checkout_service(
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway)
) -> CheckoutService:
    """Dependency to get CheckoutService instance"""
    return CheckoutService(db, gateway=gateway)


def get_notification_service(db: Session = Depends(get_db)) -> PaymentNotificationService:
    """Dependency to get PaymentNotificationService instance"""
    return PaymentNotificationService(db)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(db)
