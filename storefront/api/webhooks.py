"""
Payment gateway webhook endpoint
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import get_notification_service
from storefront.schemas.payment import NotificationResponse
from storefront.services.errors import PaymentNotificationError
from storefront.services.payment_notification_service import PaymentNotificationService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=NotificationResponse, summary="Receive Stripe events")
async def stripe_webhook(
    request: Request,
    service: PaymentNotificationService = Depends(get_notification_service)
):
    """
    Receive a signed Stripe event
    
    The body is read raw for signature verification. A non-2xx answer makes
    Stripe redeliver the event, which is safe because reconciliation is
    idempotent.
    """
    body = await request.body()
    signature = request.headers.get("stripe-signature")
    
    try:
        result = await run_in_threadpool(service.handle, body, signature)
    except PaymentNotificationError as e:
        # 400s say only that verification failed; 500s never expose internals
        message = str(e) if e.status_code < 500 else "Webhook processing failed"
        return JSONResponse(status_code=e.status_code, content={"error": message})
    
    return NotificationResponse(outcome=result.outcome)
