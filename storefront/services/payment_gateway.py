"""
Stripe Checkout client with retry logic
"""
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import stripe
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from storefront.config import settings
from storefront.services.errors import PaymentGatewayError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewayLineItem:
    """One line of a hosted checkout page"""
    name: str
    unit_amount: int
    quantity: int
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HostedSession:
    """Hosted checkout session as returned by the gateway"""
    id: str
    url: str


class StripeCheckoutClient:
    """Client for creating Stripe Checkout sessions"""
    
    def __init__(
        self,
        api_key: str = settings.STRIPE_SECRET_KEY,
        currency: str = settings.CURRENCY,
        session_ttl_minutes: int = settings.CHECKOUT_SESSION_TTL_MINUTES,
    ):
        self.api_key = api_key
        self.currency = currency
        self.session_ttl_minutes = session_ttl_minutes
    
    def _line_item_params(self, item: GatewayLineItem) -> Dict:
        product_data = {"name": item.name}
        # Stripe rejects empty strings and empty lists
        if item.description:
            product_data["description"] = item.description
        if item.images:
            product_data["images"] = list(item.images)
        
        return {
            "price_data": {
                "currency": self.currency,
                "product_data": product_data,
                "unit_amount": item.unit_amount,
            },
            "quantity": item.quantity,
        }
    
    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type(stripe.APIConnectionError),
        reraise=True
    )
    def _create(self, params: Dict, idempotency_key: str):
        return stripe.checkout.Session.create(
            api_key=self.api_key,
            idempotency_key=idempotency_key,
            **params
        )
    
    def create_session(
        self,
        line_items: List[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        idempotency_key: str,
    ) -> HostedSession:
        """
        Create a hosted checkout session
        
        Args:
            line_items: One entry per cart line
            success_url: Redirect after payment
            cancel_url: Redirect when the customer backs out
            metadata: Opaque values echoed back on webhook events
            idempotency_key: Reused across retries so at most one session is created
        
        Returns:
            Session id and hosted page URL
        
        Raises:
            PaymentGatewayError: If Stripe is unreachable or rejects the request
        """
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [self._line_item_params(item) for item in line_items],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "expires_at": int(time.time()) + self.session_ttl_minutes * 60,
        }
        
        try:
            session = self._create(params, idempotency_key)
        except stripe.StripeError as e:
            logger.error(
                "stripe_session_create_failed",
                error_type=type(e).__name__,
                error=str(e),
                idempotency_key=idempotency_key,
            )
            raise PaymentGatewayError("Payment provider error, please try again") from e
        
        return HostedSession(id=session.id, url=session.url)
