"""
Signature verification for Stripe webhook notifications

Kept free of database and logging concerns so reconciliation can be
exercised with any verified event.
"""
import json
from typing import Optional

import stripe
from pydantic import ValidationError

from storefront.config import settings
from storefront.schemas.payment import VerifiedEvent
from storefront.services.errors import MissingSignatureError, SignatureVerificationError


def verify_notification(
    raw_body: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = settings.STRIPE_WEBHOOK_TOLERANCE,
) -> VerifiedEvent:
    """
    Authenticate a raw webhook body and parse it into a VerifiedEvent
    
    Args:
        raw_body: Request body exactly as received
        signature_header: Value of the Stripe-Signature header
        secret: Endpoint signing secret
        tolerance: Maximum accepted age of the signed timestamp, in seconds
    
    Raises:
        MissingSignatureError: If no signature header was sent
        SignatureVerificationError: If the signature, timestamp or payload is invalid
    """
    if not signature_header:
        raise MissingSignatureError("Missing signature header")
    if not secret:
        raise SignatureVerificationError("Webhook signature verification failed")
    
    try:
        payload = raw_body.decode("utf-8")
        stripe.WebhookSignature.verify_header(payload, signature_header, secret, tolerance)
    except (UnicodeDecodeError, stripe.SignatureVerificationError):
        raise SignatureVerificationError("Webhook signature verification failed") from None
    
    try:
        event = json.loads(payload)
        session = (event.get("data") or {}).get("object") or {}
        metadata = session.get("metadata") or {}
        return VerifiedEvent(
            id=event["id"],
            type=event["type"],
            session_id=session.get("id"),
            payment_status=session.get("payment_status"),
            metadata={str(k): str(v) for k, v in metadata.items()},
        )
    except (ValueError, KeyError, TypeError, AttributeError, ValidationError):
        raise SignatureVerificationError("Invalid webhook payload") from None
