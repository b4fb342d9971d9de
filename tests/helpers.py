import hashlib
import hmac
import json
import time

from storefront.models import Order, Product

WEBHOOK_SECRET = "whsec_test_secret"
USER_ID = "user-1"


def stock_of(db, product_id):
    db.expire_all()
    return db.get(Product, product_id).stock


def status_of(db, order_id):
    db.expire_all()
    return db.get(Order, order_id).status


def checkout_event(
    order_id,
    event_id="evt_1",
    event_type="checkout.session.completed",
    payment_status="paid",
    metadata=None,
):
    if metadata is None:
        metadata = {"orderId": order_id, "userId": USER_ID}
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": "cs_test_1",
                    "object": "checkout.session",
                    "payment_status": payment_status,
                    "amount_total": 0,
                    "metadata": metadata,
                }
            },
        }
    )


def sign(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Build a Stripe-Signature header for payload"""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
