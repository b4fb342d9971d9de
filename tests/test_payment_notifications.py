"""Tests for payment notification reconciliation."""

import pytest

from storefront.models import OrderStatus, ProcessedEvent, Product
from storefront.repositories.product_repository import ProductRepository
from storefront.schemas.payment import NotificationOutcome, VerifiedEvent
from storefront.services.errors import (
    OrderNotFoundError,
    OrderStateConflictError,
    OversoldError,
    PaymentNotificationError,
)
from storefront.services.payment_notification_service import PaymentNotificationService

from tests.helpers import WEBHOOK_SECRET, checkout_event, sign, status_of, stock_of


def _post(client, payload, signature=None, with_signature=True):
    headers = {"Content-Type": "application/json"}
    if with_signature:
        headers["Stripe-Signature"] = signature if signature is not None else sign(payload)
    return client.post("/webhooks/stripe", content=payload.encode(), headers=headers)


def _paid_event(order_id, event_id="evt_1"):
    return VerifiedEvent(
        id=event_id,
        type="checkout.session.completed",
        session_id="cs_test_1",
        payment_status="paid",
        metadata={"orderId": order_id},
    )


@pytest.fixture()
def two_line_order(make_product, make_order):
    product_a = make_product("A", price_in_cents=500, stock=10)
    product_b = make_product("B", price_in_cents=700, stock=5)
    return make_order([(product_a, 2), (product_b, 1)])


class TestReconciliationApi:
    def test_scenario_c_marks_paid_and_decrements(self, client, db, two_line_order):
        response = _post(client, checkout_event(two_line_order.id))

        assert response.status_code == 200
        assert response.json() == {"received": True, "outcome": "reconciled"}
        assert status_of(db, two_line_order.id) == OrderStatus.PAID
        assert stock_of(db, "A") == 8
        assert stock_of(db, "B") == 4

    def test_scenario_d_redelivery_is_a_no_op(self, client, db, two_line_order):
        payload = checkout_event(two_line_order.id)
        _post(client, payload)

        response = _post(client, payload)

        assert response.status_code == 200
        assert response.json()["outcome"] == "already_processed"
        assert status_of(db, two_line_order.id) == OrderStatus.PAID
        assert stock_of(db, "A") == 8
        assert stock_of(db, "B") == 4
        assert db.query(ProcessedEvent).count() == 1

    def test_distinct_events_for_same_order_apply_once(self, client, db, two_line_order):
        _post(client, checkout_event(two_line_order.id, event_id="evt_1"))
        response = _post(client, checkout_event(two_line_order.id, event_id="evt_2"))

        assert response.json()["outcome"] == "already_processed"
        assert stock_of(db, "A") == 8
        assert stock_of(db, "B") == 4

    def test_shipped_order_is_not_touched_again(self, client, db, two_line_order):
        _post(client, checkout_event(two_line_order.id))
        two_line_order.status = OrderStatus.SHIPPED
        db.commit()

        response = _post(client, checkout_event(two_line_order.id, event_id="evt_late"))

        assert response.json()["outcome"] == "already_processed"
        assert status_of(db, two_line_order.id) == OrderStatus.SHIPPED
        assert stock_of(db, "A") == 8

    def test_processed_event_is_recorded(self, client, db, two_line_order):
        _post(client, checkout_event(two_line_order.id, event_id="evt_audit"))

        event = db.get(ProcessedEvent, "evt_audit")
        assert event.order_id == two_line_order.id
        assert event.event_type == "checkout.session.completed"

    @pytest.mark.parametrize(
        "event_type, payment_status",
        [
            ("checkout.session.expired", "unpaid"),
            ("payment_intent.succeeded", "paid"),
            ("checkout.session.completed", "unpaid"),
            ("checkout.session.completed", "no_payment_required"),
        ],
    )
    def test_non_actionable_events_are_acknowledged(self, client, db, two_line_order, event_type, payment_status):
        payload = checkout_event(two_line_order.id, event_type=event_type, payment_status=payment_status)

        response = _post(client, payload)

        assert response.status_code == 200
        assert response.json()["outcome"] == "ignored"
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING
        assert stock_of(db, "A") == 10

    def test_missing_order_metadata_is_acknowledged(self, client, db, two_line_order):
        response = _post(client, checkout_event(two_line_order.id, metadata={"userId": "user-1"}))

        assert response.status_code == 200
        assert response.json()["outcome"] == "ignored"
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING

    def test_unknown_order_is_a_server_error(self, client, db, two_line_order):
        response = _post(client, checkout_event("no-such-order"))

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook processing failed"}
        assert stock_of(db, "A") == 10


class TestSignatureEnforcement:
    def test_missing_signature(self, client, db, two_line_order):
        response = _post(client, checkout_event(two_line_order.id), with_signature=False)

        assert response.status_code == 400
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING
        assert stock_of(db, "A") == 10

    def test_invalid_signature(self, client, db, two_line_order):
        payload = checkout_event(two_line_order.id)

        response = _post(client, payload, signature=sign(payload, secret="whsec_forged"))

        assert response.status_code == 400
        assert response.json() == {"error": "Webhook signature verification failed"}
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING
        assert stock_of(db, "A") == 10
        assert stock_of(db, "B") == 5

    def test_signature_for_different_body(self, client, db, two_line_order):
        signature = sign(checkout_event("something-else"))

        response = _post(client, checkout_event(two_line_order.id), signature=signature)

        assert response.status_code == 400
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING


class TestAtomicity:
    def test_failure_mid_decrement_rolls_back_everything(self, client, db, two_line_order, monkeypatch):
        original = ProductRepository.decrement_stock
        calls = []

        def failing_decrement(self, product_id, quantity):
            calls.append(product_id)
            if len(calls) == 2:
                raise RuntimeError("database went away")
            return original(self, product_id, quantity)

        monkeypatch.setattr(ProductRepository, "decrement_stock", failing_decrement)
        payload = checkout_event(two_line_order.id)

        response = _post(client, payload)

        assert response.status_code == 500
        assert status_of(db, two_line_order.id) == OrderStatus.PENDING
        assert stock_of(db, "A") == 10
        assert stock_of(db, "B") == 5
        assert db.query(ProcessedEvent).count() == 0

        monkeypatch.setattr(ProductRepository, "decrement_stock", original)
        retry = _post(client, payload)

        assert retry.status_code == 200
        assert retry.json()["outcome"] == "reconciled"
        assert status_of(db, two_line_order.id) == OrderStatus.PAID
        assert stock_of(db, "A") == 8
        assert stock_of(db, "B") == 4

    def test_oversell_is_refused_and_rolled_back(self, client, db, make_product, make_order):
        plenty = make_product("plenty", stock=10)
        scarce = make_product("scarce", stock=1)
        order = make_order([(plenty, 3), (scarce, 2)])

        response = _post(client, checkout_event(order.id))

        assert response.status_code == 500
        assert status_of(db, order.id) == OrderStatus.PENDING
        assert stock_of(db, "plenty") == 10
        assert stock_of(db, "scarce") == 1

        # Restocked: the gateway's redelivery now succeeds
        db.get(Product, "scarce").stock = 5
        db.commit()
        retry = _post(client, checkout_event(order.id))

        assert retry.status_code == 200
        assert status_of(db, order.id) == OrderStatus.PAID
        assert stock_of(db, "plenty") == 7
        assert stock_of(db, "scarce") == 3


class TestNotificationService:
    def test_process_event_without_signing(self, db, two_line_order):
        service = PaymentNotificationService(db, webhook_secret=WEBHOOK_SECRET)

        result = service.process_event(_paid_event(two_line_order.id))

        assert result.outcome == NotificationOutcome.RECONCILED
        assert result.order_id == two_line_order.id
        assert stock_of(db, "A") == 8

    def test_unknown_order_raises(self, db):
        service = PaymentNotificationService(db, webhook_secret=WEBHOOK_SECRET)
        with pytest.raises(OrderNotFoundError):
            service.process_event(_paid_event("missing"))

    def test_oversold_raises(self, db, make_product, make_order):
        product = make_product("p1", stock=5)
        order = make_order([(product, 2)])
        product.stock = 1
        db.commit()

        service = PaymentNotificationService(db, webhook_secret=WEBHOOK_SECRET)
        with pytest.raises(OversoldError) as exc_info:
            service.process_event(_paid_event(order.id))

        assert exc_info.value.product_id == "p1"
        assert status_of(db, order.id) == OrderStatus.PENDING

    def test_cancelled_order_is_a_conflict(self, db, two_line_order):
        two_line_order.status = OrderStatus.CANCELLED
        db.commit()

        service = PaymentNotificationService(db, webhook_secret=WEBHOOK_SECRET)
        with pytest.raises(OrderStateConflictError):
            service.process_event(_paid_event(two_line_order.id))

        assert status_of(db, two_line_order.id) == OrderStatus.CANCELLED
        assert stock_of(db, "A") == 10

    def test_unexpected_errors_are_wrapped(self, db, two_line_order, monkeypatch):
        def broken(self, order_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            "storefront.repositories.order_repository.OrderRepository.get_items", broken
        )
        service = PaymentNotificationService(db, webhook_secret=WEBHOOK_SECRET)

        with pytest.raises(PaymentNotificationError, match="Failed to reconcile"):
            service.process_event(_paid_event(two_line_order.id))

        assert status_of(db, two_line_order.id) == OrderStatus.PENDING
