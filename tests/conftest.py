import os

# Must be set before storefront.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_payment_gateway
from storefront.database import Base, get_db
from storefront.main import app
from storefront.models import Product
from storefront.repositories.order_repository import OrderRepository
from storefront.services.errors import PaymentGatewayError
from storefront.services.payment_gateway import HostedSession

from tests.helpers import USER_ID

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeGateway:
    """Records session requests instead of calling Stripe"""

    def __init__(self):
        self.calls = []
        self.should_fail = False

    def create_session(self, line_items, success_url, cancel_url, metadata, idempotency_key):
        self.calls.append(
            {
                "line_items": line_items,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
                "idempotency_key": idempotency_key,
            }
        )
        if self.should_fail:
            raise PaymentGatewayError("Payment provider error, please try again")
        session_id = f"cs_test_{len(self.calls)}"
        return HostedSession(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def client(gateway):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_product(db):
    def _make(product_id, price_in_cents=1000, stock=10, name=None, **kwargs):
        product = Product(
            id=product_id,
            name=name or f"Product {product_id}",
            description=kwargs.pop("description", "Eco-friendly goods"),
            price_in_cents=price_in_cents,
            stock=stock,
            images=kwargs.pop("images", []),
            **kwargs,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def make_order(db):
    """Create a PENDING order directly in the ledger"""

    def _make(lines, user_id=USER_ID):
        items = []
        for product, quantity in lines:
            items.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "quantity": quantity,
                    "price_in_cents": product.price_in_cents,
                }
            )
        total = sum(i["price_in_cents"] * i["quantity"] for i in items)
        return OrderRepository(db).create(user_id=user_id, total_in_cents=total, items=items)

    return _make
