from __future__ import annotations

from collections.abc import Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, delete

from app.api.deps import (
    get_db,
    get_payos_gateway,
    get_stripe_gateway,
    get_vnpay_gateway,
)
from app.core.config import PayOSConfig, StripeConfig, VnPayConfig
from app.integrations.payos import PayOSGateway
from app.integrations.stripe_gateway import StripeGateway
from app.integrations.vnpay import VnPayGateway
from app.main import app
from app.models import CartItem, Order, OrderItem, Product, User

VNPAY_SECRET = "VNPAYTESTSECRETKEY0123456789ABCD"
PAYOS_CHECKSUM_KEY = "payos-checksum-key-for-tests"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
        # Clean tables after each test (children first).
        session.rollback()
        session.exec(delete(OrderItem))
        session.exec(delete(Order))
        session.exec(delete(CartItem))
        session.exec(delete(Product))
        session.exec(delete(User))
        session.commit()


@pytest.fixture
def vnpay_gateway() -> VnPayGateway:
    return VnPayGateway(
        VnPayConfig(
            tmn_code="TESTTMN1",
            hash_secret=VNPAY_SECRET,
            base_url="https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
            return_url="https://shop.example.com/payments/vnpay/return",
        )
    )


@pytest.fixture
def payos_requests() -> list[httpx.Request]:
    """Requests captured by the mocked PayOS API."""
    return []


@pytest.fixture
def payos_gateway(payos_requests) -> PayOSGateway:
    def handler(request: httpx.Request) -> httpx.Response:
        payos_requests.append(request)
        return httpx.Response(
            200,
            json={
                "code": "00",
                "desc": "success",
                "data": {"checkoutUrl": "https://pay.payos.vn/web/test-checkout"},
            },
        )

    return PayOSGateway(
        PayOSConfig(
            client_id="client-id",
            api_key="api-key",
            checksum_key=PAYOS_CHECKSUM_KEY,
            api_base_url="https://api-merchant.payos.vn/v2",
            return_url="https://shop.example.com/return",
            cancel_url="https://shop.example.com/cancel",
        ),
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def stripe_gateway() -> StripeGateway:
    return StripeGateway(
        StripeConfig(api_key="sk_test_123", webhook_secret=STRIPE_WEBHOOK_SECRET)
    )


@pytest.fixture(scope="function")
def client(engine, db, vnpay_gateway, payos_gateway, stripe_gateway) -> Generator[TestClient, None, None]:
    def _override_get_db() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_vnpay_gateway] = lambda: vnpay_gateway
    app.dependency_overrides[get_payos_gateway] = lambda: payos_gateway
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
