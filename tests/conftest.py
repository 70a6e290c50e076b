"""
Pytest configuration and fixtures.
"""

import hashlib
import hmac
import json
import time
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from boxoffice.api.deps import get_stripe_gateway
from boxoffice.database import Base, get_db, get_optional_db
from boxoffice.main import app
from boxoffice.models import Registration
from boxoffice.schemas import PurchaseRequest
from boxoffice.services.stripe_service import CheckoutSession, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


def _sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a stripe-signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _stripe_event(event_type: str, session_id: str = "cs_test_S123") -> bytes:
    return json.dumps({
        "id": "evt_test_1",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": "paid",
            }
        },
    }).encode()


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create an async engine on a throwaway SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for a test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fetch_registration(db):
    """Reload a registration, bypassing anything cached in the session."""
    async def _fetch(registration_id: int) -> Registration:
        result = await db.execute(
            select(Registration)
            .where(Registration.id == registration_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
    return _fetch


@pytest.fixture
def purchase() -> PurchaseRequest:
    return PurchaseRequest(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="555-0100",
        num_tickets=3,
    )


@pytest.fixture
def gateway() -> StripeGateway:
    """
    Real webhook verification with the Stripe API calls mocked out.
    """
    gateway = StripeGateway(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)
    gateway.create_checkout_session = AsyncMock(
        return_value=CheckoutSession(
            id="cs_test_S123",
            url="https://checkout.stripe.com/c/pay/cs_test_S123",
            payment_status="unpaid",
        )
    )
    gateway.retrieve_session = AsyncMock(
        return_value=CheckoutSession(id="cs_test_S123", payment_status="paid")
    )
    return gateway


@pytest_asyncio.fixture
async def client(db, gateway) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test session and gateway."""
    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_optional_db] = override_db
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http

    app.dependency_overrides.clear()


@pytest.fixture
def sign_payload():
    """Signs raw webhook bytes like Stripe does."""
    return _sign_payload


@pytest.fixture
def stripe_event():
    """Builds raw webhook bytes for an event type and session id."""
    return _stripe_event
