"""
Pytest configuration and shared fixtures.

Provides:
- Settings pinned for tests (in-memory storage, background workers off)
- A frozen clock and predictable booking ids
- An in-memory backend seeded with the demo catalog and coupons
- Use cases wired exactly like a request scope
- FastAPI TestClient against the same wiring
"""

import hashlib
import hmac
import time
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.api.dependencies import use_case_scope
from app.api.deps import build_backend
from app.application.dtos.booking_dto import CreateBookingCommand
from app.application.interfaces.clock import FakeClock
from app.application.interfaces.id_generator import SequentialIdGenerator
from app.application.use_cases.confirm_payment import sign_payment
from app.config import Settings
from app.infrastructure.in_memory import LoggingNotificationPublisher, StubPaymentGateway
from app.main import create_app, seed_backend

SIGNING_SECRET = "test-signing-secret"
WEBHOOK_SECRET = "whsec_test_secret"
NOW = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)

HOMESTAY = "homestay-sea-view-room"
RESTAURANT = "fishermans-wharf-tables"
DRIVERS = "city-driver-pool"


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    """Build a ``Stripe-Signature`` header the way Stripe signs webhook deliveries."""
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


def make_settings(**overrides) -> Settings:
    values = {
        "use_in_memory": True,
        "database_url": None,
        "seed_demo_data": True,
        "log_level": "INFO",
        "currency": "INR",
        "payment_signing_secret": SIGNING_SECRET,
        "stripe_api_key": None,
        "stripe_webhook_secret": WEBHOOK_SECRET,
        "notification_webhook_url": None,
        "expiry_sweeper_enabled": False,
        "outbox_dispatcher_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def booking_command(**overrides) -> CreateBookingCommand:
    """Two nights at the sea view homestay, 10-12 Jan 2030."""
    values = {
        "resource_id": HOMESTAY,
        "interval_start": utc(2030, 1, 10),
        "interval_end": utc(2030, 1, 12),
        "party_size": 2,
        "user_id": "user-1",
        "requester_name": "Asha Menon",
        "requester_email": "asha@example.com",
        "requester_phone": "+919800000001",
        "coupon_code": None,
    }
    values.update(overrides)
    return CreateBookingCommand(**values)


def booking_payload(**overrides) -> dict:
    payload = {
        "resourceId": HOMESTAY,
        "intervalStart": "2030-01-10T00:00:00Z",
        "intervalEnd": "2030-01-12T00:00:00Z",
        "partySize": 2,
        "userId": "user-1",
        "requesterContact": {
            "name": "Asha Menon",
            "email": "asha@example.com",
            "phone": "+919800000001",
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def id_generator() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def payment_gateway() -> StubPaymentGateway:
    return StubPaymentGateway()


@pytest.fixture
def publisher() -> LoggingNotificationPublisher:
    return LoggingNotificationPublisher()


@pytest_asyncio.fixture
async def backend(settings, clock, id_generator, payment_gateway, publisher):
    backend = build_backend(
        settings,
        clock=clock,
        id_generator=id_generator,
        payment_gateway=payment_gateway,
        publisher=publisher,
    )
    if backend.database is not None:
        await backend.database.create_schema()
    await seed_backend(backend)
    yield backend
    await backend.dispose()


@pytest_asyncio.fixture
async def use_cases(backend):
    async with use_case_scope(backend) as use_cases:
        yield use_cases


@pytest.fixture
def app(settings, clock, id_generator, payment_gateway, publisher):
    return create_app(
        settings,
        clock=clock,
        id_generator=id_generator,
        payment_gateway=payment_gateway,
        publisher=publisher,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


async def pay(use_cases, booking_id: str, reference: str = "pay_ref_1"):
    """Open a payment order for ``booking_id`` and confirm it with a valid signature."""
    handle = await use_cases["create_payment_order"].execute(booking_id)
    return await use_cases["confirm_payment"].execute(
        order_id=handle.order_id,
        provider_reference=reference,
        signature=sign_payment(SIGNING_SECRET, handle.order_id, reference),
    )
