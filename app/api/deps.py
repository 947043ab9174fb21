"""Application backend: storage handle, shared adapters and per-request repositories."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import Request

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock, SystemClock
from app.application.interfaces.coupon_repo import CouponRepo
from app.application.interfaces.id_generator import IdGenerator, RandomIdGenerator
from app.application.interfaces.idempotency_repo import IdempotencyRepo
from app.application.interfaces.notification_publisher import NotificationPublisher
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.payment_gateway import PaymentGateway
from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.application.interfaces.resource_catalog import ResourceCatalog
from app.application.interfaces.transaction_manager import TransactionManager
from app.config import Settings
from app.infrastructure.db.engine import Database
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.coupon_repo_sql import CouponRepoSQL
from app.infrastructure.db.repositories.idempotency_repo_sql import IdempotencyRepoSQL
from app.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from app.infrastructure.db.repositories.payment_order_repo_sql import PaymentOrderRepoSQL
from app.infrastructure.db.repositories.resource_catalog_sql import ResourceCatalogSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.notification_http import HttpNotificationPublisher
from app.infrastructure.gateways.stripe_payment_gateway import StripePaymentGateway
from app.infrastructure.in_memory import (
    InMemoryBookingRepo,
    InMemoryCouponRepo,
    InMemoryDatabase,
    InMemoryIdempotencyRepo,
    InMemoryOutboxRepo,
    InMemoryPaymentOrderRepo,
    InMemoryResourceCatalog,
    InMemoryTransactionManager,
    LoggingNotificationPublisher,
    StubPaymentGateway,
)


@dataclass
class Repositories:
    resource_catalog: ResourceCatalog
    booking_repo: BookingRepo
    payment_order_repo: PaymentOrderRepo
    coupon_repo: CouponRepo
    idempotency_repo: IdempotencyRepo
    outbox_repo: OutboxRepo
    tx_manager: TransactionManager


@dataclass
class Backend:
    """Everything that lives for the whole app lifetime. Stored on ``app.state``."""

    settings: Settings
    clock: Clock
    id_generator: IdGenerator
    payment_gateway: PaymentGateway
    publisher: NotificationPublisher
    database: Database | None = None
    memory: InMemoryDatabase | None = None

    async def ping(self) -> None:
        if self.database is not None:
            await self.database.ping()

    async def dispose(self) -> None:
        if self.database is not None:
            await self.database.dispose()


def build_backend(
    settings: Settings,
    clock: Clock | None = None,
    id_generator: IdGenerator | None = None,
    payment_gateway: PaymentGateway | None = None,
    publisher: NotificationPublisher | None = None,
    database: Database | None = None,
) -> Backend:
    if payment_gateway is None:
        if settings.stripe_api_key:
            payment_gateway = StripePaymentGateway(
                api_key=settings.stripe_api_key,
                timeout_seconds=settings.payment_gateway_timeout_seconds,
            )
        else:
            payment_gateway = StubPaymentGateway()

    if publisher is None:
        if settings.notification_webhook_url:
            publisher = HttpNotificationPublisher(
                webhook_url=settings.notification_webhook_url,
                timeout_seconds=settings.notification_timeout_seconds,
            )
        else:
            publisher = LoggingNotificationPublisher()

    backend = Backend(
        settings=settings,
        clock=clock or SystemClock(),
        id_generator=id_generator or RandomIdGenerator(),
        payment_gateway=payment_gateway,
        publisher=publisher,
    )
    if settings.use_in_memory and database is None:
        backend.memory = InMemoryDatabase(lock_timeout_seconds=settings.lock_timeout_seconds)
    else:
        backend.database = database or Database.from_settings(settings)
    return backend


@asynccontextmanager
async def repositories_scope(backend: Backend) -> AsyncIterator[Repositories]:
    """Repositories sharing one unit of work: a session in SQL mode."""
    if backend.memory is not None:
        db = backend.memory
        yield Repositories(
            resource_catalog=InMemoryResourceCatalog(db),
            booking_repo=InMemoryBookingRepo(db),
            payment_order_repo=InMemoryPaymentOrderRepo(db),
            coupon_repo=InMemoryCouponRepo(db),
            idempotency_repo=InMemoryIdempotencyRepo(db),
            outbox_repo=InMemoryOutboxRepo(db),
            tx_manager=InMemoryTransactionManager(db),
        )
        return

    async with backend.database.session() as session:
        yield Repositories(
            resource_catalog=ResourceCatalogSQL(session),
            booking_repo=BookingRepoSQL(session),
            payment_order_repo=PaymentOrderRepoSQL(session),
            coupon_repo=CouponRepoSQL(session),
            idempotency_repo=IdempotencyRepoSQL(session),
            outbox_repo=OutboxRepoSQL(session),
            tx_manager=SQLAlchemyTransactionManager(session),
        )


def get_backend(request: Request) -> Backend:
    return request.app.state.backend
