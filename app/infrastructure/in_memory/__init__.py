"""In-memory adapters for local runs and tests."""

from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.coupon_repo import InMemoryCouponRepo
from app.infrastructure.in_memory.idempotency_repo import InMemoryIdempotencyRepo
from app.infrastructure.in_memory.notification_publisher import LoggingNotificationPublisher
from app.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.payment_order_repo import InMemoryPaymentOrderRepo
from app.infrastructure.in_memory.resource_catalog import InMemoryResourceCatalog
from app.infrastructure.in_memory.store import InMemoryDatabase
from app.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager

__all__ = [
    # Storage
    "InMemoryDatabase",
    # Repositories
    "InMemoryBookingRepo",
    "InMemoryCouponRepo",
    "InMemoryIdempotencyRepo",
    "InMemoryOutboxRepo",
    "InMemoryPaymentOrderRepo",
    "InMemoryResourceCatalog",
    # Gateways
    "LoggingNotificationPublisher",
    "StubPaymentGateway",
    # Infrastructure
    "InMemoryTransactionManager",
]
