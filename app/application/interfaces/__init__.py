"""Ports of the application layer."""

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.coupon_repo import CouponRepo
from app.application.interfaces.id_generator import (
    IdGenerator,
    RandomIdGenerator,
    SequentialIdGenerator,
)
from app.application.interfaces.idempotency_repo import IdempotencyRecord, IdempotencyRepo
from app.application.interfaces.notification_publisher import NotificationPublisher
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.payment_gateway import GatewayOrder, PaymentGateway
from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.application.interfaces.resource_catalog import ResourceCatalog
from app.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "BookingRepo",
    "CouponRepo",
    "IdempotencyRecord",
    "IdempotencyRepo",
    "OutboxRepo",
    "PaymentOrderRepo",
    "ResourceCatalog",
    # Gateways
    "GatewayOrder",
    "NotificationPublisher",
    "PaymentGateway",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "IdGenerator",
    "RandomIdGenerator",
    "SequentialIdGenerator",
]
