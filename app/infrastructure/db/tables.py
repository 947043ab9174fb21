from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()


def to_db_time(value: datetime | None) -> datetime | None:
    """Datetimes are stored as naive UTC so every backend compares them alike."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


reservable_resources = Table(
    "reservable_resources",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("category", String(20), nullable=False),
    Column("capacity_unit", String(20), nullable=False),
    Column("unit_price", Numeric(12, 2), nullable=False),
    Column("owner_id", String(64), nullable=False),
    Column("total_capacity", Integer, nullable=False, default=1),
    Column("max_party_size", Integer),
    Column("slot_minutes", Integer, nullable=False, default=60),
    Column("is_active", Boolean, nullable=False, default=True),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("resource_id", String(64), ForeignKey("reservable_resources.id"), nullable=False),
    Column("category", String(20), nullable=False),
    Column("user_id", String(64), nullable=False),
    Column("requester_name", String(255)),
    Column("requester_email", String(255)),
    Column("requester_phone", String(50)),
    Column("interval_start", DateTime, nullable=False),
    Column("interval_end", DateTime, nullable=False),
    Column("party_size", Integer, nullable=False),
    Column("units", Integer, nullable=False),
    Column("currency", String(3), nullable=False),
    Column("base_amount", Numeric(12, 2), nullable=False),
    Column("discount_amount", Numeric(12, 2), nullable=False),
    Column("final_amount", Numeric(12, 2), nullable=False),
    Column("coupon_code", String(50)),
    Column("status", String(32), nullable=False),
    Column("payment_order_id", String(128)),
    Column("payment_reference", String(128)),
    Column("failure_reason", String(500)),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
    Column("expires_at", DateTime),
    Column("updated_at", DateTime, nullable=False),
    Index("ix_bookings_resource_status", "resource_id", "status"),
    Index("ix_bookings_status_expires", "status", "expires_at"),
)

payment_orders = Table(
    "payment_orders",
    metadata,
    Column("id", String(128), primary_key=True),
    Column("booking_id", String(32), ForeignKey("bookings.id"), nullable=False, unique=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("provider", String(20), nullable=False),
    Column("status", String(20), nullable=False),
    Column("client_handle", String(255)),
    Column("provider_reference", String(128)),
    Column("signature", String(128)),
    Column("failure_reason", String(500)),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

coupons = Table(
    "coupons",
    metadata,
    Column("code", String(50), primary_key=True),
    Column("discount_kind", String(20), nullable=False),
    Column("discount_value", Numeric(12, 2), nullable=False),
    Column("max_discount", Numeric(12, 2)),
    Column("min_order_amount", Numeric(12, 2), nullable=False, default=0),
    Column("usage_limit", Integer),
    Column("usage_count", Integer, nullable=False, default=0),
    Column("per_user_limit", Integer, nullable=False, default=1),
    Column("applicable_categories", JSON, nullable=False),
    Column("valid_from", DateTime, nullable=False),
    Column("valid_until", DateTime, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
)

coupon_redemptions = Table(
    "coupon_redemptions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("coupon_code", String(50), ForeignKey("coupons.code"), nullable=False),
    Column("booking_id", String(32), ForeignKey("bookings.id"), nullable=False),
    Column("user_id", String(64), nullable=False),
    Column("discount_amount", Numeric(12, 2), nullable=False),
    Column("redeemed_at", DateTime, nullable=False),
    Index("ix_coupon_redemptions_code_user", "coupon_code", "user_id"),
)

idempotency_keys = Table(
    "idempotency_keys",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("scope", String(50), nullable=False),
    Column("idem_key", String(128), nullable=False),
    Column("request_hash", String(64), nullable=False),
    Column("response_json", JSON),
    Column("http_status", Integer),
    Column("reference_booking_id", String(32)),
    Column("created_at", DateTime),
    UniqueConstraint("scope", "idem_key", name="uq_idempotency_scope_key"),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", String(50), nullable=False),
    Column("aggregate_type", String(30), nullable=False),
    Column("aggregate_id", String(64), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(20), nullable=False),
    Column("attempts", Integer, nullable=False, default=0),
    Column("next_attempt_at", DateTime),
    Column("locked_by", String(100)),
    Column("lock_expires_at", DateTime),
    Column("last_error", Text),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime),
    Index("ix_outbox_status_next_attempt", "status", "next_attempt_at"),
)
