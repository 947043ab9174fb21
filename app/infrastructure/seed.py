"""Demo catalog and coupons for local runs."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from app.application.interfaces.coupon_repo import CouponRepo
from app.application.interfaces.resource_catalog import ResourceCatalog
from app.domain.entities.coupon import Coupon, DiscountKind
from app.domain.entities.resource import CapacityUnit, ReservableResource, ResourceCategory

logger = logging.getLogger(__name__)

LODGING = ResourceCategory.LODGING.value
DINING = ResourceCategory.DINING.value
TRANSPORT = ResourceCategory.TRANSPORT.value

DEMO_RESOURCES = (
    ReservableResource(
        id="homestay-sea-view-room",
        name="Sea View Homestay - Deluxe Room",
        category=ResourceCategory.LODGING,
        capacity_unit=CapacityUnit.ROOM_NIGHT,
        unit_price=Decimal("3000.00"),
        owner_id="vendor-coastal-homestays",
        total_capacity=1,
        max_party_size=3,
    ),
    ReservableResource(
        id="fishermans-wharf-tables",
        name="Fisherman's Wharf Restaurant",
        category=ResourceCategory.DINING,
        capacity_unit=CapacityUnit.TABLE_SLOT,
        unit_price=Decimal("250.00"),
        owner_id="vendor-fishermans-wharf",
        total_capacity=8,
        max_party_size=6,
        slot_minutes=90,
    ),
    ReservableResource(
        id="city-driver-pool",
        name="Local Driver - Hourly",
        category=ResourceCategory.TRANSPORT,
        capacity_unit=CapacityUnit.VEHICLE_HOUR,
        unit_price=Decimal("400.00"),
        owner_id="vendor-city-drivers",
        total_capacity=3,
        max_party_size=4,
    ),
)


def demo_coupons(now: datetime) -> list[Coupon]:
    valid_from = now - timedelta(days=1)
    valid_until = now + timedelta(days=365)

    def coupon(**kwargs) -> Coupon:
        return Coupon(valid_from=valid_from, valid_until=valid_until, **kwargs)

    return [
        coupon(
            code="WELCOME100",
            discount_kind=DiscountKind.FIXED,
            discount_value=Decimal("100"),
            min_order_amount=Decimal("499"),
            usage_limit=1000,
            per_user_limit=1,
        ),
        coupon(
            code="STAYHOME40",
            discount_kind=DiscountKind.PERCENTAGE,
            discount_value=Decimal("40"),
            max_discount=Decimal("1000"),
            min_order_amount=Decimal("2000"),
            usage_limit=500,
            per_user_limit=2,
            applicable_categories=frozenset({LODGING}),
        ),
        coupon(
            code="DINE25",
            discount_kind=DiscountKind.PERCENTAGE,
            discount_value=Decimal("25"),
            max_discount=Decimal("500"),
            min_order_amount=Decimal("300"),
            usage_limit=300,
            per_user_limit=1,
            applicable_categories=frozenset({DINING}),
        ),
        coupon(
            code="RIDE50",
            discount_kind=DiscountKind.FIXED,
            discount_value=Decimal("50"),
            min_order_amount=Decimal("200"),
            usage_limit=1000,
            per_user_limit=3,
            applicable_categories=frozenset({TRANSPORT}),
        ),
        coupon(
            code="SAVE10",
            discount_kind=DiscountKind.PERCENTAGE,
            discount_value=Decimal("10"),
            max_discount=Decimal("500"),
            min_order_amount=Decimal("1000"),
            usage_limit=None,
            per_user_limit=1,
        ),
    ]


async def seed_demo_data(
    resource_catalog: ResourceCatalog,
    coupon_repo: CouponRepo,
    now: datetime,
) -> None:
    """Insert demo rows that are not there yet. Run inside a transaction."""
    for resource in DEMO_RESOURCES:
        if await resource_catalog.get(resource.id) is None:
            await resource_catalog.add(resource)
    for coupon in demo_coupons(now):
        if await coupon_repo.get(coupon.code) is None:
            await coupon_repo.add(coupon)
    logger.info(
        "Demo data seeded",
        extra={"resources": len(DEMO_RESOURCES)},
    )
