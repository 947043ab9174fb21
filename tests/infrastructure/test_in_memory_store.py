"""
Rollback of in-memory transactions.

Only rows a transaction wrote are restored; everything else keeps its
identity, so a write never pays for the size of the tables.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.coupon import Coupon, CouponRedemption, DiscountKind
from app.infrastructure.in_memory import (
    InMemoryBookingRepo,
    InMemoryCouponRepo,
    InMemoryDatabase,
    InMemoryTransactionManager,
)
from tests.conftest import NOW, utc


class Boom(Exception):
    pass


def make_booking(booking_id: str) -> Booking:
    return Booking(
        id=booking_id,
        resource_id="homestay-sea-view-room",
        category="lodging",
        user_id="user-1",
        interval_start=utc(2030, 1, 10),
        interval_end=utc(2030, 1, 12),
        party_size=2,
        units=2,
        currency="INR",
        base_amount=Decimal("6000.00"),
        discount_amount=Decimal("0.00"),
        final_amount=Decimal("6000.00"),
        created_at=NOW,
        updated_at=NOW,
        expires_at=NOW + timedelta(minutes=15),
    )


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def tm(db):
    return InMemoryTransactionManager(db)


async def seed(db, tm):
    async with tm.start():
        await InMemoryBookingRepo(db).add(make_booking("BK-OLD"))
        await InMemoryCouponRepo(db).add(
            Coupon(
                code="FLASH",
                discount_kind=DiscountKind.FIXED,
                discount_value=Decimal("100"),
                valid_from=NOW - timedelta(days=1),
                valid_until=NOW + timedelta(days=1),
                usage_limit=5,
            )
        )


class TestRollback:
    @pytest.mark.asyncio
    async def test_failed_transaction_restores_written_rows(self, db, tm):
        await seed(db, tm)
        bookings = InMemoryBookingRepo(db)
        coupons = InMemoryCouponRepo(db)

        with pytest.raises(Boom):
            async with tm.start():
                await bookings.add(make_booking("BK-NEW"))
                old = await bookings.get("BK-OLD")
                expected = old.lock_version
                old.cancel(now=NOW)
                assert await bookings.save(old, expected_lock_version=expected)
                assert await coupons.try_increment_usage("FLASH")
                await coupons.add_redemption(
                    CouponRedemption(
                        coupon_code="FLASH",
                        booking_id="BK-NEW",
                        user_id="user-1",
                        discount_amount=Decimal("100"),
                        redeemed_at=NOW,
                    )
                )
                raise Boom()

        assert "BK-NEW" not in db.bookings
        assert db.bookings["BK-OLD"].status == BookingStatus.DRAFT
        assert db.coupons["FLASH"].usage_count == 0
        assert db.coupon_redemptions == []

    @pytest.mark.asyncio
    async def test_untouched_rows_are_not_copied(self, db, tm):
        await seed(db, tm)
        untouched_booking = db.bookings["BK-OLD"]
        untouched_coupon = db.coupons["FLASH"]

        with pytest.raises(Boom):
            async with tm.start():
                await InMemoryBookingRepo(db).add(make_booking("BK-NEW"))
                raise Boom()

        assert db.bookings["BK-OLD"] is untouched_booking
        assert db.coupons["FLASH"] is untouched_coupon

    @pytest.mark.asyncio
    async def test_committed_writes_survive_a_later_rollback(self, db, tm):
        await seed(db, tm)
        bookings = InMemoryBookingRepo(db)

        async with tm.start():
            await bookings.add(make_booking("BK-KEPT"))
        with pytest.raises(Boom):
            async with tm.start():
                kept = await bookings.get("BK-KEPT")
                expected = kept.lock_version
                kept.cancel(now=NOW)
                await bookings.save(kept, expected_lock_version=expected)
                raise Boom()

        assert db.bookings["BK-KEPT"].status == BookingStatus.DRAFT
