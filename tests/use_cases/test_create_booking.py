"""
Draft booking creation.

Covers capacity accounting, pricing per capacity unit, request validation,
idempotent retries and lazy expiry of lapsed holds.
"""

import asyncio
from decimal import Decimal

import pytest

from app.domain.entities.booking import BookingStatus
from app.domain.errors import (
    IdempotencyConflictError,
    ResourceNotFoundError,
    UnavailableError,
    ValidationError,
)
from app.domain.value_objects.booking_interval import BookingInterval
from tests.conftest import DRIVERS, NOW, RESTAURANT, booking_command, pay, utc


class TestCreateDraft:
    @pytest.mark.asyncio
    async def test_creates_priced_draft(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())

        assert booking.id == "BK-TEST0001"
        assert booking.status == BookingStatus.DRAFT
        assert booking.units == 2
        assert booking.base_amount == Decimal("6000.00")
        assert booking.discount_amount == Decimal("0.00")
        assert booking.final_amount == Decimal("6000.00")
        assert booking.currency == "INR"
        assert (booking.expires_at - NOW).total_seconds() == 15 * 60

    @pytest.mark.asyncio
    async def test_table_slots_are_priced_per_slot(self, use_cases):
        booking = await use_cases["create_booking"].execute(
            booking_command(
                resource_id=RESTAURANT,
                interval_start=utc(2030, 1, 10, 19),
                interval_end=utc(2030, 1, 10, 21, 30),
                party_size=4,
            )
        )
        # 150 minutes in 90 minute slots
        assert booking.units == 2
        assert booking.base_amount == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_driver_hours_round_up(self, use_cases):
        booking = await use_cases["create_booking"].execute(
            booking_command(
                resource_id=DRIVERS,
                interval_start=utc(2030, 1, 10, 9),
                interval_end=utc(2030, 1, 10, 11, 10),
                party_size=1,
            )
        )
        assert booking.units == 3
        assert booking.base_amount == Decimal("1200.00")


class TestCapacity:
    @pytest.mark.asyncio
    async def test_jan_10_to_12_scenario(self, use_cases):
        create = use_cases["create_booking"]
        first = await create.execute(booking_command())

        with pytest.raises(UnavailableError):
            await create.execute(
                booking_command(
                    user_id="user-2",
                    interval_start=utc(2030, 1, 11),
                    interval_end=utc(2030, 1, 13),
                )
            )

        result = await pay(use_cases, first.id)
        assert result.booking.status == BookingStatus.CONFIRMED

        second = await create.execute(
            booking_command(
                user_id="user-2",
                interval_start=utc(2030, 1, 12),
                interval_end=utc(2030, 1, 14),
            )
        )
        assert second.status == BookingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_pool_capacity_counts_overlaps(self, use_cases):
        create = use_cases["create_booking"]
        driver_slot = {
            "resource_id": DRIVERS,
            "interval_start": utc(2030, 1, 10, 9),
            "interval_end": utc(2030, 1, 10, 12),
            "party_size": 1,
        }
        for n in range(3):
            await create.execute(booking_command(user_id=f"user-{n}", **driver_slot))

        with pytest.raises(UnavailableError) as exc_info:
            await create.execute(booking_command(user_id="user-late", **driver_slot))
        assert exc_info.value.remaining_capacity == 0

        availability = await use_cases["check_availability"].execute(
            DRIVERS,
            BookingInterval(start=utc(2030, 1, 10, 12), end=utc(2030, 1, 10, 13)),
            1,
            NOW,
        )
        assert availability.available
        assert availability.remaining_capacity == 3

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_capacity(self, use_cases):
        create = use_cases["create_booking"]
        first = await create.execute(booking_command())
        await use_cases["cancel_booking"].execute(first.id, user_id="user-1")

        second = await create.execute(booking_command(user_id="user-2"))
        assert second.status == BookingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_lapsed_hold_is_expired_by_the_next_booking(self, use_cases, clock):
        create = use_cases["create_booking"]
        first = await create.execute(booking_command())

        clock.advance(minutes=16)
        second = await create.execute(booking_command(user_id="user-2"))

        assert second.status == BookingStatus.DRAFT
        lapsed = await use_cases["get_booking"].execute(first.id)
        assert lapsed.status == BookingStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_two_requests_for_the_last_room(self, use_cases):
        create = use_cases["create_booking"]
        results = await asyncio.gather(
            create.execute(booking_command(user_id="user-a")),
            create.execute(booking_command(user_id="user-b")),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, UnavailableError)]
        assert len(created) == 1
        assert len(rejected) == 1


class TestValidation:
    @pytest.mark.asyncio
    async def test_unknown_resource(self, use_cases):
        with pytest.raises(ResourceNotFoundError):
            await use_cases["create_booking"].execute(booking_command(resource_id="nope"))

    @pytest.mark.asyncio
    async def test_start_in_the_past(self, use_cases):
        with pytest.raises(ValidationError):
            await use_cases["create_booking"].execute(
                booking_command(interval_start=utc(2029, 12, 31), interval_end=utc(2030, 1, 2))
            )

    @pytest.mark.asyncio
    async def test_inverted_interval(self, use_cases):
        with pytest.raises(ValidationError) as exc_info:
            await use_cases["create_booking"].execute(
                booking_command(interval_start=utc(2030, 1, 12), interval_end=utc(2030, 1, 10))
            )
        assert exc_info.value.field == "interval"

    @pytest.mark.asyncio
    async def test_party_size_must_be_positive(self, use_cases):
        with pytest.raises(ValidationError):
            await use_cases["create_booking"].execute(booking_command(party_size=0))

    @pytest.mark.asyncio
    async def test_party_size_above_resource_maximum(self, use_cases):
        with pytest.raises(ValidationError) as exc_info:
            await use_cases["create_booking"].execute(booking_command(party_size=4))
        assert exc_info.value.field == "partySize"


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_replay_after_start_returns_stored_response(self, use_cases, clock):
        create = use_cases["create_booking"]
        first = await create.create(booking_command(), idem_key="idem-late")
        await use_cases["create_payment_order"].execute(first.booking.id)
        # The stay has begun; a fresh request would be refused as in the past
        clock.advance(days=9, hours=12)

        again = await create.create(booking_command(), idem_key="idem-late")

        assert again.replayed
        assert again.http_status == 201
        assert again.response == first.response
        assert again.response["status"] == "draft"
        assert again.booking.status == BookingStatus.AWAITING_PAYMENT

        with pytest.raises(ValidationError):
            await create.execute(booking_command())

    @pytest.mark.asyncio
    async def test_same_key_returns_the_same_booking(self, use_cases):
        create = use_cases["create_booking"]
        first = await create.execute(booking_command(), idem_key="idem-1")
        again = await create.execute(booking_command(), idem_key="idem-1")

        assert again.id == first.id
        assert again.status == BookingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_same_key_with_another_request_conflicts(self, use_cases):
        create = use_cases["create_booking"]
        await create.execute(booking_command(), idem_key="idem-2")

        with pytest.raises(IdempotencyConflictError):
            await create.execute(
                booking_command(interval_start=utc(2030, 2, 1), interval_end=utc(2030, 2, 3)),
                idem_key="idem-2",
            )
