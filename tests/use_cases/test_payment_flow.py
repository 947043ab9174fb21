"""
Payment order bridge and confirmation processor.

- Orders are created once per booking, outside the booking lock
- Gateway failures leave the booking in draft
- Confirmations are signature checked and safe to replay
- A paid order whose booking already lapsed is rejected and rolled back
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.application.atomic import run_atomic
from app.application.use_cases.confirm_payment import sign_payment
from app.domain.constants import EVENT_BOOKING_CONFIRMED
from app.domain.entities.booking import BookingStatus
from app.domain.entities.payment_order import PaymentOrderStatus
from app.domain.errors import (
    BookingNotFoundError,
    GatewayError,
    GatewayTimeoutError,
    InvalidSignatureError,
    InvalidStateTransitionError,
    UnknownOrderError,
)
from tests.conftest import SIGNING_SECRET, booking_command, make_settings, pay


async def load_order(use_cases, order_id):
    repos = use_cases["repos"]

    async def work():
        return await repos.payment_order_repo.get(order_id)

    return await run_atomic(repos.tx_manager, work)


async def outbox_for(use_cases, booking_id):
    repos = use_cases["repos"]

    async def work():
        return await repos.outbox_repo.list_by_aggregate(booking_id)

    return await run_atomic(repos.tx_manager, work)


class TestCreatePaymentOrder:
    @pytest.mark.asyncio
    async def test_draft_moves_to_awaiting_payment(self, use_cases, clock):
        booking = await use_cases["create_booking"].execute(booking_command())
        handle = await use_cases["create_payment_order"].execute(booking.id)

        assert handle.booking_id == booking.id
        assert handle.amount == booking.final_amount
        assert handle.currency == "INR"
        assert handle.provider == "stub"
        assert handle.client_handle

        current = await use_cases["get_booking"].execute(booking.id)
        assert current.status == BookingStatus.AWAITING_PAYMENT
        assert current.payment_order_id == handle.order_id
        assert (current.expires_at - clock.now()).total_seconds() == 30 * 60

    @pytest.mark.asyncio
    async def test_retry_returns_the_existing_order(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        first = await use_cases["create_payment_order"].execute(booking.id)
        second = await use_cases["create_payment_order"].execute(booking.id)
        assert second.order_id == first.order_id

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_order(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        handles = await asyncio.gather(
            use_cases["create_payment_order"].execute(booking.id),
            use_cases["create_payment_order"].execute(booking.id),
        )
        assert handles[0].order_id == handles[1].order_id

    @pytest.mark.asyncio
    async def test_unknown_booking(self, use_cases):
        with pytest.raises(BookingNotFoundError):
            await use_cases["create_payment_order"].execute("BK-MISSING")

    @pytest.mark.asyncio
    async def test_expired_hold_cannot_be_paid(self, use_cases, clock):
        booking = await use_cases["create_booking"].execute(booking_command())
        clock.advance(minutes=15)
        with pytest.raises(InvalidStateTransitionError):
            await use_cases["create_payment_order"].execute(booking.id)

    @pytest.mark.asyncio
    async def test_cancelled_booking_cannot_be_paid(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        await use_cases["cancel_booking"].execute(booking.id, user_id="user-1")
        with pytest.raises(InvalidStateTransitionError):
            await use_cases["create_payment_order"].execute(booking.id)


class TestGatewayFailures:
    @pytest.fixture
    def settings(self):
        return make_settings(payment_gateway_timeout_seconds=0.05)

    @pytest.fixture
    def payment_gateway(self):
        gateway = AsyncMock()
        gateway.provider = "stub"
        return gateway

    @pytest.mark.asyncio
    async def test_timeout_keeps_booking_in_draft(self, use_cases, payment_gateway):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        payment_gateway.create_order.side_effect = slow
        booking = await use_cases["create_booking"].execute(booking_command())

        with pytest.raises(GatewayTimeoutError):
            await use_cases["create_payment_order"].execute(booking.id)

        current = await use_cases["get_booking"].execute(booking.id)
        assert current.status == BookingStatus.DRAFT
        assert current.payment_order_id is None

    @pytest.mark.asyncio
    async def test_gateway_error_keeps_booking_in_draft(self, use_cases, payment_gateway):
        payment_gateway.create_order.side_effect = GatewayError("card network down")
        booking = await use_cases["create_booking"].execute(booking_command())

        with pytest.raises(GatewayError):
            await use_cases["create_payment_order"].execute(booking.id)

        current = await use_cases["get_booking"].execute(booking.id)
        assert current.status == BookingStatus.DRAFT

    @pytest.mark.asyncio
    async def test_gateway_receives_final_amount_and_stable_key(self, use_cases, payment_gateway):
        payment_gateway.create_order.side_effect = GatewayError("declined")
        booking = await use_cases["create_booking"].execute(booking_command(coupon_code="SAVE10"))

        for _ in range(2):
            with pytest.raises(GatewayError):
                await use_cases["create_payment_order"].execute(booking.id)

        calls = payment_gateway.create_order.await_args_list
        assert calls[0].kwargs["amount"] == booking.final_amount
        assert calls[0].kwargs["currency"] == "INR"
        assert calls[0].kwargs["idempotency_key"] == calls[1].kwargs["idempotency_key"]


class TestConfirmPayment:
    @pytest.mark.asyncio
    async def test_confirms_and_enqueues_notification(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        result = await pay(use_cases, booking.id, reference="pay_abc")

        assert result.newly_confirmed
        assert result.booking.status == BookingStatus.CONFIRMED
        assert result.booking.payment_reference == "pay_abc"
        assert result.booking.expires_at is None

        order = await load_order(use_cases, result.booking.payment_order_id)
        assert order.status == PaymentOrderStatus.PAID
        assert order.provider_reference == "pay_abc"

        events = await outbox_for(use_cases, booking.id)
        assert [e.event_type for e in events] == [EVENT_BOOKING_CONFIRMED]

    @pytest.mark.asyncio
    async def test_replay_changes_nothing(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command(coupon_code="SAVE10"))
        first = await pay(use_cases, booking.id, reference="pay_abc")
        order_id = first.booking.payment_order_id
        signature = sign_payment(SIGNING_SECRET, order_id, "pay_abc")

        for _ in range(3):
            again = await use_cases["confirm_payment"].execute(
                order_id=order_id, provider_reference="pay_abc", signature=signature
            )
            assert not again.newly_confirmed
            assert again.booking.status == BookingStatus.CONFIRMED
            assert again.booking.lock_version == first.booking.lock_version

        events = await outbox_for(use_cases, booking.id)
        assert len(events) == 1

        repos = use_cases["repos"]

        async def coupon_state():
            return await repos.coupon_repo.get("SAVE10")

        coupon = await run_atomic(repos.tx_manager, coupon_state)
        assert coupon.usage_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_confirmations(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        handle = await use_cases["create_payment_order"].execute(booking.id)
        signature = sign_payment(SIGNING_SECRET, handle.order_id, "pay_dup")

        results = await asyncio.gather(
            *[
                use_cases["confirm_payment"].execute(
                    order_id=handle.order_id, provider_reference="pay_dup", signature=signature
                )
                for _ in range(5)
            ]
        )

        assert sum(1 for r in results if r.newly_confirmed) == 1
        assert all(r.booking.status == BookingStatus.CONFIRMED for r in results)
        assert len(await outbox_for(use_cases, booking.id)) == 1

    @pytest.mark.asyncio
    async def test_bad_signature_leaves_booking_untouched(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        handle = await use_cases["create_payment_order"].execute(booking.id)

        with pytest.raises(InvalidSignatureError):
            await use_cases["confirm_payment"].execute(
                order_id=handle.order_id,
                provider_reference="pay_abc",
                signature=sign_payment("wrong-secret", handle.order_id, "pay_abc"),
            )

        current = await use_cases["get_booking"].execute(booking.id)
        assert current.status == BookingStatus.AWAITING_PAYMENT

    @pytest.mark.asyncio
    async def test_unknown_order(self, use_cases):
        with pytest.raises(UnknownOrderError):
            await use_cases["confirm_payment"].execute(
                order_id="order_missing",
                provider_reference="pay_abc",
                signature=sign_payment(SIGNING_SECRET, "order_missing", "pay_abc"),
            )

    @pytest.mark.asyncio
    async def test_payment_after_expiry_is_rejected(self, use_cases, clock):
        booking = await use_cases["create_booking"].execute(booking_command())
        handle = await use_cases["create_payment_order"].execute(booking.id)

        clock.advance(minutes=31)
        report = await use_cases["expire_bookings"].execute()
        assert report.expired == 1

        with pytest.raises(InvalidStateTransitionError):
            await use_cases["confirm_payment"].execute(
                order_id=handle.order_id,
                provider_reference="pay_late",
                signature=sign_payment(SIGNING_SECRET, handle.order_id, "pay_late"),
            )

        # The order CAS rolled back with the rejected confirmation.
        order = await load_order(use_cases, handle.order_id)
        assert order.status == PaymentOrderStatus.CREATED
        current = await use_cases["get_booking"].execute(booking.id)
        assert current.status == BookingStatus.EXPIRED


class TestRecordFailure:
    @pytest.mark.asyncio
    async def test_failure_fails_waiting_booking(self, use_cases):
        booking = await use_cases["create_booking"].execute(booking_command())
        handle = await use_cases["create_payment_order"].execute(booking.id)

        failed = await use_cases["confirm_payment"].record_failure(handle.order_id, "card declined")
        assert failed.status == BookingStatus.FAILED
        assert failed.failure_reason == "card declined"

        again = await use_cases["confirm_payment"].record_failure(handle.order_id, "card declined")
        assert again.status == BookingStatus.FAILED

        order = await load_order(use_cases, handle.order_id)
        assert order.status == PaymentOrderStatus.FAILED
