from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends

from app.api.deps import Backend, Repositories, get_backend, repositories_scope
from app.application.use_cases.booking_ledger import BookingLedger
from app.application.use_cases.check_availability import CheckAvailabilityUseCase
from app.application.use_cases.confirm_payment import ConfirmPaymentUseCase
from app.application.use_cases.coupon_engine import CouponEngine
from app.application.use_cases.create_booking import CreateBookingUseCase
from app.application.use_cases.create_payment_order import CreatePaymentOrderUseCase
from app.application.use_cases.dispatch_outbox import DispatchOutboxUseCase
from app.application.use_cases.expire_bookings import ExpireStaleBookingsUseCase
from app.application.use_cases.handle_stripe_webhook import HandleStripeWebhookUseCase
from app.application.use_cases.manage_booking import (
    CancelBookingUseCase,
    GetBookingUseCase,
    ListUserBookingsUseCase,
)
from app.application.use_cases.manage_coupons import (
    CreateCouponUseCase,
    ListActiveCouponsUseCase,
    ListCouponRedemptionsUseCase,
)
from app.application.use_cases.preview_coupon import PreviewCouponUseCase


def build_use_cases(backend: Backend, repos: Repositories) -> dict[str, Any]:
    settings = backend.settings
    locking = {
        "lock_timeout_seconds": settings.lock_timeout_seconds,
        "lock_retry_attempts": settings.lock_retry_attempts,
    }

    ledger = BookingLedger(
        booking_repo=repos.booking_repo,
        outbox_repo=repos.outbox_repo,
        payment_window_minutes=settings.payment_window_minutes,
    )
    availability = CheckAvailabilityUseCase(
        resource_catalog=repos.resource_catalog,
        booking_repo=repos.booking_repo,
    )
    coupon_engine = CouponEngine(coupon_repo=repos.coupon_repo)
    confirm_payment = ConfirmPaymentUseCase(
        ledger=ledger,
        payment_order_repo=repos.payment_order_repo,
        transaction_manager=repos.tx_manager,
        clock=backend.clock,
        signing_secret=settings.payment_signing_secret,
        **locking,
    )

    return {
        "repos": repos,
        "clock": backend.clock,
        "ledger": ledger,
        "check_availability": availability,
        "coupon_engine": coupon_engine,
        "preview_coupon": PreviewCouponUseCase(
            availability=availability,
            coupon_engine=coupon_engine,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
        ),
        "list_active_coupons": ListActiveCouponsUseCase(
            coupon_repo=repos.coupon_repo,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
        ),
        "create_coupon": CreateCouponUseCase(
            coupon_repo=repos.coupon_repo, transaction_manager=repos.tx_manager
        ),
        "list_coupon_redemptions": ListCouponRedemptionsUseCase(
            coupon_repo=repos.coupon_repo, transaction_manager=repos.tx_manager
        ),
        "create_booking": CreateBookingUseCase(
            availability=availability,
            coupon_engine=coupon_engine,
            ledger=ledger,
            idempotency_repo=repos.idempotency_repo,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
            id_generator=backend.id_generator,
            currency=settings.currency,
            grace_minutes=settings.booking_grace_minutes,
            **locking,
        ),
        "get_booking": GetBookingUseCase(ledger=ledger, transaction_manager=repos.tx_manager),
        "list_user_bookings": ListUserBookingsUseCase(
            booking_repo=repos.booking_repo, transaction_manager=repos.tx_manager
        ),
        "cancel_booking": CancelBookingUseCase(
            ledger=ledger,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
            **locking,
        ),
        "create_payment_order": CreatePaymentOrderUseCase(
            ledger=ledger,
            payment_order_repo=repos.payment_order_repo,
            payment_gateway=backend.payment_gateway,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
            gateway_timeout_seconds=settings.payment_gateway_timeout_seconds,
            **locking,
        ),
        "confirm_payment": confirm_payment,
        "handle_webhook": HandleStripeWebhookUseCase(
            confirm_payment=confirm_payment,
            payment_gateway=backend.payment_gateway,
            stripe_webhook_secret=settings.stripe_webhook_secret,
        ),
        "expire_bookings": ExpireStaleBookingsUseCase(
            booking_repo=repos.booking_repo,
            ledger=ledger,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
            batch_size=settings.expiry_sweep_batch_size,
            **locking,
        ),
        "dispatch_outbox": DispatchOutboxUseCase(
            outbox_repo=repos.outbox_repo,
            publisher=backend.publisher,
            transaction_manager=repos.tx_manager,
            clock=backend.clock,
            worker_id=backend.id_generator.worker_id(),
            batch_size=settings.outbox_batch_size,
            max_attempts=settings.outbox_max_attempts,
        ),
    }


@asynccontextmanager
async def use_case_scope(backend: Backend) -> AsyncIterator[dict[str, Any]]:
    async with repositories_scope(backend) as repos:
        yield build_use_cases(backend, repos)


async def get_use_cases(backend: Backend = Depends(get_backend)) -> AsyncIterator[dict[str, Any]]:
    async with use_case_scope(backend) as use_cases:
        yield use_cases
