import hashlib
import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any

from app.application.atomic import run_atomic
from app.application.dtos.booking_dto import (
    CandidateBooking,
    CreateBookingCommand,
    CreateBookingResult,
)
from app.application.interfaces.clock import Clock
from app.application.interfaces.id_generator import IdGenerator
from app.application.interfaces.idempotency_repo import (
    IdempotencyRecord,
    IdempotencyRepo,
)
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_ledger import BookingLedger
from app.application.use_cases.check_availability import (
    CheckAvailabilityUseCase,
    make_interval,
)
from app.application.use_cases.coupon_engine import CouponEngine
from app.domain.constants import IDEMPOTENCY_SCOPE_BOOKING_CREATE
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.errors import (
    IdempotencyConflictError,
    UnavailableError,
    ValidationError,
)
from app.domain.value_objects.money import quantize

logger = logging.getLogger(__name__)


def _hash_request(payload: dict[str, Any]) -> str:
    normalized = json.dumps(
        payload, sort_keys=True, default=str, separators=(",", ":")
    )
    return hashlib.sha256(normalized.encode()).hexdigest()


def booking_summary(booking: Booking) -> dict[str, Any]:
    return {
        "booking_id": booking.id,
        "status": booking.status.value,
        "base_amount": str(booking.base_amount),
        "discount_amount": str(booking.discount_amount),
        "final_amount": str(booking.final_amount),
        "currency": booking.currency,
        "expires_at": booking.expires_at.isoformat() if booking.expires_at else None,
    }


class CreateBookingUseCase:
    """
    Create a draft booking.

    Availability check, coupon redemption and the insert run as one atomic
    unit: the resource row is locked first, so two requests for the last
    unit of capacity are serialized and the loser sees ``Unavailable``.
    """

    def __init__(
        self,
        availability: CheckAvailabilityUseCase,
        coupon_engine: CouponEngine,
        ledger: BookingLedger,
        idempotency_repo: IdempotencyRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        id_generator: IdGenerator,
        currency: str = "INR",
        grace_minutes: int = 15,
        lock_timeout_seconds: float = 3.0,
        lock_retry_attempts: int = 3,
    ) -> None:
        self._availability = availability
        self._coupon_engine = coupon_engine
        self._ledger = ledger
        self._idempotency_repo = idempotency_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._id_generator = id_generator
        self._currency = currency
        self._grace = timedelta(minutes=grace_minutes)
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lock_retry_attempts = lock_retry_attempts

    async def execute(
        self,
        command: CreateBookingCommand,
        idem_key: str | None = None,
    ) -> Booking:
        result = await self.create(command, idem_key=idem_key)
        return result.booking

    async def create(
        self,
        command: CreateBookingCommand,
        idem_key: str | None = None,
    ) -> CreateBookingResult:
        """
        Create a draft, or replay the stored outcome of ``idem_key``.

        The key is looked up before any time-dependent validation, so a retry
        of a request that succeeded still gets its response after
        ``intervalStart`` has passed.
        """
        scope = IDEMPOTENCY_SCOPE_BOOKING_CREATE
        request_hash = _hash_request(command.fingerprint())

        if idem_key:

            async def lookup() -> CreateBookingResult | None:
                return await self._replay(scope, idem_key, request_hash)

            replayed = await run_atomic(self._transaction_manager, lookup)
            if replayed:
                return replayed

        interval = make_interval(command.interval_start, command.interval_end)
        if command.party_size < 1:
            raise ValidationError("partySize", "must be at least 1")
        if interval.start < self._clock.now():
            raise ValidationError("intervalStart", "must not be in the past")

        async def work() -> CreateBookingResult:
            now = self._clock.now()

            if idem_key:
                # A concurrent request with the same key may have committed
                replayed = await self._replay(scope, idem_key, request_hash)
                if replayed:
                    return replayed

            resource = await self._availability.load_resource(
                command.resource_id, for_update=True
            )
            if not resource.accepts_party_of(command.party_size):
                raise ValidationError(
                    "partySize",
                    f"exceeds the maximum of {resource.max_party_size} for this resource",
                )

            result = await self._availability.evaluate(
                resource, interval, command.party_size, now
            )
            for lapsed in result.lapsed_holds:
                await self._ledger.expire(lapsed.id, now)
            if not result.available:
                raise UnavailableError(resource.id, result.remaining_capacity)

            units = resource.billable_units(interval)
            base_amount = quantize(resource.unit_price * units)
            booking_id = self._id_generator.booking_id()

            quote = None
            if command.coupon_code and command.coupon_code.strip():
                quote = await self._coupon_engine.validate_and_apply(
                    command.coupon_code,
                    CandidateBooking(category=resource.category.value, base_amount=base_amount),
                    command.user_id,
                    now,
                )
            discount = quote.discount_amount if quote else Decimal("0.00")

            booking = Booking(
                id=booking_id,
                resource_id=resource.id,
                category=resource.category.value,
                user_id=command.user_id,
                interval_start=interval.start,
                interval_end=interval.end,
                party_size=command.party_size,
                units=units,
                currency=self._currency,
                base_amount=base_amount,
                discount_amount=discount,
                final_amount=base_amount - discount,
                status=BookingStatus.DRAFT,
                coupon_code=quote.code if quote else None,
                requester_name=command.requester_name,
                requester_email=command.requester_email,
                requester_phone=command.requester_phone,
                created_at=now,
                updated_at=now,
                expires_at=now + self._grace,
            )
            await self._ledger.create_draft(booking)
            if quote:
                await self._coupon_engine.redeem(quote, command.user_id, booking.id, now)

            created = CreateBookingResult(booking=booking, response=booking_summary(booking))
            if idem_key:
                await self._idempotency_repo.save(
                    IdempotencyRecord(
                        scope=scope,
                        idem_key=idem_key,
                        request_hash=request_hash,
                        response_json=created.response,
                        http_status=created.http_status,
                        reference_booking_id=booking.id,
                        created_at=now,
                    )
                )
            return created

        created = await run_atomic(
            self._transaction_manager,
            work,
            timeout_seconds=self._lock_timeout_seconds,
            max_attempts=self._lock_retry_attempts,
        )
        if created.replayed:
            return created

        booking = created.booking
        logger.info(
            "Draft booking created",
            extra={
                "booking_id": booking.id,
                "resource_id": booking.resource_id,
                "final_amount": str(booking.final_amount),
                "coupon_code": booking.coupon_code,
            },
        )
        return created

    async def _replay(
        self, scope: str, idem_key: str, request_hash: str
    ) -> CreateBookingResult | None:
        existing = await self._idempotency_repo.get(scope=scope, idem_key=idem_key)
        if existing is None:
            return None
        if existing.request_hash != request_hash:
            raise IdempotencyConflictError(idem_key, scope)
        booking = await self._ledger.get(existing.reference_booking_id)
        logger.info(
            "Create booking replayed",
            extra={"idem_key": idem_key, "booking_id": booking.id},
        )
        return CreateBookingResult(
            booking=booking,
            response=existing.response_json,
            http_status=existing.http_status,
            replayed=True,
        )
