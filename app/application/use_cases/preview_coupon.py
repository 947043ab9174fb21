from decimal import Decimal

from app.application.atomic import run_atomic
from app.application.dtos.booking_dto import CandidateBooking, CouponQuote
from app.application.interfaces.clock import Clock
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.check_availability import CheckAvailabilityUseCase
from app.application.use_cases.coupon_engine import CouponEngine
from app.domain.value_objects.money import quantize


class PreviewCouponUseCase:
    """Quote a coupon for a resource and amount without redeeming it."""

    def __init__(
        self,
        availability: CheckAvailabilityUseCase,
        coupon_engine: CouponEngine,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._availability = availability
        self._coupon_engine = coupon_engine
        self._transaction_manager = transaction_manager
        self._clock = clock

    async def execute(
        self, code: str, resource_id: str, base_amount: Decimal, user_id: str
    ) -> CouponQuote:
        async def quote() -> CouponQuote:
            resource = await self._availability.load_resource(resource_id)
            return await self._coupon_engine.preview(
                code,
                CandidateBooking(
                    category=resource.category.value, base_amount=quantize(base_amount)
                ),
                user_id,
                self._clock.now(),
            )

        return await run_atomic(self._transaction_manager, quote)
