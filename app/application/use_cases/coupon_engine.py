import logging
from datetime import datetime

from app.application.dtos.booking_dto import CandidateBooking, CouponQuote
from app.application.interfaces.coupon_repo import CouponRepo
from app.domain.entities.coupon import Coupon, CouponRedemption, normalize_code
from app.domain.errors import CouponLimitReachedError, CouponNotFoundError

logger = logging.getLogger(__name__)


class CouponEngine:
    """
    Validates coupon codes against a candidate booking and records redemptions.

    Checks run in a fixed order and the first failure wins: unknown code,
    validity window, category, minimum amount, global limit, per-user limit.
    """

    def __init__(self, coupon_repo: CouponRepo) -> None:
        self._coupon_repo = coupon_repo

    async def _checked_coupon(
        self,
        code: str,
        candidate: CandidateBooking,
        user_id: str,
        now: datetime,
    ) -> Coupon:
        coupon = await self._coupon_repo.get(code)
        if coupon is None or not coupon.is_active:
            raise CouponNotFoundError(code)

        coupon.check_validity_window(now)
        coupon.check_applicable(candidate.category)
        coupon.check_minimum(candidate.base_amount)
        coupon.check_global_usage()
        coupon.check_user_usage(
            await self._coupon_repo.count_user_redemptions(coupon.code, user_id)
        )
        return coupon

    async def validate_and_apply(
        self,
        code: str,
        candidate: CandidateBooking,
        user_id: str,
        now: datetime,
    ) -> CouponQuote:
        """Quote the discount for ``candidate`` without side effects."""
        code = normalize_code(code)
        coupon = await self._checked_coupon(code, candidate, user_id, now)
        discount = coupon.discount_for(candidate.base_amount)
        return CouponQuote(
            code=coupon.code,
            discount_amount=discount,
            final_amount=candidate.base_amount - discount,
        )

    # Read-only entry point used by the coupon validation endpoint.
    preview = validate_and_apply

    async def redeem(
        self,
        quote: CouponQuote,
        user_id: str,
        booking_id: str,
        now: datetime,
    ) -> None:
        """
        Consume one use of a quoted coupon for ``booking_id``.

        Must run inside the transaction that inserts the booking. Redeemers of
        one coupon queue on its row lock, and the per-user recount is a locking
        read so it sees redemptions committed while this one waited. The global
        counter is bumped with a conditional update and can never pass
        ``usage_limit``.
        """
        coupon = await self._coupon_repo.get(quote.code, for_update=True)
        if coupon is None:
            raise CouponNotFoundError(quote.code)
        coupon.check_user_usage(
            await self._coupon_repo.count_user_redemptions(
                quote.code, user_id, for_update=True
            )
        )
        if not await self._coupon_repo.try_increment_usage(quote.code):
            raise CouponLimitReachedError(quote.code)

        await self._coupon_repo.add_redemption(
            CouponRedemption(
                coupon_code=quote.code,
                booking_id=booking_id,
                user_id=user_id,
                discount_amount=quote.discount_amount,
                redeemed_at=now,
            )
        )
        logger.info(
            "Coupon redeemed",
            extra={
                "coupon_code": quote.code,
                "booking_id": booking_id,
                "discount_amount": str(quote.discount_amount),
            },
        )
