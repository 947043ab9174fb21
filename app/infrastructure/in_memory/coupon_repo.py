import copy
from datetime import datetime

from app.application.interfaces.coupon_repo import CouponRepo
from app.domain.entities.coupon import Coupon, CouponRedemption, normalize_code
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryCouponRepo(CouponRepo):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get(self, code: str, for_update: bool = False) -> Coupon | None:
        coupon = self._db.coupons.get(normalize_code(code))
        return copy.copy(coupon) if coupon else None

    async def add(self, coupon: Coupon) -> None:
        self._db.before_write("coupons", coupon.code)
        self._db.coupons[coupon.code] = copy.copy(coupon)

    async def list_active(self, now: datetime) -> list[Coupon]:
        return [
            copy.copy(coupon)
            for code, coupon in sorted(self._db.coupons.items())
            if coupon.is_active and coupon.valid_from <= now <= coupon.valid_until
        ]

    async def count_user_redemptions(
        self, code: str, user_id: str, for_update: bool = False
    ) -> int:
        code = normalize_code(code)
        return sum(
            1
            for redemption in self._db.coupon_redemptions
            if redemption.coupon_code == code and redemption.user_id == user_id
        )

    async def try_increment_usage(self, code: str) -> bool:
        coupon = self._db.coupons.get(normalize_code(code))
        if coupon is None:
            return False
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return False
        self._db.before_write("coupons", coupon.code)
        coupon.usage_count += 1
        return True

    async def add_redemption(self, redemption: CouponRedemption) -> None:
        self._db.before_append("coupon_redemptions")
        self._db.coupon_redemptions.append(copy.copy(redemption))

    async def list_redemptions(self, code: str) -> list[CouponRedemption]:
        code = normalize_code(code)
        return [
            copy.copy(redemption)
            for redemption in self._db.coupon_redemptions
            if redemption.coupon_code == code
        ]
