from datetime import datetime

from app.domain.entities.coupon import Coupon, CouponRedemption


class CouponRepo:
    async def get(self, code: str, for_update: bool = False) -> Coupon | None:
        raise NotImplementedError

    async def add(self, coupon: Coupon) -> None:
        raise NotImplementedError

    async def list_active(self, now: datetime) -> list[Coupon]:
        """Active coupons whose validity window contains ``now``, by code."""
        raise NotImplementedError

    async def count_user_redemptions(
        self, code: str, user_id: str, for_update: bool = False
    ) -> int:
        """
        Redemptions of ``code`` by ``user_id``.

        With ``for_update`` the count is a locking read, so it sees rows
        committed after the transaction's snapshot was taken.
        """
        raise NotImplementedError

    async def try_increment_usage(self, code: str) -> bool:
        """
        Atomically bump ``usage_count`` if the global limit allows it.

        Returns False when the limit is already reached.
        """
        raise NotImplementedError

    async def add_redemption(self, redemption: CouponRedemption) -> None:
        raise NotImplementedError

    async def list_redemptions(self, code: str) -> list[CouponRedemption]:
        raise NotImplementedError
