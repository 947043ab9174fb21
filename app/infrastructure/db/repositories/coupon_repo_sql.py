from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.coupon_repo import CouponRepo
from app.domain.entities.coupon import Coupon, CouponRedemption, normalize_code
from app.infrastructure.db.tables import coupon_redemptions, coupons, from_db_time, to_db_time


def _to_entity(row) -> Coupon:
    return Coupon(
        code=row["code"],
        discount_kind=row["discount_kind"],
        discount_value=Decimal(row["discount_value"]),
        max_discount=row["max_discount"],
        min_order_amount=row["min_order_amount"],
        usage_limit=row["usage_limit"],
        usage_count=row["usage_count"],
        per_user_limit=row["per_user_limit"],
        applicable_categories=frozenset(row["applicable_categories"] or ()),
        valid_from=from_db_time(row["valid_from"]),
        valid_until=from_db_time(row["valid_until"]),
        is_active=bool(row["is_active"]),
    )


class CouponRepoSQL(CouponRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, code: str, for_update: bool = False) -> Coupon | None:
        stmt = select(coupons).where(coupons.c.code == normalize_code(code)).limit(1)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def add(self, coupon: Coupon) -> None:
        stmt = insert(coupons).values(
            code=coupon.code,
            discount_kind=coupon.discount_kind.value,
            discount_value=coupon.discount_value,
            max_discount=coupon.max_discount,
            min_order_amount=coupon.min_order_amount,
            usage_limit=coupon.usage_limit,
            usage_count=coupon.usage_count,
            per_user_limit=coupon.per_user_limit,
            applicable_categories=sorted(coupon.applicable_categories),
            valid_from=to_db_time(coupon.valid_from),
            valid_until=to_db_time(coupon.valid_until),
            is_active=coupon.is_active,
        )
        await self._session.execute(stmt)

    async def list_active(self, now: datetime) -> list[Coupon]:
        stmt = (
            select(coupons)
            .where(
                coupons.c.is_active,
                coupons.c.valid_from <= to_db_time(now),
                coupons.c.valid_until >= to_db_time(now),
            )
            .order_by(coupons.c.code)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def count_user_redemptions(
        self, code: str, user_id: str, for_update: bool = False
    ) -> int:
        conditions = (
            coupon_redemptions.c.coupon_code == normalize_code(code),
            coupon_redemptions.c.user_id == user_id,
        )
        if for_update:
            # FOR UPDATE is not allowed with aggregates on every backend
            stmt = select(coupon_redemptions.c.id).where(*conditions).with_for_update()
            result = await self._session.execute(stmt)
            return len(result.all())
        stmt = select(func.count()).select_from(coupon_redemptions).where(*conditions)
        result = await self._session.execute(stmt)
        return int(result.scalar() or 0)

    async def try_increment_usage(self, code: str) -> bool:
        stmt = (
            update(coupons)
            .where(
                coupons.c.code == normalize_code(code),
                or_(
                    coupons.c.usage_limit.is_(None),
                    coupons.c.usage_count < coupons.c.usage_limit,
                ),
            )
            .values(usage_count=coupons.c.usage_count + 1)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def add_redemption(self, redemption: CouponRedemption) -> None:
        stmt = insert(coupon_redemptions).values(
            coupon_code=redemption.coupon_code,
            booking_id=redemption.booking_id,
            user_id=redemption.user_id,
            discount_amount=redemption.discount_amount,
            redeemed_at=to_db_time(redemption.redeemed_at),
        )
        await self._session.execute(stmt)

    async def list_redemptions(self, code: str) -> list[CouponRedemption]:
        stmt = (
            select(coupon_redemptions)
            .where(coupon_redemptions.c.coupon_code == normalize_code(code))
            .order_by(coupon_redemptions.c.id)
        )
        result = await self._session.execute(stmt)
        return [
            CouponRedemption(
                coupon_code=row["coupon_code"],
                booking_id=row["booking_id"],
                user_id=row["user_id"],
                discount_amount=row["discount_amount"],
                redeemed_at=from_db_time(row["redeemed_at"]),
            )
            for row in result.mappings().all()
        ]
