"""
Coupon redemption during booking creation.

- SAVE10 on a 6000 booking gives the capped 500 discount
- Per-user and global limits hold under concurrent requests
- Rule failures leave no booking and no redemption behind
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from app.application.atomic import run_atomic
from app.application.dtos.booking_dto import CandidateBooking
from app.application.use_cases.coupon_engine import CouponEngine
from app.domain.entities.coupon import Coupon, CouponRedemption, DiscountKind
from app.domain.entities.resource import CapacityUnit, ReservableResource, ResourceCategory
from app.domain.errors import (
    CouponExpiredError,
    CouponLimitReachedError,
    CouponNotApplicableError,
    CouponNotFoundError,
    MinimumAmountNotMetError,
)
from app.infrastructure.in_memory import InMemoryCouponRepo, InMemoryDatabase
from tests.conftest import NOW, RESTAURANT, booking_command, utc

BIG_VENUE = "riverside-banquet-hall"


async def add_fixtures(use_cases, *, resources=(), coupons=()):
    repos = use_cases["repos"]

    async def work():
        for resource in resources:
            await repos.resource_catalog.add(resource)
        for coupon in coupons:
            await repos.coupon_repo.add(coupon)

    await run_atomic(repos.tx_manager, work)


async def load_coupon(use_cases, code):
    repos = use_cases["repos"]

    async def work():
        coupon = await repos.coupon_repo.get(code)
        redemptions = await repos.coupon_repo.list_redemptions(code)
        return coupon, redemptions

    return await run_atomic(repos.tx_manager, work)


class TestSave10Scenario:
    @pytest.mark.asyncio
    async def test_discount_and_second_use(self, use_cases):
        create = use_cases["create_booking"]
        booking = await create.execute(booking_command(coupon_code="save10"))

        assert booking.base_amount == Decimal("6000.00")
        assert booking.discount_amount == Decimal("500.00")
        assert booking.final_amount == Decimal("5500.00")
        assert booking.coupon_code == "SAVE10"

        with pytest.raises(CouponLimitReachedError):
            await create.execute(
                booking_command(
                    coupon_code="SAVE10",
                    interval_start=utc(2030, 1, 20),
                    interval_end=utc(2030, 1, 22),
                )
            )

        coupon, redemptions = await load_coupon(use_cases, "SAVE10")
        assert coupon.usage_count == 1
        assert [r.booking_id for r in redemptions] == [booking.id]

    @pytest.mark.asyncio
    async def test_rejected_coupon_creates_nothing(self, use_cases):
        create = use_cases["create_booking"]
        with pytest.raises(CouponNotApplicableError):
            await create.execute(booking_command(coupon_code="DINE25"))

        # The failed attempt released the room.
        booking = await create.execute(booking_command())
        assert booking.discount_amount == Decimal("0.00")
        coupon, redemptions = await load_coupon(use_cases, "DINE25")
        assert coupon.usage_count == 0
        assert redemptions == []


class TestRuleOrder:
    @pytest.mark.asyncio
    async def test_unknown_code(self, use_cases):
        with pytest.raises(CouponNotFoundError):
            await use_cases["create_booking"].execute(booking_command(coupon_code="NOPE"))

    @pytest.mark.asyncio
    async def test_minimum_amount(self, use_cases):
        with pytest.raises(MinimumAmountNotMetError):
            await use_cases["create_booking"].execute(
                booking_command(
                    resource_id=RESTAURANT,
                    interval_start=utc(2030, 1, 10, 19),
                    interval_end=utc(2030, 1, 10, 20),
                    coupon_code="SAVE10",
                )
            )

    @pytest.mark.asyncio
    async def test_expired_coupon_is_reported_before_category(self, use_cases):
        await add_fixtures(
            use_cases,
            coupons=[
                Coupon(
                    code="OLDDINE",
                    discount_kind=DiscountKind.FIXED,
                    discount_value=Decimal("50"),
                    valid_from=NOW - timedelta(days=30),
                    valid_until=NOW - timedelta(days=1),
                    applicable_categories={"dining"},
                )
            ],
        )
        with pytest.raises(CouponExpiredError):
            await use_cases["create_booking"].execute(booking_command(coupon_code="OLDDINE"))

    @pytest.mark.asyncio
    async def test_preview_has_no_side_effects(self, use_cases):
        quote = await use_cases["preview_coupon"].execute(
            code="save10",
            resource_id="homestay-sea-view-room",
            base_amount=Decimal("6000"),
            user_id="user-1",
        )
        assert quote.code == "SAVE10"
        assert quote.discount_amount == Decimal("500.00")
        assert quote.final_amount == Decimal("5500.00")

        coupon, redemptions = await load_coupon(use_cases, "SAVE10")
        assert coupon.usage_count == 0
        assert redemptions == []


class TestConcurrentRedemption:
    @pytest.mark.asyncio
    async def test_usage_limit_holds_under_load(self, use_cases):
        limit = 3
        await add_fixtures(
            use_cases,
            resources=[
                ReservableResource(
                    id=BIG_VENUE,
                    name="Riverside Banquet Hall",
                    category=ResourceCategory.DINING,
                    capacity_unit=CapacityUnit.TABLE_SLOT,
                    unit_price=Decimal("1000.00"),
                    owner_id="vendor-riverside",
                    total_capacity=50,
                )
            ],
            coupons=[
                Coupon(
                    code="FLASH3",
                    discount_kind=DiscountKind.FIXED,
                    discount_value=Decimal("100"),
                    valid_from=NOW - timedelta(days=1),
                    valid_until=NOW + timedelta(days=1),
                    usage_limit=limit,
                )
            ],
        )

        create = use_cases["create_booking"]
        results = await asyncio.gather(
            *[
                create.execute(
                    booking_command(
                        resource_id=BIG_VENUE,
                        interval_start=utc(2030, 1, 10, 19),
                        interval_end=utc(2030, 1, 10, 20),
                        user_id=f"guest-{n}",
                        coupon_code="FLASH3",
                    )
                )
                for n in range(limit + 5)
            ],
            return_exceptions=True,
        )

        redeemed = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, CouponLimitReachedError)]
        assert len(redeemed) == limit
        assert len(refused) == 5
        assert all(b.discount_amount == Decimal("100.00") for b in redeemed)

        coupon, redemptions = await load_coupon(use_cases, "FLASH3")
        assert coupon.usage_count == limit
        assert len(redemptions) == limit


class RecordingCouponRepo(InMemoryCouponRepo):
    def __init__(self, db):
        super().__init__(db)
        self.calls = []

    async def get(self, code, for_update=False):
        self.calls.append(("get", for_update))
        return await super().get(code, for_update=for_update)

    async def count_user_redemptions(self, code, user_id, for_update=False):
        self.calls.append(("count", for_update))
        return await super().count_user_redemptions(code, user_id, for_update=for_update)

    async def try_increment_usage(self, code):
        self.calls.append(("increment", None))
        return await super().try_increment_usage(code)


class TestRedeemRecount:
    @pytest.fixture
    def repo(self):
        repo = RecordingCouponRepo(InMemoryDatabase())
        repo._db.coupons["ONCE"] = Coupon(
            code="ONCE",
            discount_kind=DiscountKind.FIXED,
            discount_value=Decimal("100"),
            valid_from=NOW - timedelta(days=1),
            valid_until=NOW + timedelta(days=1),
            usage_limit=10,
            per_user_limit=1,
        )
        return repo

    async def quote(self, engine):
        return await engine.validate_and_apply(
            "once",
            CandidateBooking(category="lodging", base_amount=Decimal("6000.00")),
            "user-1",
            NOW,
        )

    @pytest.mark.asyncio
    async def test_redeem_locks_coupon_before_counting(self, repo):
        engine = CouponEngine(repo)
        quote = await self.quote(engine)
        repo.calls.clear()

        await engine.redeem(quote, "user-1", "BK-1", NOW)

        assert repo.calls == [("get", True), ("count", True), ("increment", None)]
        assert repo._db.coupons["ONCE"].usage_count == 1

    @pytest.mark.asyncio
    async def test_redemption_committed_after_quote_is_counted(self, repo):
        engine = CouponEngine(repo)
        quote = await self.quote(engine)
        # Another request by the same user redeemed the coupon in between
        await repo.add_redemption(
            CouponRedemption(
                coupon_code="ONCE",
                booking_id="BK-OTHER",
                user_id="user-1",
                discount_amount=Decimal("100"),
                redeemed_at=NOW,
            )
        )

        with pytest.raises(CouponLimitReachedError) as excinfo:
            await engine.redeem(quote, "user-1", "BK-2", NOW)

        assert excinfo.value.per_user
        assert repo._db.coupons["ONCE"].usage_count == 0
