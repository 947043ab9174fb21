import logging
from decimal import Decimal

from app.application.atomic import run_atomic
from app.application.dtos.coupon_dto import CreateCouponCommand
from app.application.interfaces.clock import Clock
from app.application.interfaces.coupon_repo import CouponRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.coupon import Coupon, CouponRedemption, DiscountKind, normalize_code
from app.domain.entities.resource import ResourceCategory
from app.domain.errors import CouponAlreadyExistsError, CouponNotFoundError, ValidationError
from app.domain.value_objects.booking_interval import as_utc

logger = logging.getLogger(__name__)

CATEGORIES = frozenset(category.value for category in ResourceCategory)


class ListActiveCouponsUseCase:
    """Coupons a customer can use right now."""

    def __init__(
        self, coupon_repo: CouponRepo, transaction_manager: TransactionManager, clock: Clock
    ) -> None:
        self._coupon_repo = coupon_repo
        self._transaction_manager = transaction_manager
        self._clock = clock

    async def execute(self) -> list[Coupon]:
        async def load() -> list[Coupon]:
            return await self._coupon_repo.list_active(self._clock.now())

        return await run_atomic(self._transaction_manager, load)


class ListCouponRedemptionsUseCase:
    def __init__(self, coupon_repo: CouponRepo, transaction_manager: TransactionManager) -> None:
        self._coupon_repo = coupon_repo
        self._transaction_manager = transaction_manager

    async def execute(self, code: str, limit: int = 50) -> list[CouponRedemption]:
        """Most recent redemptions of ``code`` first."""

        async def load() -> list[CouponRedemption]:
            if await self._coupon_repo.get(code) is None:
                raise CouponNotFoundError(normalize_code(code))
            return await self._coupon_repo.list_redemptions(code)

        redemptions = await run_atomic(self._transaction_manager, load)
        return list(reversed(redemptions))[:limit]


class CreateCouponUseCase:
    """
    Register a new coupon code.

    Codes are stored upper-cased and must be unique. Percentages are capped at
    100 and category restrictions must name known resource categories.
    """

    def __init__(self, coupon_repo: CouponRepo, transaction_manager: TransactionManager) -> None:
        self._coupon_repo = coupon_repo
        self._transaction_manager = transaction_manager

    async def execute(self, command: CreateCouponCommand) -> Coupon:
        coupon = self._build(command)

        async def create() -> Coupon:
            if await self._coupon_repo.get(coupon.code, for_update=True) is not None:
                raise CouponAlreadyExistsError(coupon.code)
            await self._coupon_repo.add(coupon)
            return coupon

        created = await run_atomic(self._transaction_manager, create)
        logger.info(
            "Coupon created",
            extra={
                "coupon_code": created.code,
                "discount_kind": created.discount_kind.value,
                "discount_value": str(created.discount_value),
            },
        )
        return created

    def _build(self, command: CreateCouponCommand) -> Coupon:
        code = normalize_code(command.code)
        if not code:
            raise ValidationError("code", "must not be blank")
        valid_from = as_utc(command.valid_from)
        valid_until = as_utc(command.valid_until)
        if valid_until <= valid_from:
            raise ValidationError("validUntil", "must be after validFrom")
        if command.discount_value <= 0:
            raise ValidationError("discountValue", "must be positive")

        kind = DiscountKind(command.discount_kind)
        if kind == DiscountKind.PERCENTAGE and command.discount_value > Decimal("100"):
            raise ValidationError("discountValue", "a percentage cannot exceed 100")

        unknown = set(command.applicable_categories) - CATEGORIES
        if unknown:
            raise ValidationError(
                "applicableCategories", f"unknown categories: {', '.join(sorted(unknown))}"
            )

        return Coupon(
            code=code,
            discount_kind=kind,
            discount_value=command.discount_value,
            valid_from=valid_from,
            valid_until=valid_until,
            max_discount=command.max_discount,
            min_order_amount=command.min_order_amount,
            usage_limit=command.usage_limit,
            per_user_limit=command.per_user_limit,
            applicable_categories=frozenset(command.applicable_categories),
        )
