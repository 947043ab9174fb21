from datetime import date
from decimal import Decimal

from app.domain.subscription_pricing import available_plans, is_launch_window, vendor_pricing


def test_launch_window_bounds_are_inclusive():
    assert is_launch_window(date(2024, 12, 1))
    assert is_launch_window(date(2025, 2, 28))
    assert not is_launch_window(date(2024, 11, 30))
    assert not is_launch_window(date(2025, 3, 1))


def test_launch_plan_during_window():
    [plan] = available_plans(date(2025, 1, 15))
    assert plan.is_launch_offer
    assert plan.price == Decimal("99.00")
    assert plan.original_price == Decimal("199.00")
    assert plan.valid_until == date(2025, 2, 28)


def test_regular_plan_after_window():
    [plan] = available_plans(date(2030, 1, 1))
    assert not plan.is_launch_offer
    assert plan.price == Decimal("199.00")
    assert plan.original_price is None


def test_vendor_registered_in_window_keeps_launch_price():
    pricing = vendor_pricing(date(2025, 2, 1))
    assert pricing.is_launch_subscriber
    assert pricing.current_price == Decimal("99.00")
    assert pricing.next_price == Decimal("199.00")


def test_vendor_registered_later_pays_regular_price():
    pricing = vendor_pricing(date(2025, 6, 1))
    assert not pricing.is_launch_subscriber
    assert pricing.current_price == pricing.next_price == Decimal("199.00")
