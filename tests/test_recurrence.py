"""Tests for the recurrence and cost engine."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from subtrack.core.exceptions import RenewalSearchError
from subtrack.models.subscription import BillingCycle, Subscription, SubscriptionStatus
from subtrack.services.recurrence import (
    add_months,
    cycle_months,
    days_until,
    effective_status,
    is_effectively_active,
    is_upcoming,
    monthly_cost,
    next_renewal_date,
    yearly_cost,
)


def _sub(**kwargs) -> Subscription:
    defaults = {
        "name": "Test",
        "cost": Decimal("10"),
        "billing_cycle": BillingCycle.monthly(),
        "start_date": date(2024, 1, 1),
    }
    defaults.update(kwargs)
    return Subscription(**defaults)


# ── Cycle length and costs ────────────────────────────────────────


class TestCycleMonths:
    def test_monthly(self):
        assert cycle_months(BillingCycle.monthly()) == 1

    def test_yearly(self):
        assert cycle_months(BillingCycle.yearly()) == 12

    def test_custom(self):
        assert cycle_months(BillingCycle.custom(3)) == 3

    @pytest.mark.parametrize("months", [0, None, -4])
    def test_custom_never_below_one(self, months):
        assert cycle_months(BillingCycle.custom(months)) == 1


class TestAddMonths:
    def test_simple(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_clamps_to_leap_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_clamps_to_feb_28(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_leap_day_plus_year(self):
        assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)

    def test_thirty_day_month(self):
        assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


class TestCosts:
    def test_monthly_cost_monthly(self):
        assert monthly_cost(_sub(cost=Decimal("15.99"))) == Decimal("15.99")

    def test_monthly_cost_yearly(self):
        sub = _sub(cost=Decimal("120"), billing_cycle=BillingCycle.yearly())
        assert monthly_cost(sub) == Decimal("10")

    def test_monthly_cost_custom(self):
        sub = _sub(cost=Decimal("150"), billing_cycle=BillingCycle.custom(3))
        assert monthly_cost(sub) == Decimal("50.00")

    def test_monthly_cost_custom_zero_months(self):
        sub = _sub(cost=Decimal("150"), billing_cycle=BillingCycle.custom(0))
        assert monthly_cost(sub) == Decimal("150")

    def test_cost_defined_for_inactive(self):
        sub = _sub(cost=Decimal("30"), status=SubscriptionStatus.INACTIVE)
        assert monthly_cost(sub) == Decimal("30")

    @pytest.mark.parametrize("cycle", [
        BillingCycle.monthly(),
        BillingCycle.yearly(),
        BillingCycle.custom(3),
        BillingCycle.custom(7),
    ])
    def test_yearly_is_twelve_monthly(self, cycle):
        sub = _sub(cost=Decimal("10"), billing_cycle=cycle)
        assert yearly_cost(sub) == monthly_cost(sub) * 12


# ── Effective activity ────────────────────────────────────────────


class TestEffectiveActivity:
    def test_active_without_end(self):
        assert is_effectively_active(_sub(), date(2025, 1, 1))

    def test_inactive_flag(self):
        sub = _sub(status=SubscriptionStatus.INACTIVE)
        assert not is_effectively_active(sub, date(2025, 1, 1))

    def test_end_date_yesterday_is_inactive(self):
        today = date(2025, 1, 15)
        sub = _sub(end_date=today - timedelta(days=1))
        assert not is_effectively_active(sub, today)
        assert effective_status(sub, today) is SubscriptionStatus.INACTIVE

    def test_end_date_today_is_still_active(self):
        today = date(2025, 1, 15)
        sub = _sub(end_date=today)
        assert is_effectively_active(sub, today)
        assert effective_status(sub, today) is SubscriptionStatus.ACTIVE


# ── Next renewal ──────────────────────────────────────────────────


class TestNextRenewalDate:
    def test_inactive_has_no_renewal(self):
        sub = _sub(status=SubscriptionStatus.INACTIVE, start_date=date(2030, 1, 1))
        assert next_renewal_date(sub, date(2025, 1, 1)) is None

    def test_expired_has_no_renewal(self):
        sub = _sub(end_date=date(2025, 1, 14))
        assert next_renewal_date(sub, date(2025, 1, 15)) is None

    def test_end_of_month_clamp(self):
        sub = _sub(start_date=date(2024, 1, 31))
        assert next_renewal_date(sub, date(2024, 2, 15)) == date(2024, 2, 29)

    def test_clamped_day_carries_forward(self):
        # Jan 31 -> Feb 29 -> Mar 29 -> Apr 29
        sub = _sub(start_date=date(2024, 1, 31))
        assert next_renewal_date(sub, date(2024, 3, 30)) == date(2024, 4, 29)

    def test_not_yet_started_returns_start(self):
        sub = _sub(start_date=date(2025, 6, 1))
        assert next_renewal_date(sub, date(2025, 1, 1)) == date(2025, 6, 1)

    def test_custom_cycle(self):
        sub = _sub(
            cost=Decimal("150"),
            billing_cycle=BillingCycle.custom(3),
            start_date=date(2024, 12, 1),
            end_date=date(2025, 12, 1),
        )
        today = date(2025, 1, 15)
        assert monthly_cost(sub) == Decimal("50.00")
        assert next_renewal_date(sub, today) == date(2025, 3, 1)

    def test_renewal_on_end_date_is_kept(self):
        sub = _sub(
            billing_cycle=BillingCycle.custom(3),
            start_date=date(2024, 12, 1),
            end_date=date(2025, 12, 1),
        )
        assert next_renewal_date(sub, date(2025, 9, 15)) == date(2025, 12, 1)

    def test_renewal_past_end_date_is_none(self):
        sub = _sub(start_date=date(2024, 1, 1), end_date=date(2024, 3, 10))
        assert next_renewal_date(sub, date(2024, 3, 5)) is None

    def test_yearly(self):
        sub = _sub(billing_cycle=BillingCycle.yearly(), start_date=date(2023, 3, 15))
        assert next_renewal_date(sub, date(2025, 1, 15)) == date(2025, 3, 15)

    def test_renewal_today_moves_to_next_cycle(self):
        sub = _sub(start_date=date(2024, 1, 15))
        assert next_renewal_date(sub, date(2024, 3, 15)) == date(2024, 4, 15)

    def test_renewal_today_with_include_today(self):
        sub = _sub(start_date=date(2024, 1, 15))
        assert next_renewal_date(sub, date(2024, 3, 15), include_today=True) == date(2024, 3, 15)

    def test_start_today(self):
        sub = _sub(start_date=date(2024, 3, 15))
        assert next_renewal_date(sub, date(2024, 3, 15)) == date(2024, 4, 15)
        assert next_renewal_date(sub, date(2024, 3, 15), include_today=True) == date(2024, 3, 15)

    def test_custom_zero_months_treated_as_monthly(self):
        sub = _sub(billing_cycle=BillingCycle.custom(0), start_date=date(2024, 1, 10))
        assert next_renewal_date(sub, date(2024, 2, 20)) == date(2024, 3, 10)

    def test_idempotent(self):
        sub = _sub(start_date=date(2024, 1, 31))
        today = date(2024, 6, 2)
        assert next_renewal_date(sub, today) == next_renewal_date(sub, today)

    def test_step_limit_raises(self):
        sub = _sub(start_date=date(1900, 1, 1))
        with pytest.raises(RenewalSearchError, match="exceeded"):
            next_renewal_date(sub, date(2024, 1, 1))


class TestDaysUntil:
    def test_today(self):
        assert days_until(date(2025, 1, 15), date(2025, 1, 15)) == 0

    def test_tomorrow(self):
        assert days_until(date(2025, 1, 16), date(2025, 1, 15)) == 1

    def test_past_is_negative(self):
        assert days_until(date(2025, 1, 10), date(2025, 1, 15)) == -5


class TestIsUpcoming:
    def test_exactly_window_days_is_included(self):
        today = date(2024, 3, 1)
        sub = _sub(start_date=today + timedelta(days=14))
        assert is_upcoming(sub, today, 14)

    def test_one_past_window_is_excluded(self):
        today = date(2024, 3, 1)
        sub = _sub(start_date=today + timedelta(days=15))
        assert not is_upcoming(sub, today, 14)

    def test_no_renewal_is_not_upcoming(self):
        sub = _sub(status=SubscriptionStatus.INACTIVE, start_date=date(2024, 3, 2))
        assert not is_upcoming(sub, date(2024, 3, 1), 30)
