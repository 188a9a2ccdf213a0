"""Aggregation, breakdowns and filtering over a subscription collection."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from subtrack.models.subscription import CycleKind, Subscription, SubscriptionStatus
from subtrack.services.recurrence import (
    add_months,
    days_until,
    effective_status,
    is_effectively_active,
    monthly_cost,
    next_renewal_date,
    yearly_cost,
)

ALL = "all"


class ExpenseSummary(BaseModel):
    total_monthly: Decimal = Decimal("0")
    total_yearly: Decimal = Decimal("0")
    active_count: int = 0
    inactive_count: int = 0
    per_category_monthly: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def average_monthly(self) -> Decimal:
        """Mean monthly cost per active subscription."""
        if not self.active_count:
            return Decimal("0")
        return self.total_monthly / self.active_count


class CategoryTotal(BaseModel):
    category: str
    count: int = 0
    monthly: Decimal = Decimal("0")
    yearly: Decimal = Decimal("0")


class CycleTotal(BaseModel):
    cycle: CycleKind
    count: int = 0
    total_cost: Decimal = Decimal("0")


class UpcomingRenewal(BaseModel):
    subscription: Subscription
    renewal_date: date
    days_until_renewal: int


class TimelinePoint(BaseModel):
    month_start: date
    monthly_cost: Decimal = Decimal("0")


def aggregate(subscriptions: Iterable[Subscription], today: date) -> ExpenseSummary:
    """Totals over effectively-active subscriptions.

    ``inactive_count`` counts everything not effectively active, which
    includes date-expired subscriptions still flagged active.
    """
    summary = ExpenseSummary()
    for sub in subscriptions:
        if not is_effectively_active(sub, today):
            summary.inactive_count += 1
            continue
        monthly = monthly_cost(sub)
        summary.active_count += 1
        summary.total_monthly += monthly
        summary.total_yearly += yearly_cost(sub)
        summary.per_category_monthly[sub.category] = (
            summary.per_category_monthly.get(sub.category, Decimal("0")) + monthly
        )
    return summary


def category_breakdown(subscriptions: Iterable[Subscription], today: date) -> list[CategoryTotal]:
    """Per-category count and cost of active subscriptions, priciest first."""
    totals: dict[str, CategoryTotal] = {}
    for sub in subscriptions:
        if not is_effectively_active(sub, today):
            continue
        entry = totals.setdefault(sub.category, CategoryTotal(category=sub.category))
        entry.count += 1
        entry.monthly += monthly_cost(sub)
        entry.yearly += yearly_cost(sub)
    return sorted(totals.values(), key=lambda t: (-t.monthly, t.category))


def cycle_breakdown(subscriptions: Iterable[Subscription], today: date) -> list[CycleTotal]:
    """Count and raw per-period cost of active subscriptions for every cycle kind."""
    totals = {kind: CycleTotal(cycle=kind) for kind in CycleKind}
    for sub in subscriptions:
        if not is_effectively_active(sub, today):
            continue
        entry = totals[sub.billing_cycle.kind]
        entry.count += 1
        entry.total_cost += sub.cost
    return list(totals.values())


def upcoming_renewals(
    subscriptions: Iterable[Subscription],
    today: date,
    window_days: int,
    include_today: bool = False,
) -> list[UpcomingRenewal]:
    """Renewals due within the window, soonest first."""
    results: list[UpcomingRenewal] = []
    for sub in subscriptions:
        renewal = next_renewal_date(sub, today, include_today=include_today)
        if renewal is None or not 0 <= days_until(renewal, today) <= window_days:
            continue
        results.append(UpcomingRenewal(
            subscription=sub,
            renewal_date=renewal,
            days_until_renewal=days_until(renewal, today),
        ))
    results.sort(key=lambda r: (r.days_until_renewal, r.subscription.name.lower()))
    return results


def spending_timeline(
    subscriptions: Iterable[Subscription],
    today: date,
    months: int = 12,
) -> list[TimelinePoint]:
    """Projected monthly spend for the first day of each of the next N months.

    Starts with the current month. A subscription counts toward a month when
    it is flagged active, has started by the first of that month, and has not
    ended before it.
    """
    subs = [s for s in subscriptions if s.status is SubscriptionStatus.ACTIVE]
    first = today.replace(day=1)
    points: list[TimelinePoint] = []
    for offset in range(months):
        month_start = add_months(first, offset)
        point = TimelinePoint(month_start=month_start)
        for sub in subs:
            if sub.start_date <= month_start and (sub.end_date is None or sub.end_date >= month_start):
                point.monthly_cost += monthly_cost(sub)
        points.append(point)
    return points


def filter_subscriptions(
    subscriptions: Iterable[Subscription],
    today: date,
    status: str = ALL,
    category: str = ALL,
    cycle: str = ALL,
    search: str = "",
) -> list[Subscription]:
    """Filter by effective status, exact category, cycle kind and a search term.

    The search term matches name or category, case-insensitively.
    """
    needle = search.strip().lower()
    results = []
    for sub in subscriptions:
        if status != ALL and effective_status(sub, today).value != status:
            continue
        if category != ALL and sub.category != category:
            continue
        if cycle != ALL and sub.billing_cycle.kind.value != cycle:
            continue
        if needle and needle not in sub.name.lower() and needle not in sub.category.lower():
            continue
        results.append(sub)
    return results


def list_categories(subscriptions: Iterable[Subscription]) -> list[str]:
    """Sorted distinct categories in use."""
    return sorted({s.category for s in subscriptions})
