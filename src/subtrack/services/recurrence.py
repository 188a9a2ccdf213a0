"""Recurrence and cost engine.

Pure functions over a Subscription and an explicit reference date. Nothing
here reads the clock, touches storage or formats output.
"""

from __future__ import annotations

import calendar as cal_mod
import logging
from datetime import date
from decimal import Decimal

from subtrack.core.exceptions import RenewalSearchError
from subtrack.models.subscription import BillingCycle, CycleKind, Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)

# Upper bound on cycles walked by next_renewal_date (100 years of monthly billing)
MAX_RENEWAL_STEPS = 1200


def cycle_months(cycle: BillingCycle) -> int:
    """Length of a billing cycle in months, never less than 1."""
    if cycle.kind is CycleKind.MONTHLY:
        return 1
    if cycle.kind is CycleKind.YEARLY:
        return 12
    return max(1, cycle.months or 1)


def add_months(d: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    month = d.month - 1 + months
    year = d.year + month // 12
    month = month % 12 + 1
    max_day = cal_mod.monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(d.day, max_day))


def monthly_cost(sub: Subscription) -> Decimal:
    """Cost normalized to one month."""
    return sub.cost / cycle_months(sub.billing_cycle)


def yearly_cost(sub: Subscription) -> Decimal:
    """Cost normalized to one year (always monthly_cost * 12)."""
    return monthly_cost(sub) * 12


def is_effectively_active(sub: Subscription, today: date) -> bool:
    """Active flag set and not past its end date."""
    if sub.status is not SubscriptionStatus.ACTIVE:
        return False
    return sub.end_date is None or sub.end_date >= today


def effective_status(sub: Subscription, today: date) -> SubscriptionStatus:
    """Status to display: date-expired subscriptions read as inactive."""
    if is_effectively_active(sub, today):
        return SubscriptionStatus.ACTIVE
    return SubscriptionStatus.INACTIVE


def next_renewal_date(sub: Subscription, today: date, include_today: bool = False) -> date | None:
    """Next date the subscription bills on, or None if it never will again.

    A subscription that has not started yet first bills on its start date.
    Otherwise the start date is stepped forward one cycle at a time, with
    month-end clamping applied at each step, until it passes ``today``.
    With ``include_today`` a renewal falling on today is returned as today
    instead of being treated as already billed.
    """
    if not is_effectively_active(sub, today):
        return None
    if today < sub.start_date:
        return sub.start_date

    step = cycle_months(sub.billing_cycle)
    cursor = sub.start_date
    steps = 0
    while cursor < today or (cursor == today and not include_today):
        if steps >= MAX_RENEWAL_STEPS:
            logger.error(
                "Renewal search for %s (%s) exceeded %d steps from %s",
                sub.name, sub.id, MAX_RENEWAL_STEPS, sub.start_date,
            )
            raise RenewalSearchError(
                f"Renewal search for '{sub.name}' exceeded {MAX_RENEWAL_STEPS} cycles"
            )
        cursor = add_months(cursor, step)
        steps += 1

    if sub.end_date is not None and cursor > sub.end_date:
        return None
    return cursor


def days_until(target: date, today: date) -> int:
    """Signed whole days from today to target (tomorrow is 1, today is 0)."""
    return (target - today).days


def is_upcoming(sub: Subscription, today: date, window_days: int, include_today: bool = False) -> bool:
    """True when the next renewal falls within ``window_days`` of today, inclusive."""
    renewal = next_renewal_date(sub, today, include_today=include_today)
    if renewal is None:
        return False
    return 0 <= days_until(renewal, today) <= window_days
