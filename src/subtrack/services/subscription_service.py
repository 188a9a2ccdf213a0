"""Subscription editing and querying service."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from subtrack.core.exceptions import NotFoundError, ValidationError
from subtrack.models.base import new_id
from subtrack.models.category import normalize_category
from subtrack.models.subscription import (
    BillingCycle,
    CycleKind,
    Subscription,
    SubscriptionRepository,
    SubscriptionStatus,
)
from subtrack.services.summary_service import (
    ALL,
    ExpenseSummary,
    UpcomingRenewal,
    aggregate,
    filter_subscriptions,
    upcoming_renewals,
)

_EDITABLE_FIELDS = ("name", "category", "cost", "billing_cycle", "start_date", "end_date", "status")


def validate_subscription(sub: Subscription) -> dict[str, str]:
    """Return a field -> message map of problems; empty when the record is valid."""
    errors: dict[str, str] = {}
    if not sub.name.strip():
        errors["name"] = "Name is required."
    if not sub.cost.is_finite() or sub.cost <= 0:
        errors["cost"] = "Cost must be greater than 0."
    if sub.billing_cycle.kind is CycleKind.CUSTOM and (sub.billing_cycle.months or 0) < 1:
        errors["billing_cycle"] = "Custom billing cycle must be at least 1 month."
    if sub.end_date is not None and sub.end_date < sub.start_date:
        errors["end_date"] = "End date must be on or after the start date."
    return errors


def _parse_cost(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValidationError({"cost": f"Not a number: {value!r}"}) from e


def _error_field(loc: tuple) -> str:
    """Field name for a pydantic error location, with aliases mapped back."""
    if not loc:
        return "record"
    aliases = {f.alias: name for name, f in Subscription.model_fields.items() if f.alias}
    return aliases.get(str(loc[0]), str(loc[0]))


def _build(data: dict[str, Any]) -> Subscription:
    """Validate raw field values into a Subscription, then apply edit rules."""
    try:
        sub = Subscription.model_validate(data)
    except PydanticValidationError as e:
        errors = {_error_field(err["loc"]): err["msg"] for err in e.errors()}
        raise ValidationError(errors) from e
    errors = validate_subscription(sub)
    if errors:
        raise ValidationError(errors)
    return sub


class SubscriptionService:
    """Owns the in-memory subscription list and is the only path that edits it.

    Every edit is validated before it is committed; committed edits are saved
    straight away. A failed save is logged by the repository and reflected in
    ``last_save_ok``.
    """

    def __init__(self, repo: SubscriptionRepository) -> None:
        self.repo = repo
        self._subs: list[Subscription] | None = None
        self.last_save_ok = True

    @property
    def subscriptions(self) -> list[Subscription]:
        if self._subs is None:
            self._subs = self.repo.load()
        return list(self._subs)

    def _commit(self, subs: list[Subscription]) -> None:
        self._subs = subs
        self.last_save_ok = self.repo.save(subs)

    # ── Edits ─────────────────────────────────────────────────────

    def add_subscription(
        self,
        name: str,
        cost: Any,
        start_date: date,
        cycle: str = "monthly",
        custom_months: int | None = None,
        category: str = "other",
        end_date: date | None = None,
        status: str = "active",
    ) -> Subscription:
        """Create a subscription with a fresh id and put it at the top of the list."""
        try:
            billing_cycle = BillingCycle.parse(cycle, custom_months)
        except ValueError as e:
            raise ValidationError({"billing_cycle": f"Unknown billing cycle: {cycle}"}) from e

        sub = _build({
            "id": new_id(),
            "name": name.strip(),
            "category": normalize_category(category),
            "cost": _parse_cost(cost),
            "billing_cycle": billing_cycle,
            "start_date": start_date,
            "end_date": end_date,
            "status": status,
        })
        self._commit([sub, *self.subscriptions])
        return sub

    def update_subscription(self, sub_id: str, **changes: Any) -> Subscription:
        """Replace a subscription with an edited copy, keeping its id.

        ``cycle`` and ``custom_months`` may be passed instead of a full
        ``billing_cycle``; whichever is omitted keeps its current value.
        """
        current = self.get_subscription(sub_id)
        data = current.model_dump()

        if "cycle" in changes or "custom_months" in changes:
            kind = changes.pop("cycle", None) or current.billing_cycle.kind.value
            if "custom_months" in changes:
                months = changes.pop("custom_months")
            else:
                months = current.billing_cycle.months
            try:
                changes["billing_cycle"] = BillingCycle.parse(kind, months)
            except ValueError as e:
                raise ValidationError({"billing_cycle": f"Unknown billing cycle: {kind}"}) from e

        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({f: "Field cannot be edited." for f in sorted(unknown)})

        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "cost" in changes:
            changes["cost"] = _parse_cost(changes["cost"])
        if "billing_cycle" in changes and isinstance(changes["billing_cycle"], BillingCycle):
            changes["billing_cycle"] = changes["billing_cycle"].model_dump()

        data.update(changes)
        data["id"] = current.id
        updated = _build(data)
        self._commit([updated if s.id == current.id else s for s in self.subscriptions])
        return updated

    def set_status(self, sub_id: str, status: SubscriptionStatus | str) -> Subscription:
        return self.update_subscription(sub_id, status=SubscriptionStatus(status))

    def delete_subscription(self, sub_id: str) -> Subscription:
        """Remove a subscription from the list."""
        sub = self.get_subscription(sub_id)
        self._commit([s for s in self.subscriptions if s.id != sub.id])
        return sub

    def replace_all(self, subs: list[Subscription]) -> None:
        """Swap in a whole new list (used by seeding)."""
        self._commit(list(subs))

    # ── Queries ───────────────────────────────────────────────────

    def get_subscription(self, sub_id: str) -> Subscription:
        """Fetch by full id, or by a unique id prefix."""
        subs = self.subscriptions
        for s in subs:
            if s.id == sub_id:
                return s
        matches = [s for s in subs if sub_id and s.id.startswith(sub_id)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise NotFoundError(f"Subscription id prefix is ambiguous: {sub_id}")
        raise NotFoundError(f"Subscription not found: {sub_id}")

    def list_subscriptions(
        self,
        today: date,
        status: str = ALL,
        category: str = ALL,
        cycle: str = ALL,
        search: str = "",
    ) -> list[Subscription]:
        return filter_subscriptions(
            self.subscriptions, today,
            status=status, category=category, cycle=cycle, search=search,
        )

    def get_summary(self, today: date) -> ExpenseSummary:
        return aggregate(self.subscriptions, today)

    def get_upcoming(self, today: date, window_days: int, include_today: bool = False) -> list[UpcomingRenewal]:
        return upcoming_renewals(self.subscriptions, today, window_days, include_today=include_today)
