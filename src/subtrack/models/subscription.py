"""Subscription model and repository."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator
from pydantic import ValidationError as PydanticValidationError

from subtrack.core.exceptions import StorageError
from subtrack.core.storage import JsonStore, unwrap_records, wrap_records
from subtrack.models.base import SubtrackModel
from subtrack.models.category import normalize_category

logger = logging.getLogger(__name__)


class CycleKind(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BillingCycle(BaseModel):
    """Recurrence unit of a subscription's cost.

    ``months`` only matters for CUSTOM cycles. It is stored as given; the
    recurrence engine treats a missing or zero value as one month.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: CycleKind = Field(default=CycleKind.MONTHLY, alias="type")
    months: int | None = None

    @classmethod
    def monthly(cls) -> "BillingCycle":
        return cls(kind=CycleKind.MONTHLY)

    @classmethod
    def yearly(cls) -> "BillingCycle":
        return cls(kind=CycleKind.YEARLY)

    @classmethod
    def custom(cls, months: int | None) -> "BillingCycle":
        return cls(kind=CycleKind.CUSTOM, months=months)

    @classmethod
    def parse(cls, kind: str, months: int | None = None) -> "BillingCycle":
        """Build a cycle from a kind name (monthly, yearly, custom)."""
        cycle_kind = CycleKind(kind.strip().lower())
        if cycle_kind is CycleKind.CUSTOM:
            return cls.custom(months)
        return cls(kind=cycle_kind)

    @property
    def label(self) -> str:
        """Human label, e.g. 'monthly' or 'every 3 months'."""
        if self.kind is CycleKind.CUSTOM:
            n = self.months or 1
            return "every month" if n == 1 else f"every {n} months"
        return self.kind.value

    @model_serializer
    def _serialize(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind.value}
        if self.kind is CycleKind.CUSTOM:
            data["months"] = self.months
        return data


class Subscription(SubtrackModel):
    """A recurring subscription entered by the user.

    ``cost`` is the amount charged per billing period, not a monthly figure.
    ``status`` is the user's flag; date-based expiry is derived separately.
    """

    name: str
    category: str = "other"
    cost: Decimal = Decimal("0")
    billing_cycle: BillingCycle = Field(default_factory=BillingCycle.monthly, alias="billingCycle")
    start_date: date = Field(alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_shape(cls, data: Any) -> Any:
        """Accept records written by the browser front ends.

        Those stored ``billingCycle`` as a bare string with a sibling
        ``customMonths`` field, costs as JS numbers and empty end dates as "".
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        custom_months = data.pop("customMonths", None)
        for key in ("billingCycle", "billing_cycle"):
            if isinstance(data.get(key), str):
                kind = data[key]
                data[key] = {"type": kind, "months": custom_months if kind == "custom" else None}
        cost = data.get("cost")
        if isinstance(cost, float):
            data["cost"] = Decimal(str(cost))
        for key in ("endDate", "end_date"):
            if data.get(key) == "":
                data[key] = None
        return data

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> str:
        return normalize_category(value)

    @property
    def is_custom(self) -> bool:
        return self.billing_cycle.kind is CycleKind.CUSTOM


def default_subscriptions() -> list[Subscription]:
    """Built-in demo records used when nothing has been stored yet."""
    return [
        Subscription(
            name="Notion Plus",
            category="productivity",
            cost=Decimal("10"),
            billing_cycle=BillingCycle.monthly(),
            start_date=date(2023, 7, 1),
        ),
        Subscription(
            name="Spotify Family",
            category="entertainment",
            cost=Decimal("15.99"),
            billing_cycle=BillingCycle.monthly(),
            start_date=date(2023, 3, 10),
        ),
        Subscription(
            name="Adobe Creative Cloud",
            category="design",
            cost=Decimal("599"),
            billing_cycle=BillingCycle.yearly(),
            start_date=date(2024, 2, 1),
        ),
        Subscription(
            name="Gym Membership",
            category="wellness",
            cost=Decimal("150"),
            billing_cycle=BillingCycle.custom(3),
            start_date=date(2024, 12, 1),
            end_date=date(2025, 12, 1),
        ),
        Subscription(
            name="Old VPN",
            category="utilities",
            cost=Decimal("70"),
            billing_cycle=BillingCycle.yearly(),
            start_date=date(2023, 6, 1),
            end_date=date(2024, 6, 1),
            status=SubscriptionStatus.INACTIVE,
        ),
    ]


class SubscriptionRepository:
    """Ordered subscription list persisted as one JSON document.

    Both operations fail soft: a broken or missing document loads as the
    built-in defaults, and a failed write is logged and reported as False.
    """

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    def load(self) -> list[Subscription]:
        if not self.store.exists:
            logger.info("No data file at %s, using built-in defaults", self.store.path)
            return default_subscriptions()
        try:
            records = unwrap_records(self.store.read())
            return [Subscription.from_record(r) for r in records]  # type: ignore[misc]
        except (StorageError, PydanticValidationError) as e:
            logger.warning("Could not load subscriptions from %s, using defaults: %s", self.store.path, e)
            return default_subscriptions()

    def save(self, subscriptions: list[Subscription]) -> bool:
        try:
            self.store.write(wrap_records([s.to_record() for s in subscriptions]))
        except StorageError as e:
            logger.error("Could not save subscriptions: %s", e)
            return False
        logger.debug("Saved %d subscriptions to %s", len(subscriptions), self.store.path)
        return True
