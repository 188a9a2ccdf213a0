"""Subscription management CLI commands."""

from __future__ import annotations

from typing import Any

import click
from rich.markup import escape

from subtrack.cli.main import JsonGroup, TrackerContext, pass_context
from subtrack.models.category import SUBSCRIPTION_CATEGORIES, category_icon
from subtrack.models.subscription import Subscription
from subtrack.output.formatter import format_date, format_days, money

_DATE = click.DateTime(formats=["%Y-%m-%d"])
_CYCLES = click.Choice(["monthly", "yearly", "custom"], case_sensitive=False)
_STATUSES = click.Choice(["active", "inactive"], case_sensitive=False)


def subscription_payload(ctx: TrackerContext, sub: Subscription) -> dict[str, Any]:
    """Subscription record plus its derived figures, for JSON output."""
    from subtrack.services.recurrence import (
        effective_status,
        monthly_cost,
        next_renewal_date,
        yearly_cost,
    )

    data = sub.model_dump(by_alias=True)
    data["effectiveStatus"] = effective_status(sub, ctx.today).value
    data["monthlyCost"] = monthly_cost(sub)
    data["yearlyCost"] = yearly_cost(sub)
    data["nextRenewal"] = next_renewal_date(sub, ctx.today, include_today=ctx.include_today)
    return data


def subscription_rows(ctx: TrackerContext, subs: list[Subscription]) -> list[list[str]]:
    """Table rows shared by `list` and `overview`."""
    from subtrack.services.recurrence import (
        days_until,
        effective_status,
        monthly_cost,
        next_renewal_date,
    )

    rows = []
    for s in subs:
        status = effective_status(s, ctx.today).value
        status_style = "green" if status == "active" else "dim"
        renewal = next_renewal_date(s, ctx.today, include_today=ctx.include_today)
        renewal_str = format_date(renewal, ctx.date_format)
        if renewal is not None and 0 <= days_until(renewal, ctx.today) <= ctx.window_days:
            renewal_str = f"[bold yellow]{renewal_str}[/bold yellow]"
        rows.append([
            escape(s.name),
            f"{category_icon(s.category)} {escape(s.category)}",
            f"[{status_style}]{status}[/{status_style}]",
            s.billing_cycle.label,
            money(s.cost, ctx.currency),
            money(monthly_cost(s), ctx.currency),
            renewal_str,
            s.id[:8],
        ])
    return rows


SUBSCRIPTION_COLUMNS = [
    ("Name", "bold"),
    ("Category", ""),
    ("Status", ""),
    ("Cycle", ""),
    ("Cost", "green"),
    ("Monthly", "green"),
    ("Next Renewal", "cyan"),
    ("ID", "dim"),
]


@click.group(cls=JsonGroup)
@pass_context
def subscriptions(ctx: TrackerContext) -> None:
    """Manage subscriptions (list, add, edit, show, delete, summary, upcoming)."""
    pass


@subscriptions.command("list")
@click.option("--status", type=click.Choice(["all", "active", "inactive"]), default="all",
              help="Filter by effective status.")
@click.option("--category", default="all", help="Filter by exact category.")
@click.option("--cycle", type=click.Choice(["all", "monthly", "yearly", "custom"]), default="all",
              help="Filter by billing cycle.")
@click.option("--search", "-s", default="", help="Match name or category (case-insensitive).")
@pass_context
def subscriptions_list(ctx: TrackerContext, status: str, category: str, cycle: str, search: str) -> None:
    """List subscriptions."""
    svc = ctx.get_service()
    sub_list = svc.list_subscriptions(ctx.today, status=status, category=category, cycle=cycle, search=search)

    if ctx.json_mode:
        ctx.formatter.json([subscription_payload(ctx, s) for s in sub_list])
        return

    if not sub_list:
        ctx.formatter.info("No subscriptions match the filter.")
        return

    ctx.formatter.table(
        title="Subscriptions",
        columns=SUBSCRIPTION_COLUMNS,
        rows=subscription_rows(ctx, sub_list),
    )


@subscriptions.command("add")
@click.option("--name", prompt="Subscription name", help="Subscription name.")
@click.option("--cost", prompt="Cost per billing period", help="Amount charged each billing period.")
@click.option("--cycle", type=_CYCLES, default="monthly", help="Billing cycle.")
@click.option("--months", "custom_months", type=int, default=None, help="Cycle length in months (custom cycles).")
@click.option("--category", default="other",
              help=f"Category, e.g. {', '.join(SUBSCRIPTION_CATEGORIES)}.")
@click.option("--start", "start_date", type=_DATE, default=None, help="Start date (YYYY-MM-DD). Defaults to today.")
@click.option("--end", "end_date", type=_DATE, default=None, help="End date (YYYY-MM-DD).")
@click.option("--status", type=_STATUSES, default="active", help="Initial status.")
@pass_context
def subscriptions_add(
    ctx: TrackerContext,
    name: str,
    cost: str,
    cycle: str,
    custom_months: int | None,
    category: str,
    start_date: Any,
    end_date: Any,
    status: str,
) -> None:
    """Add a subscription."""
    if cycle == "custom" and custom_months is None and not ctx.json_mode:
        custom_months = click.prompt("Cycle length in months", type=int, default=3)

    svc = ctx.get_service()
    sub = svc.add_subscription(
        name=name,
        cost=cost,
        cycle=cycle,
        custom_months=custom_months,
        category=category,
        start_date=start_date.date() if start_date else ctx.today,
        end_date=end_date.date() if end_date else None,
        status=status,
    )
    ctx.warn_if_unsaved()

    if ctx.json_mode:
        ctx.formatter.json(subscription_payload(ctx, sub))
    else:
        ctx.formatter.success(
            f"Added subscription: {escape(sub.name)}, {money(sub.cost, ctx.currency)} {sub.billing_cycle.label}"
        )


@subscriptions.command("edit")
@click.argument("sub_id")
@click.option("--name", default=None)
@click.option("--cost", default=None)
@click.option("--cycle", type=_CYCLES, default=None)
@click.option("--months", "custom_months", type=int, default=None)
@click.option("--category", default=None)
@click.option("--start", "start_date", type=_DATE, default=None)
@click.option("--end", "end_date", type=_DATE, default=None)
@click.option("--no-end", "clear_end", is_flag=True, help="Remove the end date.")
@click.option("--status", type=_STATUSES, default=None)
@pass_context
def subscriptions_edit(
    ctx: TrackerContext,
    sub_id: str,
    name: str | None,
    cost: str | None,
    cycle: str | None,
    custom_months: int | None,
    category: str | None,
    start_date: Any,
    end_date: Any,
    clear_end: bool,
    status: str | None,
) -> None:
    """Edit a subscription. Only the options given are changed."""
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if cost is not None:
        changes["cost"] = cost
    if cycle is not None:
        changes["cycle"] = cycle
    if custom_months is not None:
        changes["custom_months"] = custom_months
    if category is not None:
        changes["category"] = category
    if start_date is not None:
        changes["start_date"] = start_date.date()
    if clear_end:
        changes["end_date"] = None
    elif end_date is not None:
        changes["end_date"] = end_date.date()
    if status is not None:
        changes["status"] = status

    if not changes:
        ctx.formatter.info("Nothing to change.")
        return

    svc = ctx.get_service()
    sub = svc.update_subscription(sub_id, **changes)
    ctx.warn_if_unsaved()

    if ctx.json_mode:
        ctx.formatter.json(subscription_payload(ctx, sub))
    else:
        ctx.formatter.success(f"Updated subscription: {escape(sub.name)}")


@subscriptions.command("show")
@click.argument("sub_id")
@pass_context
def subscriptions_show(ctx: TrackerContext, sub_id: str) -> None:
    """Show details for a subscription."""
    from subtrack.services.recurrence import days_until, effective_status, monthly_cost, yearly_cost

    svc = ctx.get_service()
    sub = svc.get_subscription(sub_id)
    payload = subscription_payload(ctx, sub)

    if ctx.json_mode:
        ctx.formatter.json(payload)
        return

    renewal = payload["nextRenewal"]
    renewal_str = format_date(renewal, ctx.date_format)
    if renewal is not None:
        renewal_str += f" ({format_days(days_until(renewal, ctx.today))})"

    ctx.formatter.print(f"\n[bold]{category_icon(sub.category)} {escape(sub.name)}[/bold]")
    ctx.formatter.print(f"  Cost: {money(sub.cost, ctx.currency)} {sub.billing_cycle.label}")
    ctx.formatter.print(f"  Monthly cost: {money(monthly_cost(sub), ctx.currency)}")
    ctx.formatter.print(f"  Yearly cost: {money(yearly_cost(sub), ctx.currency)}")
    ctx.formatter.print(f"  Category: {escape(sub.category)}")
    ctx.formatter.print(f"  Status: {sub.status.value} (effective: {effective_status(sub, ctx.today).value})")
    ctx.formatter.print(f"  Started: {format_date(sub.start_date, ctx.date_format)}")
    ctx.formatter.print(f"  Ends: {format_date(sub.end_date, ctx.date_format)}")
    ctx.formatter.print(f"  Next renewal: {renewal_str}")
    ctx.formatter.print(f"  ID: {sub.id}")


@subscriptions.command("delete")
@click.argument("sub_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@pass_context
def subscriptions_delete(ctx: TrackerContext, sub_id: str, yes: bool) -> None:
    """Delete a subscription."""
    svc = ctx.get_service()
    sub = svc.get_subscription(sub_id)

    if not ctx.json_mode and not yes:
        if not click.confirm(f"Delete subscription '{sub.name}'?"):
            ctx.formatter.info("Cancelled.")
            return

    svc.delete_subscription(sub.id)
    ctx.warn_if_unsaved()

    if ctx.json_mode:
        ctx.formatter.json({"deleted": sub.id})
    else:
        ctx.formatter.success(f"Deleted subscription: {escape(sub.name)}")


def _set_status(ctx: TrackerContext, sub_id: str, status: str) -> None:
    svc = ctx.get_service()
    sub = svc.set_status(sub_id, status)
    ctx.warn_if_unsaved()
    if ctx.json_mode:
        ctx.formatter.json(subscription_payload(ctx, sub))
    else:
        ctx.formatter.success(f"{escape(sub.name)} is now {status}.")


@subscriptions.command("activate")
@click.argument("sub_id")
@pass_context
def subscriptions_activate(ctx: TrackerContext, sub_id: str) -> None:
    """Mark a subscription active."""
    _set_status(ctx, sub_id, "active")


@subscriptions.command("deactivate")
@click.argument("sub_id")
@pass_context
def subscriptions_deactivate(ctx: TrackerContext, sub_id: str) -> None:
    """Mark a subscription inactive."""
    _set_status(ctx, sub_id, "inactive")


@subscriptions.command("summary")
@pass_context
def subscriptions_summary(ctx: TrackerContext) -> None:
    """Show cost totals with category and billing-cycle breakdowns."""
    from subtrack.services.summary_service import category_breakdown, cycle_breakdown

    svc = ctx.get_service()
    subs = svc.subscriptions
    summary = svc.get_summary(ctx.today)
    categories = category_breakdown(subs, ctx.today)
    cycles = cycle_breakdown(subs, ctx.today)

    if ctx.json_mode:
        data = summary.model_dump()
        data["average_monthly"] = summary.average_monthly
        data["by_category"] = [c.model_dump() for c in categories]
        data["by_cycle"] = [c.model_dump() for c in cycles]
        ctx.formatter.json(data)
        return

    cur = ctx.currency
    ctx.formatter.print("\n[bold cyan]Subscription Summary[/bold cyan]")
    ctx.formatter.print(f"  Active subscriptions: {summary.active_count}")
    ctx.formatter.print(f"  Inactive subscriptions: {summary.inactive_count}")
    ctx.formatter.print(f"  Monthly total: {money(summary.total_monthly, cur)}")
    ctx.formatter.print(f"  Yearly total: {money(summary.total_yearly, cur)}")
    ctx.formatter.print(f"  Average per subscription: {money(summary.average_monthly, cur)}/mo")

    if categories:
        ctx.formatter.print("\n  [bold]By Category:[/bold]")
        for c in categories:
            plural = "" if c.count == 1 else "s"
            ctx.formatter.print(
                f"    {category_icon(c.category)} {escape(c.category)}: {money(c.monthly, cur)}/mo, "
                f"{money(c.yearly, cur)}/yr ({c.count} sub{plural})"
            )
    else:
        ctx.formatter.print("\n  [dim]No active subscriptions.[/dim]")

    ctx.formatter.print("\n  [bold]By Billing Cycle:[/bold]")
    for c in cycles:
        ctx.formatter.print(f"    {c.cycle.value}: {c.count} ({money(c.total_cost, cur)} per period)")


@subscriptions.command("upcoming")
@click.option("--days", type=click.IntRange(min=0), default=None,
              help="Window in days. Defaults to renewals.upcoming_window_days.")
@pass_context
def subscriptions_upcoming(ctx: TrackerContext, days: int | None) -> None:
    """Show renewals coming up within a window of days."""
    from subtrack.services.recurrence import monthly_cost

    window = ctx.window_days if days is None else days
    svc = ctx.get_service()
    upcoming = svc.get_upcoming(ctx.today, window, include_today=ctx.include_today)

    if ctx.json_mode:
        ctx.formatter.json([
            {
                "subscription": subscription_payload(ctx, u.subscription),
                "renewal_date": u.renewal_date,
                "days_until_renewal": u.days_until_renewal,
            }
            for u in upcoming
        ])
        return

    if not upcoming:
        ctx.formatter.info(f"No renewals in the next {window} days.")
        return

    ctx.formatter.table(
        title=f"Upcoming Renewals ({window}-day window)",
        columns=[
            ("Name", "bold"),
            ("Renews", "cyan"),
            ("When", "yellow"),
            ("Charge", "green"),
            ("Monthly", ""),
        ],
        rows=[
            [
                escape(u.subscription.name),
                format_date(u.renewal_date, ctx.date_format),
                format_days(u.days_until_renewal),
                money(u.subscription.cost, ctx.currency),
                money(monthly_cost(u.subscription), ctx.currency),
            ]
            for u in upcoming
        ],
    )


@subscriptions.command("timeline")
@click.option("--months", type=click.IntRange(min=1, max=60), default=12, help="Number of months to project.")
@pass_context
def subscriptions_timeline(ctx: TrackerContext, months: int) -> None:
    """Project monthly spend over the coming months."""
    from subtrack.services.summary_service import spending_timeline

    svc = ctx.get_service()
    points = spending_timeline(svc.subscriptions, ctx.today, months=months)

    if ctx.json_mode:
        ctx.formatter.json([p.model_dump() for p in points])
        return

    peak = max((p.monthly_cost for p in points), default=0) or 1
    rows = []
    for p in points:
        width = int(p.monthly_cost / peak * 30)
        rows.append([
            p.month_start.strftime("%b %Y"),
            money(p.monthly_cost, ctx.currency),
            "█" * width,
        ])
    ctx.formatter.table(
        title="Projected Monthly Spend",
        columns=[("Month", "bold"), ("Spend", "green"), ("", "cyan")],
        rows=rows,
    )
