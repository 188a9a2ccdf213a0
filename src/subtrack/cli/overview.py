"""Overview command — the landing view: headline cards plus the subscription table."""

from __future__ import annotations

import click

from subtrack.cli.main import TrackerContext, pass_context
from subtrack.output.formatter import money


@click.command()
@click.option("--status", type=click.Choice(["all", "active", "inactive"]), default="all")
@click.option("--category", default="all")
@click.option("--search", "-s", default="")
@pass_context
def overview(ctx: TrackerContext, status: str, category: str, search: str) -> None:
    """Monthly and yearly burn, active count, upcoming renewals and the subscription table."""
    from subtrack.cli.subscriptions_cmd import (
        SUBSCRIPTION_COLUMNS,
        subscription_payload,
        subscription_rows,
    )

    svc = ctx.get_service()
    summary = svc.get_summary(ctx.today)
    upcoming = svc.get_upcoming(ctx.today, ctx.window_days, include_today=ctx.include_today)
    filtered = svc.list_subscriptions(ctx.today, status=status, category=category, search=search)

    if ctx.json_mode:
        ctx.formatter.json({
            "today": ctx.today,
            "monthly_total": summary.total_monthly,
            "yearly_total": summary.total_yearly,
            "active_count": summary.active_count,
            "inactive_count": summary.inactive_count,
            "upcoming_count": len(upcoming),
            "window_days": ctx.window_days,
            "subscriptions": [subscription_payload(ctx, s) for s in filtered],
        })
        return

    cur = ctx.currency
    ctx.formatter.print()
    ctx.formatter.print(f"[bold]Subscriptions[/bold] as of {ctx.today.strftime('%A, %b %d, %Y')}")
    ctx.formatter.panel(
        f"Monthly burn:  [bold green]{money(summary.total_monthly, cur)}[/bold green] per month\n"
        f"Yearly burn:   [bold green]{money(summary.total_yearly, cur)}[/bold green] per year\n"
        f"Active:        {summary.active_count}   Inactive: {summary.inactive_count}\n"
        f"Upcoming:      {len(upcoming)} in the next {ctx.window_days} days",
        title="Overview",
        border_style="cyan",
    )

    if not filtered:
        ctx.formatter.info("No subscriptions match the filter.")
        return

    ctx.formatter.table(
        title="Subscriptions",
        columns=SUBSCRIPTION_COLUMNS,
        rows=subscription_rows(ctx, filtered),
    )
