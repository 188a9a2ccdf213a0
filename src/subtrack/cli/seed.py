"""Seed data command — reset the data file to example or empty data."""

from __future__ import annotations

import click

from subtrack.cli.main import TrackerContext, pass_context


@click.command("seed")
@click.option(
    "--profile",
    type=click.Choice(["demo", "empty"]),
    default="demo",
    help="Data profile: demo (example subscriptions) or empty (no subscriptions).",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@pass_context
def seed_cmd(ctx: TrackerContext, profile: str, yes: bool) -> None:
    """Replace all stored subscriptions with example data or an empty list."""
    if not ctx.json_mode and not yes:
        click.confirm(
            f"This will replace every stored subscription with the '{profile}' data set. Continue?",
            abort=True,
        )

    result = _run_seed(ctx, profile)

    if ctx.json_mode:
        ctx.formatter.json(result)
        return

    ctx.warn_if_unsaved()
    ctx.formatter.success(f"Seed complete ({profile} profile): {result['count']} subscriptions.")


def _run_seed(ctx: TrackerContext, profile: str) -> dict:
    from subtrack.models.subscription import default_subscriptions

    subs = default_subscriptions() if profile == "demo" else []
    svc = ctx.get_service()
    svc.replace_all(subs)
    return {"profile": profile, "count": len(subs), "saved": svc.last_save_ok}
