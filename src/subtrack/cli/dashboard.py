"""Textual TUI dashboard launcher."""

from __future__ import annotations

import click

from subtrack.cli.main import TrackerContext, pass_context


@click.command()
@pass_context
def dashboard(ctx: TrackerContext) -> None:
    """Launch the full Textual TUI dashboard."""
    try:
        from subtrack.tui.app import SubtrackDashboard

        app = SubtrackDashboard(
            service=ctx.get_service(),
            today=ctx.today,
            window_days=ctx.window_days,
            include_today=ctx.include_today,
            currency=ctx.currency,
        )
        app.run()
    except ImportError as e:
        ctx.formatter.error(f"Dashboard requires textual: {e}")
