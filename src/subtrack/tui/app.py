"""Textual TUI dashboard application."""

from __future__ import annotations

from datetime import date

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Static

from subtrack.core.exceptions import SubtrackError
from subtrack.models.category import category_icon
from subtrack.output.formatter import format_days, money
from subtrack.services.subscription_service import SubscriptionService


class DashboardPanel(Static):
    """Panel that renders itself from the shared service and reference date."""

    def __init__(self, dashboard: "SubtrackDashboard", **kwargs) -> None:
        super().__init__(**kwargs)
        self.dashboard = dashboard

    def on_mount(self) -> None:
        self.refresh_data()

    def refresh_data(self) -> None:
        try:
            self.update(self.build_content())
        except SubtrackError as e:
            self.update(f"[red]Error: {escape(str(e))}[/red]")

    def build_content(self) -> str:
        raise NotImplementedError


class SummaryPanel(DashboardPanel):
    """Headline totals."""

    def build_content(self) -> str:
        d = self.dashboard
        s = d.service.get_summary(d.today)
        upcoming = d.service.get_upcoming(d.today, d.window_days, include_today=d.include_today)
        return (
            f"[bold cyan]Overview[/bold cyan]  as of {d.today.isoformat()}\n\n"
            f"  Monthly burn:  {money(s.total_monthly, d.currency)}\n"
            f"  Yearly burn:   {money(s.total_yearly, d.currency)}\n"
            f"  Avg per sub:   {money(s.average_monthly, d.currency)}/mo\n"
            f"  Active: {s.active_count}   Inactive: {s.inactive_count}   "
            f"Upcoming ({d.window_days}d): {len(upcoming)}"
        )


class UpcomingPanel(DashboardPanel):
    """Renewals inside the upcoming window."""

    def build_content(self) -> str:
        d = self.dashboard
        upcoming = d.service.get_upcoming(d.today, d.window_days, include_today=d.include_today)
        lines = ["[bold yellow]Upcoming Renewals[/bold yellow]\n"]
        for u in upcoming[:8]:
            lines.append(
                f"  {escape(u.subscription.name):<22} {u.renewal_date.isoformat()}  "
                f"{money(u.subscription.cost, d.currency):>10}  ({format_days(u.days_until_renewal)})"
            )
        if not upcoming:
            lines.append(f"  [dim]No renewals in the next {d.window_days} days[/dim]")
        return "\n".join(lines)


class CategoryPanel(DashboardPanel):
    """Monthly spend per category."""

    def build_content(self) -> str:
        from subtrack.services.summary_service import category_breakdown

        d = self.dashboard
        lines = ["[bold green]By Category[/bold green]\n"]
        totals = category_breakdown(d.service.subscriptions, d.today)
        for t in totals:
            lines.append(
                f"  {category_icon(t.category)} {escape(t.category):<16} {t.count:>2}  "
                f"{money(t.monthly, d.currency):>10}/mo"
            )
        if not totals:
            lines.append("  [dim]No active subscriptions[/dim]")
        return "\n".join(lines)


class CyclePanel(DashboardPanel):
    """Active subscriptions per billing cycle."""

    def build_content(self) -> str:
        from subtrack.services.summary_service import cycle_breakdown

        d = self.dashboard
        lines = ["[bold magenta]By Billing Cycle[/bold magenta]\n"]
        for t in cycle_breakdown(d.service.subscriptions, d.today):
            lines.append(
                f"  {t.cycle.value:<10} {t.count:>2} subs  {money(t.total_cost, d.currency):>10} per period"
            )
        return "\n".join(lines)


class TimelinePanel(DashboardPanel):
    """Projected spend for the next twelve months."""

    def build_content(self) -> str:
        from subtrack.services.summary_service import spending_timeline

        d = self.dashboard
        points = spending_timeline(d.service.subscriptions, d.today)
        peak = max((p.monthly_cost for p in points), default=0) or 1
        lines = ["[bold blue]Next 12 Months[/bold blue]\n"]
        for p in points:
            bar = "█" * int(p.monthly_cost / peak * 40)
            lines.append(f"  {p.month_start.strftime('%b %Y')}  {money(p.monthly_cost, d.currency):>10}  {bar}")
        return "\n".join(lines)


class SubtrackDashboard(App):
    """SubTrack Textual TUI Dashboard."""

    CSS = """
    Screen {
        layout: grid;
        grid-size: 2;
        grid-gutter: 1;
        padding: 1;
    }

    .panel {
        border: solid $primary;
        padding: 1;
        height: auto;
        min-height: 8;
    }

    #summary-panel, #timeline-panel {
        column-span: 2;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        service: SubscriptionService,
        today: date,
        window_days: int = 14,
        include_today: bool = False,
        currency: str = "$",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.service = service
        self.today = today
        self.window_days = window_days
        self.include_today = include_today
        self.currency = currency

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield SummaryPanel(self, id="summary-panel", classes="panel")
        yield UpcomingPanel(self, classes="panel")
        yield CategoryPanel(self, classes="panel")
        yield CyclePanel(self, classes="panel")
        yield TimelinePanel(self, id="timeline-panel", classes="panel")
        yield Footer()

    def action_refresh(self) -> None:
        """Reload from disk and refresh all panels."""
        self.service = SubscriptionService(self.service.repo)
        for widget in self.query(".panel"):
            if isinstance(widget, DashboardPanel):
                widget.refresh_data()
