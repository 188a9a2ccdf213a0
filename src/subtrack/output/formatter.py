"""Dual-mode output — Rich for humans, JSON for scripts."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Human output goes to stdout; in JSON mode, human messages go to stderr
_console = Console()
_err_console = Console(stderr=True)

_CENT = Decimal("0.01")


class OutputFormatter:
    """Routes output to Rich (human) or JSON (machine) depending on mode."""

    def __init__(self, json_mode: bool = False) -> None:
        self.json_mode = json_mode

    # ── JSON output ──────────────────────────────────────────────

    def json(self, data: Any, status: str = "success") -> None:
        """Print structured JSON to stdout."""
        envelope = {"status": status, "data": data}
        print(json.dumps(envelope, indent=2, default=_json_default))

    def json_error(self, message: str, code: int = 1, details: dict[str, Any] | None = None) -> None:
        """Print a JSON error envelope to stdout."""
        error: dict[str, Any] = {"message": message, "code": code}
        if details:
            error["details"] = details
        print(json.dumps({"status": "error", "error": error}, indent=2))

    # ── Human output ─────────────────────────────────────────────

    def print(self, message: str = "", **kwargs: Any) -> None:
        """Print a message, routing to stderr in JSON mode."""
        console = _err_console if self.json_mode else _console
        console.print(message, **kwargs)

    def success(self, message: str) -> None:
        if self.json_mode:
            return
        _console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        console = _err_console if self.json_mode else _console
        console.print(f"[yellow]![/yellow] {message}")

    def error(self, message: str) -> None:
        console = _err_console if self.json_mode else _console
        console.print(f"[red]✗[/red] {escape(message)}")

    def info(self, message: str) -> None:
        if self.json_mode:
            return
        _console.print(f"[dim]ℹ[/dim] {message}")

    def table(self, title: str, columns: list[tuple[str, str]], rows: list[list[str]]) -> None:
        """Print a Rich table.

        columns: list of (header, style) tuples
        rows: list of row data (strings, Rich markup allowed)
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header, style in columns:
            table.add_column(header, style=style)
        for row in rows:
            table.add_row(*row)
        _console.print(table)

    def panel(self, content: str, title: str = "", border_style: str = "blue") -> None:
        if self.json_mode:
            return
        _console.print(Panel(content, title=title, border_style=border_style))


def money(amount: Decimal | int | float, symbol: str = "$") -> str:
    """Format an amount with two decimals and thousands separators."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    s = f"{symbol}{abs(value):,.2f}"
    return f"-{s}" if value < 0 else s


def format_date(value: date | str | None, fmt: str = "%b %d, %Y") -> str:
    """Format a date (or ISO date string) for display."""
    if not value:
        return "—"
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime(fmt)


def format_days(days: int) -> str:
    """'today', 'tomorrow', or 'in N days'."""
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return f"in {days} days"


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
