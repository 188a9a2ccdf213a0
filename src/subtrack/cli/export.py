"""Export CLI commands — CSV and JSON export."""

from __future__ import annotations

import csv
import io
import json
from typing import Any

import click

from subtrack.cli.main import JsonGroup, TrackerContext, pass_context


@click.group(cls=JsonGroup)
@pass_context
def export(ctx: TrackerContext) -> None:
    """Export subscriptions to CSV or JSON."""
    pass


@export.command("csv")
@click.option("--output", "-o", "output_file", default=None, help="Output file path (stdout if not specified).")
@pass_context
def export_csv(ctx: TrackerContext, output_file: str | None) -> None:
    """Export subscriptions with derived costs and next renewal as CSV."""
    data = _flat_rows(ctx)

    if not data:
        ctx.formatter.info("No subscriptions to export.")
        return

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
    writer.writeheader()
    writer.writerows(data)

    csv_text = output.getvalue()
    if output_file:
        with open(output_file, "w", newline="") as f:
            f.write(csv_text)
        ctx.formatter.success(f"Exported {len(data)} subscriptions to {output_file}")
    else:
        click.echo(csv_text)


@export.command("json")
@click.option("--output", "-o", "output_file", default=None)
@pass_context
def export_json(ctx: TrackerContext, output_file: str | None) -> None:
    """Export subscriptions as a JSON document that can be used as a data file."""
    from subtrack.core.storage import wrap_records

    svc = ctx.get_service()
    document = wrap_records([s.to_record() for s in svc.subscriptions])

    json_text = json.dumps(document, indent=2)
    if output_file:
        with open(output_file, "w") as f:
            f.write(json_text)
        ctx.formatter.success(f"Exported to {output_file}")
    else:
        click.echo(json_text)


def _flat_rows(ctx: TrackerContext) -> list[dict[str, Any]]:
    """One flat dict per subscription, derived figures rounded to cents."""
    from subtrack.services.recurrence import (
        cycle_months,
        effective_status,
        monthly_cost,
        next_renewal_date,
        yearly_cost,
    )

    rows = []
    for s in ctx.get_service().subscriptions:
        renewal = next_renewal_date(s, ctx.today, include_today=ctx.include_today)
        rows.append({
            "id": s.id,
            "name": s.name,
            "category": s.category,
            "status": s.status.value,
            "effective_status": effective_status(s, ctx.today).value,
            "billing_cycle": s.billing_cycle.kind.value,
            "cycle_months": cycle_months(s.billing_cycle),
            "cost": f"{s.cost:.2f}",
            "monthly_cost": f"{monthly_cost(s):.2f}",
            "yearly_cost": f"{yearly_cost(s):.2f}",
            "start_date": s.start_date.isoformat(),
            "end_date": s.end_date.isoformat() if s.end_date else "",
            "next_renewal": renewal.isoformat() if renewal else "",
        })
    return rows
