"""Config CLI commands — inspect and change settings in the TOML config file."""

from __future__ import annotations

import click

from subtrack.cli.main import JsonGroup, TrackerContext, pass_context


@click.group(cls=JsonGroup)
@pass_context
def config(ctx: TrackerContext) -> None:
    """Show or change settings (config show, config set)."""
    pass


@config.command("show")
@pass_context
def config_show(ctx: TrackerContext) -> None:
    """Show the effective configuration."""
    from subtrack.core.config import get_config_path, get_data_file

    cfg = ctx.config
    if ctx.json_mode:
        ctx.formatter.json({
            "config_path": str(get_config_path()),
            "data_file": str(ctx.data_file or get_data_file(cfg)),
            "config": cfg,
        })
        return

    ctx.formatter.print(f"[dim]Config file: {get_config_path()}[/dim]")
    ctx.formatter.print(f"[dim]Data file:   {ctx.data_file or get_data_file(cfg)}[/dim]")
    for section, values in cfg.items():
        ctx.formatter.print(f"\n[bold]\\[{section}][/bold]")
        for key, value in values.items():
            ctx.formatter.print(f"  {key} = {value!r}")


@config.command("set")
@click.argument("key")
@click.argument("value")
@pass_context
def config_set(ctx: TrackerContext, key: str, value: str) -> None:
    """Set KEY (section.name, e.g. renewals.upcoming_window_days) to VALUE."""
    from subtrack.core.config import set_value

    updated = set_value(key, value)
    section, _, name = key.partition(".")
    if ctx.json_mode:
        ctx.formatter.json({"key": key, "value": updated[section][name]})
    else:
        ctx.formatter.success(f"{key} = {updated[section][name]!r}")
