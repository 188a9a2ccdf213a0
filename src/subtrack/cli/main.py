"""Root CLI group — entry point for all SubTrack commands."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import click

from subtrack import __version__
from subtrack.core.exceptions import SubtrackError, ValidationError
from subtrack.core.logging import LOG_LEVELS, configure_logging
from subtrack.output.formatter import OutputFormatter


class TrackerContext:
    """Shared context passed through Click commands.

    Carries the reference date every engine call is made against, so a whole
    invocation sees one consistent "today".
    """

    def __init__(
        self,
        json_mode: bool = False,
        today: date | None = None,
        data_file: Path | None = None,
    ) -> None:
        self.json_mode = json_mode
        self.formatter = OutputFormatter(json_mode=json_mode)
        self.today = today or date.today()
        self.data_file = data_file
        self._config: dict[str, Any] | None = None
        self._service = None

    def set_json_mode(self, enabled: bool) -> None:
        self.json_mode = enabled
        self.formatter = OutputFormatter(json_mode=enabled)

    @property
    def config(self) -> dict[str, Any]:
        if self._config is None:
            from subtrack.core.config import load_config

            self._config = load_config()
        return self._config

    def get_service(self):
        """Lazy-load and return the subscription service."""
        if self._service is None:
            from subtrack.core.config import get_data_file
            from subtrack.core.storage import JsonStore
            from subtrack.models.subscription import SubscriptionRepository
            from subtrack.services.subscription_service import SubscriptionService

            path = self.data_file or get_data_file(self.config)
            self._service = SubscriptionService(SubscriptionRepository(JsonStore(path)))
        return self._service

    @property
    def window_days(self) -> int:
        from subtrack.core.config import upcoming_window_days

        return upcoming_window_days(self.config)

    @property
    def include_today(self) -> bool:
        from subtrack.core.config import include_today

        return include_today(self.config)

    @property
    def currency(self) -> str:
        return self.config.get("display", {}).get("currency_symbol", "$")

    @property
    def date_format(self) -> str:
        return self.config.get("display", {}).get("date_format", "%b %d, %Y")

    def warn_if_unsaved(self) -> None:
        """Tell the user when the last edit could not be written to disk."""
        if self._service is not None and not self._service.last_save_ok:
            self.formatter.warning("Change applied but could not be saved; see the log for details.")


pass_context = click.make_pass_decorator(TrackerContext, ensure=True)


def _enable_json(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if value:
        ctx.ensure_object(TrackerContext).set_json_mode(True)


class JsonGroup(click.Group):
    """Command group that accepts ``--json`` at group level and reports SubTrack errors.

    Any SubtrackError raised by a subcommand is printed (or emitted as a JSON
    error envelope) and turned into exit code 1.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.params.append(
            click.Option(
                ["--json", "group_json"],
                is_flag=True,
                expose_value=False,
                callback=_enable_json,
                help="Output JSON for scripts.",
            )
        )

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except SubtrackError as e:
            obj = ctx.find_object(TrackerContext) or TrackerContext()
            details = e.errors if isinstance(e, ValidationError) else None
            if obj.json_mode:
                obj.formatter.json_error(str(e), details=details)
            else:
                obj.formatter.error(str(e))
            ctx.exit(1)


@click.group(cls=JsonGroup, invoke_without_command=True)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for renewals and totals (YYYY-MM-DD). Defaults to the current date.",
)
@click.option(
    "--data-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Subscriptions JSON file to use instead of the configured one.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level.",
)
@click.version_option(__version__, prog_name="SubTrack")
@click.pass_context
def cli(ctx: click.Context, today: Any, data_file: Path | None, log_level: str | None) -> None:
    """SubTrack — track recurring subscriptions, their real cost and upcoming renewals.

    Run without a subcommand to show the overview.
    """
    existing = ctx.find_object(TrackerContext)
    json_mode = existing.json_mode if existing else False
    ctx.obj = TrackerContext(
        json_mode=json_mode,
        today=today.date() if today else None,
        data_file=data_file,
    )
    configure_logging(log_level or ctx.obj.config.get("logging", {}).get("level"))

    if ctx.invoked_subcommand is None:
        from subtrack.cli.overview import overview

        ctx.invoke(overview)


# ── Register subcommands ──────────────────────────────────────────

from subtrack.cli.overview import overview  # noqa: E402
cli.add_command(overview)

from subtrack.cli.subscriptions_cmd import subscriptions  # noqa: E402
cli.add_command(subscriptions)

from subtrack.cli.seed import seed_cmd  # noqa: E402
cli.add_command(seed_cmd, "seed")

from subtrack.cli.export import export  # noqa: E402
cli.add_command(export)

from subtrack.cli.config_cmd import config  # noqa: E402
cli.add_command(config)

from subtrack.cli.dashboard import dashboard  # noqa: E402
cli.add_command(dashboard)
