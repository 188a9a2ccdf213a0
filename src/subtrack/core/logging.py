"""Logging setup — stdlib logging rendered through Rich on stderr."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from subtrack.core.exceptions import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a Rich handler on the ``subtrack`` logger.

    Precedence: explicit ``level`` argument, then ``SUBTRACK_LOG_LEVEL``,
    then WARNING. Safe to call more than once; later calls only change the level.
    """
    global _configured

    resolved = (level or os.getenv("SUBTRACK_LOG_LEVEL") or "WARNING").upper()
    if resolved not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level '{resolved}'. Use one of: {', '.join(LOG_LEVELS)}")
    logger = logging.getLogger("subtrack")
    logger.setLevel(resolved)

    if not _configured:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        _configured = True
