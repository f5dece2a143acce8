"""Shared logging helpers for handlesync."""

from __future__ import annotations

import logging
import os

from .errors import InvalidConfigurationError

LOG_LEVEL_ENV_VAR = "HANDLESYNC_LOG_LEVEL"


def resolve_log_level(default: int = logging.INFO) -> int:
    """Return the level named by ``HANDLESYNC_LOG_LEVEL`` or ``default``."""

    raw = os.getenv(LOG_LEVEL_ENV_VAR)
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise InvalidConfigurationError(LOG_LEVEL_ENV_VAR, raw, "unknown log level")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse format suitable for CLI output.

    ``level`` defaults to the ``HANDLESYNC_LOG_LEVEL`` environment variable, then INFO.
    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level if level is not None else resolve_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
