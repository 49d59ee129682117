"""Environment-driven settings and logging setup for the expense tracker."""

from __future__ import annotations

import logging
import logging.config
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .storage import DEFAULT_FILE_NAME

ENV_FILE = "EXPENSE_TRACKER_FILE"
ENV_LOG_LEVEL = "EXPENSE_TRACKER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    data_file: Path
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``EXPENSE_TRACKER_*`` variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    data_file = (env.get(ENV_FILE) or "").strip() or DEFAULT_FILE_NAME
    log_level = (env.get(ENV_LOG_LEVEL) or "").strip().upper() or DEFAULT_LOG_LEVEL
    if log_level not in LOG_LEVELS:
        log_level = DEFAULT_LOG_LEVEL
    return Settings(data_file=Path(data_file), log_level=log_level)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send log records to stderr with a compact one-line format."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"simple": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "simple",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "expenses": {"level": level, "handlers": ["console"], "propagate": True},
            },
        }
    )
