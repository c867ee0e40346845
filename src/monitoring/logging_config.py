# src/monitoring/logging_config.py
"""
Logging setup for walker entrypoints.

The level comes from the active profile's `logging` section:

    profile = load_walker_profile()
    configure_logging(profile.logging)

Route failures and door changes log at INFO, per-tick motion at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from env.loader import resolve_log_level
from env.schema import LoggingSettings


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Apply the profile level to the root logger.

    A stdout handler is attached only when the root logger has none, so
    calling this twice (or under a host that already configured logging)
    never duplicates output.
    """
    settings = settings or LoggingSettings()
    root = logging.getLogger()
    root.setLevel(resolve_log_level(settings))

    if root.handlers:
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root.addHandler(handler)
