"""Process-wide logging setup for the booking engine."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from frontdesk.utils.config import get_settings


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install the shared stdout handler on first use.

    Later calls are no-ops, so importing modules in any order yields the same
    pipe-delimited format for pricing, availability and mutation logs.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
