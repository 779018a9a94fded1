# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for quickrest."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("QUICKREST_LOG_LEVEL", "WARNING").upper()

# httpx logs every request at INFO; httpcore logs connection events at DEBUG.
TRANSPORT_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None) -> int:
    """
    Configure standard logging for CLI/library use and return the effective level.

    Transport loggers stay at WARNING unless DEBUG is requested, so INFO output
    only carries quickrest's own messages.
    """
    effective = getattr(logging, (level or DEFAULT_LOG_LEVEL).upper(), None)
    if not isinstance(effective, int):
        effective = logging.WARNING
    logging.basicConfig(level=effective, format="%(levelname)s %(name)s: %(message)s")
    transport_level = logging.DEBUG if effective <= logging.DEBUG else max(effective, logging.WARNING)
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
    return effective


__all__ = ["TRANSPORT_LOGGERS", "setup_logging"]
