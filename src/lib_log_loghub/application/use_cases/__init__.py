"""Use cases orchestrating record adaptation and producer shutdown."""

from __future__ import annotations

from .build_item import UNKNOWN_LOCATION, build_log_item, format_throwable, read_location, record_extras
from .shutdown import create_shutdown

__all__ = [
    "UNKNOWN_LOCATION",
    "build_log_item",
    "create_shutdown",
    "format_throwable",
    "read_location",
    "record_extras",
]
