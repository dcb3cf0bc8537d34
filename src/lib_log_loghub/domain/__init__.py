"""Domain entities and value objects used by the Loghub appender."""

from __future__ import annotations

from .context import DEFAULT_BINDER, ContextBinder, bind
from .errors import AppenderError, ConfigurationError
from .items import LogItem
from .settings import AppenderSettings, ParsedInt, ProducerConfig, ProjectConfig, build_settings, parse_int
from .timefmt import TimeFormatter, compile_time_format

__all__ = [
    "AppenderError",
    "AppenderSettings",
    "ConfigurationError",
    "ContextBinder",
    "DEFAULT_BINDER",
    "LogItem",
    "ParsedInt",
    "ProducerConfig",
    "ProjectConfig",
    "TimeFormatter",
    "bind",
    "build_settings",
    "compile_time_format",
    "parse_int",
]
