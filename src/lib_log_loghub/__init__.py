"""Public package surface of the Loghub logging handler.

Applications attach :class:`LoghubHandler` to a logger, optionally bind
context with :func:`bind`, and supply a producer client through a
:data:`ProducerFactory`. ``python -m lib_log_loghub`` exposes the same pieces
for configuration checks and dry runs.
"""

from __future__ import annotations

from .adapters import LoghubCallback, LoghubHandler, RichConsoleProducer, load_producer_factory
from .application.ports import ProducerFactory, ProducerPort, SendCallback, SendResult
from .domain import (
    AppenderError,
    AppenderSettings,
    ConfigurationError,
    ContextBinder,
    LogItem,
    ProducerConfig,
    ProjectConfig,
    bind,
    build_settings,
)
from .lib_log_loghub import summary_info

__all__ = [
    "AppenderError",
    "AppenderSettings",
    "ConfigurationError",
    "ContextBinder",
    "LogItem",
    "LoghubCallback",
    "LoghubHandler",
    "ProducerConfig",
    "ProducerFactory",
    "ProducerPort",
    "ProjectConfig",
    "RichConsoleProducer",
    "SendCallback",
    "SendResult",
    "bind",
    "build_settings",
    "load_producer_factory",
    "summary_info",
]
