"""Adapters bridging :mod:`logging` and producer clients to the application layer."""

from __future__ import annotations

from .callback import LoghubCallback
from .console_producer import RichConsoleProducer, create_console_producer
from .factories import BUILTIN_FACTORIES, load_producer_factory
from .handler import LoghubHandler
from .queue import DeliveryQueue, Submission

__all__ = [
    "BUILTIN_FACTORIES",
    "DeliveryQueue",
    "LoghubCallback",
    "LoghubHandler",
    "RichConsoleProducer",
    "Submission",
    "create_console_producer",
    "load_producer_factory",
]
