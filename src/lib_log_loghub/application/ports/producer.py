"""Port describing the external producer client that batches and ships items."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import ProducerConfig, ProjectConfig


@dataclass(frozen=True)
class SendResult:
    """Outcome reported by the producer once a submission completes."""

    successful: bool
    error_code: str = ""
    error_message: str = ""
    request_id: str = ""
    attempts: int = 1


@runtime_checkable
class SendCallback(Protocol):
    """Observer invoked exactly once per :meth:`ProducerPort.send` call."""

    def __call__(self, result: SendResult) -> None: ...


@runtime_checkable
class ProducerPort(Protocol):
    """Asynchronous, thread-safe log producer owned by one handler."""

    def send(
        self,
        project: str,
        logstore: str,
        topic: str,
        source: str | None,
        items: Sequence[LogItem],
        callback: SendCallback | None = None,
    ) -> None:
        """Queue ``items`` for delivery without blocking the caller."""

    def flush(self) -> None:
        """Block until buffered items are dispatched or retried to exhaustion."""

    def close(self) -> None:
        """Release threads, connections, and pools; call after :meth:`flush`."""


ProducerFactory = Callable[[ProjectConfig, ProducerConfig], ProducerPort]
#: Builds a producer bound to one destination and batching configuration.


__all__ = ["ProducerFactory", "ProducerPort", "SendCallback", "SendResult"]
