"""Shutdown orchestration for a handler-owned producer.

Purpose
-------
Provide the single blocking boundary of the appender: flush whatever the
producer buffered, then release its resources.
"""

from __future__ import annotations

from typing import Callable

from lib_log_loghub.application.ports.producer import ProducerPort


def create_shutdown(producer: ProducerPort | None) -> Callable[[], None]:
    """Return a callable performing the flush-then-close sequence.

    ``producer`` may be ``None`` (never started); the callable is then a no-op.
    """

    def shutdown() -> None:
        """Flush buffered items and release producer resources."""
        if producer is None:
            return
        try:
            producer.flush()
        finally:
            producer.close()

    return shutdown


__all__ = ["create_shutdown"]
