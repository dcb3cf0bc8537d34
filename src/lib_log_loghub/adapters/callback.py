"""Delivery callback reporting producer outcomes through :mod:`logging`.

Purpose
-------
Observe the asynchronous completion of one submission. The callback exists
for operators only; it never feeds back into application control flow.

System Role
-----------
Constructed by :class:`LoghubHandler.emit` for every record and invoked once
by the producer on one of its own threads.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from lib_log_loghub.application.ports.producer import SendCallback, SendResult
from lib_log_loghub.domain.items import LogItem

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoghubCallback(SendCallback):
    """Log the outcome of sending ``items`` to ``project``/``logstore``.

    Examples
    --------
    >>> item = LogItem(time=1)
    >>> item.push_back("message", "hello")
    >>> callback = LoghubCallback("proj", "store", "", None, (item,))
    >>> callback(SendResult(successful=True))
    """

    project: str
    logstore: str
    topic: str
    source: str | None
    items: Sequence[LogItem]

    def __call__(self, result: SendResult) -> None:
        """Report ``result``; failures are logged at ``ERROR`` with the payload."""
        try:
            if result.successful:
                LOGGER.debug(
                    "Sent %d log item(s) to project=%s logstore=%s after %d attempt(s)",
                    len(self.items),
                    self.project,
                    self.logstore,
                    result.attempts,
                )
                return
            LOGGER.error(
                "Failed to send log: project=%s logstore=%s topic=%s source=%s error_code=%s error_message=%s "
                "request_id=%s attempts=%d items=%s",
                self.project,
                self.logstore,
                self.topic,
                self.source,
                result.error_code,
                result.error_message,
                result.request_id,
                result.attempts,
                [item.contents for item in self.items],
            )
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Delivery callback raised while reporting a result; continuing", exc_info=exc)


__all__ = ["LoghubCallback"]
