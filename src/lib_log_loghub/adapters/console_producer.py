"""Rich-powered dry-run producer implementing :class:`ProducerPort`.

Purpose
-------
Let developers and the CLI exercise the full appender lifecycle without
credentials or network access: every submitted item is printed to a Rich
console from a background thread, and the callback is then invoked exactly as
a real producer would.

Contents
--------
* :data:`_STYLE_MAP` - level-to-style mapping.
* :class:`RichConsoleProducer` - the producer.
* :func:`create_console_producer` - :data:`ProducerFactory` entry point.

System Role
-----------
Selected by ``producer_factory="console"``. It performs no batching, retry,
or transport; those remain the business of real producer clients.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from rich.console import Console

from lib_log_loghub.application.ports.producer import ProducerPort, SendCallback, SendResult
from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import ProducerConfig, ProjectConfig

from .queue import DeliveryQueue, Submission

LOGGER = logging.getLogger(__name__)

_STYLE_MAP: Mapping[str, str] = {
    "DEBUG": "dim",
    "INFO": "cyan",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold red",
}

#: Default Rich styles keyed by the ``level`` field.

_CORE_KEYS = ("time", "level", "thread", "location", "message")


class RichConsoleProducer(ProducerPort):
    """Print submitted items with Rich on a worker thread."""

    def __init__(
        self,
        project_config: ProjectConfig,
        producer_config: ProducerConfig,
        *,
        console: Console | None = None,
        no_color: bool = False,
    ) -> None:
        self._project_config = project_config
        self._producer_config = producer_config
        self._console = console if console is not None else Console(stderr=True, no_color=no_color)
        self._no_color = no_color
        self._closed = False
        self._delivery = DeliveryQueue(
            worker=self._deliver,
            maxsize=0,
            on_drop=self._report_drop,
            thread_name=f"loghub-console-{project_config.project_name}",
        )
        self._delivery.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def send(
        self,
        project: str,
        logstore: str,
        topic: str,
        source: str | None,
        items: Sequence[LogItem],
        callback: SendCallback | None = None,
    ) -> None:
        """Queue ``items`` for printing without blocking; raise :class:`RuntimeError` once closed.

        The callback always runs on the worker thread.
        """
        if self._closed:
            raise RuntimeError("RichConsoleProducer is closed")
        submission = Submission(project, logstore, topic, source, tuple(items), callback)
        self._delivery.put(submission)

    def flush(self) -> None:
        """Wait until every queued item was printed."""
        self._delivery.wait_until_idle()

    def close(self) -> None:
        """Stop the worker thread after draining outstanding items."""
        if self._closed:
            return
        self._closed = True
        self._delivery.stop(drain=True)

    @staticmethod
    def _report_drop(submission: Submission) -> None:
        LOGGER.warning(
            "Dropped %d log item(s) for project=%s logstore=%s before printing",
            len(submission.items),
            submission.project,
            submission.logstore,
        )

    def _deliver(self, submission: Submission) -> None:
        for item in submission.items:
            self._console.print(self._format_line(submission, item), style=self._style_for(item), markup=False, highlight=False)
        if submission.callback is not None:
            submission.callback(SendResult(successful=True, attempts=1))

    def _style_for(self, item: LogItem) -> str:
        if self._no_color:
            return ""
        return _STYLE_MAP.get(item.get("level", "") or "", "")

    @staticmethod
    def _format_line(submission: Submission, item: LogItem) -> str:
        """Return a console line for ``item``.

        Examples
        --------
        >>> item = LogItem(time=1)
        >>> for key, value in [("time", "t"), ("level", "INFO"), ("message", "hi"), ("user", "bob")]:
        ...     item.push_back(key, value)
        >>> RichConsoleProducer._format_line(Submission("proj", "store", "web", None, (item,)), item)
        'proj/store[web] t INFO hi user=bob'
        """
        target = f"{submission.project}/{submission.logstore}"
        if submission.topic:
            target += f"[{submission.topic}]"
        core = " ".join(value for key, value in item.contents if key in ("time", "level", "message"))
        extras = [f"{key}={value}" for key, value in item.contents if key not in _CORE_KEYS]
        return " ".join(part for part in (target, core, *extras) if part)


def create_console_producer(project_config: ProjectConfig, producer_config: ProducerConfig) -> RichConsoleProducer:
    """:data:`ProducerFactory` building a :class:`RichConsoleProducer`."""

    return RichConsoleProducer(project_config, producer_config)


__all__ = ["RichConsoleProducer", "create_console_producer"]
