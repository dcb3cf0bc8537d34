"""``logging.Handler`` that forwards records to a Loghub producer client.

Purpose
-------
Bridge Python's logging framework to the Loghub ingestion service: each
record becomes one :class:`LogItem` which is handed to an injected producer
together with a :class:`LoghubCallback`. Batching, retries, and transport
stay inside the producer.

Contents
--------
* :class:`LoghubHandler` - the appender, with ``start``/``stop`` lifecycle
  hooks and constructors for attribute mappings and the environment.

System Role
-----------
Outer adapter and public entry point. Configuration is validated before the
handler exists; ``emit`` never blocks on delivery and routes its own failures
through :meth:`logging.Handler.handleError` unless configured otherwise.

Examples
--------
>>> import logging
>>> from lib_log_loghub import LoghubHandler
>>> handler = LoghubHandler.from_attributes(  # doctest: +SKIP
...     projectName="my-project", logstore="app", endpoint="cn-hangzhou.log.aliyuncs.com",
...     accessKeyId="...", accessKey="...", producerFactory="mypkg.loghub:create_producer",
... )
>>> logging.getLogger().addHandler(handler)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from lib_log_loghub.application.ports.producer import ProducerFactory, ProducerPort
from lib_log_loghub.application.use_cases.build_item import build_log_item
from lib_log_loghub.application.use_cases.shutdown import create_shutdown
from lib_log_loghub.domain.context import DEFAULT_BINDER, ContextBinder
from lib_log_loghub.domain.errors import AppenderError
from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import AppenderSettings, build_settings

from .callback import LoghubCallback
from .factories import load_producer_factory

LOGGER = logging.getLogger(__name__)

_PACKAGE_LOGGER = __name__.split(".", 1)[0]


def _is_internal_record(record: logging.LogRecord) -> bool:
    """Records from this package describe delivery itself and must not loop back."""

    return record.name == _PACKAGE_LOGGER or record.name.startswith(_PACKAGE_LOGGER + ".")


class LoghubHandler(logging.Handler):
    """Adapt :class:`logging.LogRecord` objects into Loghub items.

    Parameters
    ----------
    settings:
        Validated :class:`AppenderSettings`.
    producer_factory:
        :data:`ProducerFactory`, builtin name (``"console"``) or import path.
    level:
        Handler threshold, as for any :class:`logging.Handler`.
    binder:
        Context source whose current mapping is added to every item.
    autostart:
        Build the producer immediately; set ``False`` to call :meth:`start`
        explicitly.
    """

    def __init__(
        self,
        settings: AppenderSettings,
        *,
        producer_factory: ProducerFactory | str,
        level: int | str = logging.NOTSET,
        binder: ContextBinder | None = None,
        autostart: bool = True,
    ) -> None:
        super().__init__(level)
        self._settings = settings
        self._producer_factory = load_producer_factory(producer_factory)
        self._binder = binder or DEFAULT_BINDER
        self._producer: ProducerPort | None = None
        self._lifecycle_lock = threading.Lock()
        if autostart:
            self.start()

    @classmethod
    def from_attributes(
        cls,
        attributes: Mapping[str, Any] | None = None,
        *,
        producer_factory: ProducerFactory | str | None = None,
        level: int | str = logging.NOTSET,
        binder: ContextBinder | None = None,
        autostart: bool = True,
        **extra_attributes: Any,
    ) -> "LoghubHandler":
        """Validate camelCase attributes and build a handler.

        Keyword attributes are merged over ``attributes`` so the method works
        as a ``"()"`` factory in :func:`logging.config.dictConfig`. The
        producer factory may also be given as the ``producerFactory``
        attribute.
        """

        merged: dict[str, Any] = dict(attributes or {})
        merged.update(extra_attributes)
        factory = producer_factory if producer_factory is not None else merged.pop("producerFactory", None)
        merged.pop("producerFactory", None)
        settings = build_settings(merged)
        return cls(settings, producer_factory=load_producer_factory(factory), level=level, binder=binder, autostart=autostart)

    @classmethod
    def from_env(
        cls,
        *,
        environ: Mapping[str, str] | None = None,
        producer_factory: ProducerFactory | str | None = None,
        level: int | str = logging.NOTSET,
        autostart: bool = True,
    ) -> "LoghubHandler":
        """Build a handler from ``LOGHUB_*`` environment variables."""

        from lib_log_loghub import config

        attributes = config.attributes_from_env(environ)
        return cls.from_attributes(attributes, producer_factory=producer_factory, level=level, autostart=autostart)

    @property
    def settings(self) -> AppenderSettings:
        return self._settings

    @property
    def producer(self) -> ProducerPort | None:
        return self._producer

    @property
    def started(self) -> bool:
        return self._producer is not None

    def start(self) -> None:
        """Create the producer; a previous producer is flushed and closed first."""

        with self._lifecycle_lock:
            with self.lock:
                previous = self._producer
                self._producer = None
            if previous is not None:
                LOGGER.debug("Restarting Loghub handler; releasing previous producer")
                create_shutdown(previous)()
            producer = self._producer_factory(self._settings.project_config(), self._settings.producer_config())
            with self.lock:
                self._producer = producer
            LOGGER.debug(
                "Loghub handler started for project=%s logstore=%s",
                self._settings.project_name,
                self._settings.logstore,
            )

    def stop(self) -> None:
        """Flush and release the producer; a no-op when never started."""

        with self._lifecycle_lock:
            with self.lock:
                producer = self._producer
                self._producer = None
            create_shutdown(producer)()

    def filter(self, record: logging.LogRecord) -> bool | logging.LogRecord:
        """Drop records from this package before the handler lock is taken."""

        if _is_internal_record(record):
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        """Build one item for ``record`` and submit it without waiting."""

        try:
            producer = self._producer
            if producer is None:
                raise RuntimeError("LoghubHandler.start() must be called before emitting records")
            item = self.build_item(record)
            settings = self._settings
            items = [item]
            callback = LoghubCallback(settings.project_name, settings.logstore, settings.topic, settings.source, tuple(items))
            producer.send(settings.project_name, settings.logstore, settings.topic, settings.source, items, callback)
        except RecursionError:
            raise
        except Exception as exc:
            if self._settings.ignore_exceptions:
                self.handleError(record)
            else:
                raise AppenderError(f"Failed to append record from logger {record.name!r}: {exc}") from exc

    def build_item(self, record: logging.LogRecord) -> LogItem:
        """Return the :class:`LogItem` that :meth:`emit` would submit."""

        layout = self.format if self.formatter is not None else None
        return build_log_item(record, settings=self._settings, context=self._binder.current(), layout=layout)

    def flush(self) -> None:
        """Block until the producer dispatched everything buffered so far."""

        producer = self._producer
        if producer is not None:
            producer.flush()

    def close(self) -> None:
        """Stop the producer, then detach from :mod:`logging`."""

        try:
            self.stop()
        finally:
            super().close()


__all__ = ["LoghubHandler"]
