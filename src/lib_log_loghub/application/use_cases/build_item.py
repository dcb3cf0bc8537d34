"""Use case turning one :class:`logging.LogRecord` into one :class:`LogItem`.

Purpose
-------
Derive every Loghub field from the record in a fixed order so that two runs
over the same input produce identical items.

Contents
--------
* :func:`read_location` - call-site reader with an explicit ``capture`` switch.
* :func:`format_throwable` - flatten an exception chain into text.
* :func:`record_extras` - caller-supplied ``extra`` attributes of a record.
* :func:`build_log_item` - the adaptation itself.

System Role
-----------
Application-layer function invoked by :class:`LoghubHandler.emit`. It never
raises for missing optional data; absent call-sites, formatters and contexts
degrade to substitutions or omitted fields.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import traceback
from collections.abc import Callable, Mapping
from types import FrameType
from typing import Any

from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import AppenderSettings

UNKNOWN_LOCATION = "Unknown(Unknown Source)"

_UNKNOWN_FILE = "(unknown file)"
_LINE_SEPARATOR = os.linesep
_RESERVED_ATTRIBUTES = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}
#: Attributes every :class:`logging.LogRecord` carries; anything else came from ``extra``.

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_SKIPPED_DIRECTORIES = tuple(
    os.path.normcase(directory) for directory in (os.path.dirname(os.path.abspath(logging.__file__)), _PACKAGE_DIR)
)
_SKIPPED_FILES = (os.path.normcase(os.path.abspath(threading.__file__)),)


def _has_location(record: logging.LogRecord) -> bool:
    return bool(record.pathname) and record.pathname != _UNKNOWN_FILE and record.lineno > 0


def _format_location(module: str, function: str, filename: str, lineno: int) -> str:
    return f"{module}.{function}({filename}:{lineno})"


def _is_internal(frame: FrameType) -> bool:
    filename = os.path.normcase(os.path.abspath(frame.f_code.co_filename))
    if filename in _SKIPPED_FILES:
        return True
    return any(filename.startswith(directory + os.sep) for directory in _SKIPPED_DIRECTORIES)


def _capture_from_stack() -> str | None:
    """Return the first stack frame outside :mod:`logging` and this package."""

    frame: FrameType | None = sys._getframe(1)
    while frame is not None:
        if not _is_internal(frame):
            code = frame.f_code
            filename = os.path.basename(code.co_filename)
            module = os.path.splitext(filename)[0]
            return _format_location(module, code.co_name, filename, frame.f_lineno)
        frame = frame.f_back
    return None


def read_location(record: logging.LogRecord, *, capture: bool) -> str:
    """Return ``module.function(file:line)`` for ``record``.

    When the record was created without call-site information and ``capture``
    is true, the live stack of the emitting thread is inspected instead. Only
    this call is affected; no logging-wide switch is flipped.

    Examples
    --------
    >>> record = logging.LogRecord("app", logging.INFO, "/srv/app/jobs.py", 12, "hi", (), None, func="run")
    >>> read_location(record, capture=False)
    'jobs.run(jobs.py:12)'
    >>> blind = logging.LogRecord("app", logging.INFO, "(unknown file)", 0, "hi", (), None)
    >>> read_location(blind, capture=False)
    'Unknown(Unknown Source)'
    """

    if _has_location(record):
        return _format_location(record.module, record.funcName or "<module>", record.filename, record.lineno)
    if capture:
        location = _capture_from_stack()
        if location is not None:
            return location
    return UNKNOWN_LOCATION


def _describe(exc: BaseException) -> str:
    name = type(exc).__qualname__
    module = type(exc).__module__
    if module not in {"builtins", "__main__"}:
        name = f"{module}.{name}"
    text = str(exc)
    return f"{name}: {text}" if text else name


def format_throwable(exc_info: Any) -> str | None:
    """Flatten ``exc_info`` and its causes into platform line-separated text.

    The outer exception comes first; every cause starts a new group prefixed
    with ``Caused by:``. Each group is a description line followed by one
    ``\\tat file:line in function`` line per traceback frame.
    """

    if not exc_info or not isinstance(exc_info, tuple):
        return None
    exc = exc_info[1]
    if exc is None:
        return None

    entries: list[str] = []
    seen: set[int] = set()
    tb = exc_info[2]
    prefix = ""
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        entries.append(prefix + _describe(exc))
        for frame in traceback.extract_tb(tb if tb is not None else exc.__traceback__):
            entries.append(f"\tat {frame.filename}:{frame.lineno} in {frame.name}")
        if exc.__cause__ is not None:
            exc = exc.__cause__
        elif exc.__suppress_context__:
            exc = None
        else:
            exc = exc.__context__
        tb = None
        prefix = "Caused by: "
    return _LINE_SEPARATOR.join(entries)


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return attributes attached through ``logger.log(..., extra=...)``."""

    return {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRIBUTES and not key.startswith("_")}


def build_log_item(
    record: logging.LogRecord,
    *,
    settings: AppenderSettings,
    context: Mapping[str, Any] | None = None,
    layout: Callable[[logging.LogRecord], str] | None = None,
) -> LogItem:
    """Build the single :class:`LogItem` describing ``record``.

    Parameters
    ----------
    record:
        Record handed to the handler by :mod:`logging`.
    settings:
        Validated settings supplying the time formatter and capture switch.
    context:
        Mapped diagnostic context active on the emitting thread. Record
        ``extra`` attributes are merged over it.
    layout:
        Optional formatter callable; its output becomes the ``log`` field.
    """

    millis = int(record.created * 1000)
    item = LogItem(time=millis // 1000)
    item.push_back("time", settings.formatter.format_millis(millis))
    item.push_back("level", record.levelname)
    item.push_back("thread", record.threadName or "")
    item.push_back("location", read_location(record, capture=settings.capture_location))
    item.push_back("message", record.getMessage())

    throwable = format_throwable(record.exc_info)
    if throwable is not None:
        item.push_back("throwable", throwable)

    if layout is not None:
        item.push_back("log", layout(record))

    properties: dict[str, Any] = dict(context or {})
    properties.update(record_extras(record))
    for key in sorted(properties):
        item.push_back(key, "" if properties[key] is None else str(properties[key]))
    return item


__all__ = [
    "UNKNOWN_LOCATION",
    "build_log_item",
    "format_throwable",
    "read_location",
    "record_extras",
]
