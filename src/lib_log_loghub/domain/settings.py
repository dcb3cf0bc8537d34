"""Validated appender settings built from string attributes.

Purpose
-------
Translate the declarative attribute surface (``projectName``, ``logstore``,
``packageTimeoutInMS`` ...) into an immutable :class:`AppenderSettings`
instance, failing fast on missing identity fields or out-of-range tunables.

Contents
--------
* :class:`ParsedInt` - outcome of parsing an optional numeric attribute.
* :func:`parse_int` / :func:`parse_bool` - lenient attribute parsers.
* :class:`ProjectConfig` / :class:`ProducerConfig` - the two configuration
  objects handed to a producer factory.
* :class:`AppenderSettings` - the validated settings aggregate.
* :func:`build_settings` - construction entry point used by the handler,
  the environment loader and the CLI.

System Role
-----------
Domain layer. Nothing here touches IO; malformed numeric input is reported
through the package logger so operators see the fallback without the default
selection changing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigurationError
from .timefmt import TimeFormatter, compile_time_format

logger = logging.getLogger(__name__)

DEFAULT_TIME_FORMAT = "yyyy-MM-dd'T'HH:mm:ssZ"
DEFAULT_TIME_ZONE = "UTC"
USER_AGENT = "python-logging"

DEFAULT_PACKAGE_TIMEOUT_MS = 3000
MAX_LOGS_COUNT_PER_PACKAGE = 4096
MAX_LOGS_BYTES_PER_PACKAGE = 5 * 1024 * 1024
DEFAULT_MEM_POOL_SIZE_BYTES = 100 * 1024 * 1024
DEFAULT_RETRY_TIMES = 3
DEFAULT_MAX_IO_THREADS = 8

REQUIRED_ATTRIBUTES = ("projectName", "logstore", "endpoint", "accessKeyId", "accessKey")

ATTRIBUTE_NAMES = (
    "projectName",
    "logstore",
    "endpoint",
    "accessKeyId",
    "accessKey",
    "stsToken",
    "packageTimeoutInMS",
    "logsCountPerPackage",
    "logsBytesPerPackage",
    "memPoolSizeInByte",
    "retryTimes",
    "maxIOThreadSizeInPool",
    "topic",
    "source",
    "timeFormat",
    "timeZone",
    "ignoreExceptions",
    "captureLocation",
)
#: Attribute names accepted by :func:`build_settings`, in documentation order.

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


@dataclass(frozen=True)
class ParsedInt:
    """Result of parsing one numeric attribute.

    ``used_default`` is ``True`` whenever ``value`` came from the fallback,
    either because the raw string was empty or because it was not an integer.
    ``malformed`` distinguishes the latter so callers can warn about typos.
    """

    value: int
    used_default: bool
    raw: str | None = None

    @property
    def malformed(self) -> bool:
        return self.used_default and bool(self.raw)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_blank(value: str | None) -> bool:
    return value is None or len(value) == 0


def parse_int(raw: Any, default: int) -> ParsedInt:
    """Parse ``raw`` as a signed 32-bit decimal integer, falling back to ``default``.

    Only ASCII digits with an optional sign are accepted; surrounding
    whitespace, ``_`` separators and out-of-range values fall back.

    Examples
    --------
    >>> parse_int("42", 7)
    ParsedInt(value=42, used_default=False, raw='42')
    >>> parse_int("4k", 7).value
    7
    >>> parse_int(" 42", 7).value
    7
    >>> parse_int(None, 7).used_default
    True
    """

    text = _as_text(raw)
    if is_blank(text) or not _DECIMAL.fullmatch(text):
        return ParsedInt(value=default, used_default=True, raw=text)
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        return ParsedInt(value=default, used_default=True, raw=text)
    return ParsedInt(value=value, used_default=False, raw=text)


def parse_bool(raw: Any, default: bool) -> bool:
    """Parse ``raw`` leniently towards ``default``.

    With a ``True`` default only ``"false"`` (case-insensitive) disables the
    flag; with a ``False`` default only ``"true"`` enables it.

    Examples
    --------
    >>> parse_bool("ture", True), parse_bool("FALSE", True), parse_bool("yes", False)
    (True, False, False)
    """

    text = _as_text(raw)
    if is_blank(text):
        return default
    if default:
        return text.strip().lower() != "false"
    return text.strip().lower() == "true"


@dataclass(frozen=True)
class ProjectConfig:
    """Destination identity and credentials for the producer client."""

    project_name: str
    endpoint: str
    access_key_id: str
    access_key: str = field(repr=False)
    sts_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class ProducerConfig:
    """Batching tunables forwarded verbatim to the producer client."""

    package_timeout_ms: int = DEFAULT_PACKAGE_TIMEOUT_MS
    logs_count_per_package: int = MAX_LOGS_COUNT_PER_PACKAGE
    logs_bytes_per_package: int = MAX_LOGS_BYTES_PER_PACKAGE
    mem_pool_size_bytes: int = DEFAULT_MEM_POOL_SIZE_BYTES
    retry_times: int = DEFAULT_RETRY_TIMES
    max_io_threads: int = DEFAULT_MAX_IO_THREADS
    user_agent: str = USER_AGENT


@dataclass(frozen=True)
class AppenderSettings:
    """Immutable, validated configuration of one :class:`LoghubHandler`.

    Attributes
    ----------
    project_name, logstore, endpoint, access_key_id, access_key, sts_token:
        Destination identity; the first five are guaranteed non-empty.
    package_timeout_ms, logs_count_per_package, logs_bytes_per_package,
    mem_pool_size_bytes, retry_times, max_io_threads:
        Producer tunables, already range-checked.
    topic:
        Loghub topic; ``""`` when not configured.
    source:
        Loghub source; ``None`` lets the producer choose.
    time_format, time_zone:
        Pattern and zone id rendering the ``time`` field.
    ignore_exceptions:
        When ``True`` failures inside ``emit`` go through ``handleError``.
    capture_location:
        Whether a missing call-site may be recovered from the live stack.
    """

    project_name: str
    logstore: str
    endpoint: str
    access_key_id: str
    access_key: str = field(repr=False)
    sts_token: str | None = field(default=None, repr=False)
    package_timeout_ms: int = DEFAULT_PACKAGE_TIMEOUT_MS
    logs_count_per_package: int = MAX_LOGS_COUNT_PER_PACKAGE
    logs_bytes_per_package: int = MAX_LOGS_BYTES_PER_PACKAGE
    mem_pool_size_bytes: int = DEFAULT_MEM_POOL_SIZE_BYTES
    retry_times: int = DEFAULT_RETRY_TIMES
    max_io_threads: int = DEFAULT_MAX_IO_THREADS
    topic: str = ""
    source: str | None = None
    time_format: str = DEFAULT_TIME_FORMAT
    time_zone: str = DEFAULT_TIME_ZONE
    ignore_exceptions: bool = True
    capture_location: bool = True
    formatter: TimeFormatter = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        try:
            formatter = compile_time_format(self.time_format, self.time_zone)
        except ValueError as exc:
            raise ConfigurationError("timeFormat", f"Config value [timeFormat/timeZone] is invalid: {exc}") from exc
        object.__setattr__(self, "formatter", formatter)

    def project_config(self) -> ProjectConfig:
        return ProjectConfig(
            project_name=self.project_name,
            endpoint=self.endpoint,
            access_key_id=self.access_key_id,
            access_key=self.access_key,
            sts_token=self.sts_token,
        )

    def producer_config(self) -> ProducerConfig:
        return ProducerConfig(
            package_timeout_ms=self.package_timeout_ms,
            logs_count_per_package=self.logs_count_per_package,
            logs_bytes_per_package=self.logs_bytes_per_package,
            mem_pool_size_bytes=self.mem_pool_size_bytes,
            retry_times=self.retry_times,
            max_io_threads=self.max_io_threads,
        )


def _check(condition: bool, name: str, message: str) -> None:
    if not condition:
        raise ConfigurationError(name, message)


def _tunable(attributes: Mapping[str, Any], name: str, default: int) -> int:
    parsed = parse_int(attributes.get(name), default)
    if parsed.malformed:
        logger.warning("Config value [%s]=%r is not an integer; using default %d", name, parsed.raw, default)
    return parsed.value


def build_settings(attributes: Mapping[str, Any]) -> AppenderSettings:
    """Validate ``attributes`` and return the resulting :class:`AppenderSettings`.

    Raises
    ------
    ConfigurationError
        When a required attribute is empty, a tunable is out of range, or the
        time pattern/zone cannot be compiled.

    Examples
    --------
    >>> settings = build_settings({
    ...     "projectName": "proj", "logstore": "store", "endpoint": "cn-hangzhou.log.aliyuncs.com",
    ...     "accessKeyId": "id", "accessKey": "secret", "logsCountPerPackage": "oops",
    ... })
    >>> settings.logs_count_per_package, settings.topic
    (4096, '')
    """

    text = {name: _as_text(attributes.get(name)) for name in ATTRIBUTE_NAMES}
    for name in REQUIRED_ATTRIBUTES:
        _check(not is_blank(text[name]), name, f"Config value [{name}] must not be empty.")

    package_timeout = _tunable(text, "packageTimeoutInMS", DEFAULT_PACKAGE_TIMEOUT_MS)
    _check(package_timeout > 10, "packageTimeoutInMS", "Config value [packageTimeoutInMS] must be > 10.")

    count = _tunable(text, "logsCountPerPackage", MAX_LOGS_COUNT_PER_PACKAGE)
    _check(
        1 <= count <= MAX_LOGS_COUNT_PER_PACKAGE,
        "logsCountPerPackage",
        f"Config value [logsCountPerPackage] must be between [1,{MAX_LOGS_COUNT_PER_PACKAGE}].",
    )

    size = _tunable(text, "logsBytesPerPackage", MAX_LOGS_BYTES_PER_PACKAGE)
    _check(
        1 <= size <= MAX_LOGS_BYTES_PER_PACKAGE,
        "logsBytesPerPackage",
        f"Config value [logsBytesPerPackage] must be between [1,{MAX_LOGS_BYTES_PER_PACKAGE}].",
    )

    pool = _tunable(text, "memPoolSizeInByte", DEFAULT_MEM_POOL_SIZE_BYTES)
    _check(pool > 0, "memPoolSizeInByte", "Config value [memPoolSizeInByte] must be > 0.")

    retries = _tunable(text, "retryTimes", DEFAULT_RETRY_TIMES)
    _check(retries > 0, "retryTimes", "Config value [retryTimes] must be > 0.")

    threads = _tunable(text, "maxIOThreadSizeInPool", DEFAULT_MAX_IO_THREADS)
    _check(threads > 0, "maxIOThreadSizeInPool", "Config value [maxIOThreadSizeInPool] must be > 0.")

    time_format = DEFAULT_TIME_FORMAT if is_blank(text["timeFormat"]) else text["timeFormat"]
    time_zone = DEFAULT_TIME_ZONE if is_blank(text["timeZone"]) else text["timeZone"]

    return AppenderSettings(
        project_name=text["projectName"],
        logstore=text["logstore"],
        endpoint=text["endpoint"],
        access_key_id=text["accessKeyId"],
        access_key=text["accessKey"],
        sts_token=text["stsToken"],
        package_timeout_ms=package_timeout,
        logs_count_per_package=count,
        logs_bytes_per_package=size,
        mem_pool_size_bytes=pool,
        retry_times=retries,
        max_io_threads=threads,
        topic=text["topic"] or "",
        source=text["source"],
        time_format=time_format,
        time_zone=time_zone,
        ignore_exceptions=parse_bool(text["ignoreExceptions"], True),
        capture_location=parse_bool(text["captureLocation"], True),
    )


__all__ = [
    "ATTRIBUTE_NAMES",
    "AppenderSettings",
    "DEFAULT_TIME_FORMAT",
    "DEFAULT_TIME_ZONE",
    "ParsedInt",
    "ProducerConfig",
    "ProjectConfig",
    "REQUIRED_ATTRIBUTES",
    "USER_AGENT",
    "build_settings",
    "is_blank",
    "parse_bool",
    "parse_int",
]
