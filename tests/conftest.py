from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from lib_log_loghub.application.ports.producer import SendCallback, SendResult
from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import AppenderSettings, ProducerConfig, ProjectConfig, build_settings

VALID_ATTRIBUTES: dict[str, str] = {
    "projectName": "proj",
    "logstore": "store",
    "endpoint": "cn-hangzhou.log.aliyuncs.com",
    "accessKeyId": "key-id",
    "accessKey": "key-secret",
}


@dataclass
class SentBatch:
    project: str
    logstore: str
    topic: str
    source: str | None
    items: list[LogItem]
    callback: SendCallback | None


@dataclass
class FakeProducer:
    """Record producer calls; callbacks fire immediately unless ``deferred``."""

    project_config: ProjectConfig
    producer_config: ProducerConfig
    deferred: bool = False
    result: SendResult = field(default_factory=lambda: SendResult(successful=True))
    calls: list[str] = field(default_factory=list)
    sent: list[SentBatch] = field(default_factory=list)
    send_threads: list[str] = field(default_factory=list)
    fail_with: Exception | None = None

    def send(
        self,
        project: str,
        logstore: str,
        topic: str,
        source: str | None,
        items: Sequence[LogItem],
        callback: SendCallback | None = None,
    ) -> None:
        self.calls.append("send")
        if self.fail_with is not None:
            raise self.fail_with
        self.send_threads.append(threading.current_thread().name)
        self.sent.append(SentBatch(project, logstore, topic, source, list(items), callback))
        if not self.deferred and callback is not None:
            callback(self.result)

    def complete_all(self) -> None:
        for batch in self.sent:
            if batch.callback is not None:
                batch.callback(self.result)

    def flush(self) -> None:
        self.calls.append("flush")

    def close(self) -> None:
        self.calls.append("close")

    @property
    def items(self) -> list[LogItem]:
        return [item for batch in self.sent for item in batch.items]


class FakeProducerFactory:
    """Callable :data:`ProducerFactory` remembering every producer it built."""

    def __init__(self, **producer_kwargs: Any) -> None:
        self.created: list[FakeProducer] = []
        self._producer_kwargs = producer_kwargs

    def __call__(self, project_config: ProjectConfig, producer_config: ProducerConfig) -> FakeProducer:
        producer = FakeProducer(project_config, producer_config, **self._producer_kwargs)
        self.created.append(producer)
        return producer

    @property
    def current(self) -> FakeProducer:
        return self.created[-1]


@pytest.fixture
def attributes() -> dict[str, str]:
    return dict(VALID_ATTRIBUTES)


@pytest.fixture
def settings(attributes: dict[str, str]) -> AppenderSettings:
    return build_settings(attributes)


@pytest.fixture
def producer_factory() -> FakeProducerFactory:
    return FakeProducerFactory()


@pytest.fixture
def record_factory() -> Callable[..., logging.LogRecord]:
    def _factory(
        message: str = "hello %s",
        args: tuple[Any, ...] = ("world",),
        *,
        level: int = logging.INFO,
        created: float = 1_700_000_000.125,
        pathname: str = "/srv/app/jobs.py",
        lineno: int = 42,
        func: str | None = "run",
        exc_info: Any = None,
        thread_name: str = "MainThread",
        extra: dict[str, Any] | None = None,
    ) -> logging.LogRecord:
        record = logging.LogRecord("app.jobs", level, pathname, lineno, message, args, exc_info, func=func)
        record.created = created
        record.threadName = thread_name
        for key, value in (extra or {}).items():
            setattr(record, key, value)
        return record

    return _factory


@pytest.fixture
def isolated_logger(request: pytest.FixtureRequest) -> logging.Logger:
    logger = logging.getLogger(f"tests.{request.node.name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
