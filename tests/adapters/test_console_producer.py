from __future__ import annotations

import threading

import pytest
from rich.console import Console

from lib_log_loghub import LoghubHandler
from lib_log_loghub.adapters.console_producer import RichConsoleProducer, create_console_producer
from lib_log_loghub.adapters.factories import load_producer_factory
from lib_log_loghub.application.ports.producer import SendResult
from lib_log_loghub.domain.items import LogItem
from lib_log_loghub.domain.settings import AppenderSettings


def _item(level: str, message: str) -> LogItem:
    item = LogItem(time=1)
    for key, value in (("time", "T"), ("level", level), ("thread", "main"), ("location", "loc"), ("message", message), ("user", "bob")):
        item.push_back(key, value)
    return item


def _producer(settings: AppenderSettings, **kwargs) -> tuple[RichConsoleProducer, Console]:
    console = Console(record=True, force_terminal=False, color_system=None, width=200)
    return RichConsoleProducer(settings.project_config(), settings.producer_config(), console=console, **kwargs), console


def test_items_are_printed_and_acknowledged(settings: AppenderSettings) -> None:
    producer, console = _producer(settings)
    results: list[SendResult] = []
    threads: list[str] = []

    def callback(result: SendResult) -> None:
        threads.append(threading.current_thread().name)
        results.append(result)

    producer.send("proj", "store", "web", None, [_item("INFO", "hello")], callback)
    producer.flush()
    producer.close()

    assert console.export_text().strip() == "proj/store[web] T INFO hello user=bob"
    assert results == [SendResult(successful=True)]
    assert threads == ["loghub-console-proj"]


def test_send_after_close_raises(settings: AppenderSettings) -> None:
    producer, _ = _producer(settings)
    producer.close()
    producer.close()

    assert producer.closed
    with pytest.raises(RuntimeError):
        producer.send("proj", "store", "", None, [_item("INFO", "late")])


def test_close_drains_outstanding_items(settings: AppenderSettings) -> None:
    producer, console = _producer(settings)

    for index in range(20):
        producer.send("proj", "store", "", None, [_item("DEBUG", f"m{index}")])
    producer.close()

    lines = console.export_text().splitlines()
    assert len(lines) == 20
    assert lines[-1].endswith("m19 user=bob")


def test_styles_follow_level(settings: AppenderSettings) -> None:
    producer, _ = _producer(settings)
    plain, _ = _producer(settings, no_color=True)
    try:
        assert producer._style_for(_item("ERROR", "x")) == "red"
        assert producer._style_for(_item("TRACE", "x")) == ""
        assert plain._style_for(_item("ERROR", "x")) == ""
    finally:
        producer.close()
        plain.close()


def test_console_factory_drives_handler_end_to_end(settings: AppenderSettings) -> None:
    handler = LoghubHandler(settings, producer_factory="console")

    assert load_producer_factory("console") is create_console_producer
    assert isinstance(handler.producer, RichConsoleProducer)
    handler.close()
    assert handler.producer is None


def test_send_never_blocks_or_calls_back_on_caller_thread(settings: AppenderSettings) -> None:
    release = threading.Event()
    producer, _ = _producer(settings)
    callback_threads: list[str] = []
    caller = threading.current_thread().name

    def callback(result: SendResult) -> None:
        release.wait(1)
        callback_threads.append(threading.current_thread().name)

    for index in range(3000):
        producer.send("proj", "store", "", None, [_item("INFO", f"m{index}")], callback)
    release.set()
    producer.flush()
    producer.close()

    assert len(callback_threads) == 3000
    assert caller not in callback_threads
    assert set(callback_threads) == {"loghub-console-proj"}
