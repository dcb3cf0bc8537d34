from __future__ import annotations

import logging
import threading

import pytest

from lib_log_loghub.adapters.queue import DeliveryQueue, Submission


def _submission(index: int) -> Submission:
    return Submission("proj", f"store-{index}", "", None, ())


def test_queue_processes_submissions_in_order() -> None:
    processed: list[str] = []
    delivery = DeliveryQueue(worker=lambda submission: processed.append(submission.logstore))
    delivery.start()

    for index in range(5):
        assert delivery.put(_submission(index))
    delivery.stop()

    assert processed == [f"store-{index}" for index in range(5)]
    assert not delivery.running


def test_wait_until_idle_returns_after_processing() -> None:
    release = threading.Event()
    processed: list[str] = []

    def worker(submission: Submission) -> None:
        release.wait(1)
        processed.append(submission.logstore)

    delivery = DeliveryQueue(worker=worker)
    delivery.start()
    delivery.put(_submission(1))

    assert delivery.wait_until_idle(timeout=0.01) is False
    release.set()
    assert delivery.wait_until_idle(timeout=1) is True
    assert processed == ["store-1"]
    delivery.stop()


def test_wait_until_idle_covers_submissions_queued_while_processing() -> None:
    processed: list[str] = []

    def worker(submission: Submission) -> None:
        processed.append(submission.logstore)
        if submission.logstore == "store-0":
            delivery.put(_submission(1))

    delivery = DeliveryQueue(worker=worker)
    delivery.start()
    delivery.put(_submission(0))

    assert delivery.wait_until_idle(timeout=1) is True
    assert processed == ["store-0", "store-1"]
    delivery.stop()


def test_wait_until_idle_accounts_for_every_put() -> None:
    processed: list[str] = []
    delivery = DeliveryQueue(worker=lambda submission: processed.append(submission.logstore))
    delivery.start()

    for index in range(300):
        delivery.put(_submission(index))
        if index % 25 == 0:
            assert delivery.wait_until_idle(timeout=1) is True
            assert len(processed) == index + 1
    delivery.stop()


def test_drop_policy_invokes_callback_when_full() -> None:
    release = threading.Event()
    dropped: list[str] = []
    delivery = DeliveryQueue(
        worker=lambda submission: release.wait(1),
        maxsize=1,
        drop_policy="drop",
        on_drop=lambda submission: dropped.append(submission.logstore),
    )
    delivery.start()

    accepted = [delivery.put(_submission(index)) for index in range(4)]
    release.set()
    delivery.stop()

    assert accepted.count(False) == len(dropped)
    assert dropped


def test_stop_without_drain_discards_pending() -> None:
    release = threading.Event()
    processed: list[str] = []
    dropped: list[str] = []

    def worker(submission: Submission) -> None:
        release.wait(1)
        processed.append(submission.logstore)

    delivery = DeliveryQueue(worker=worker, on_drop=lambda submission: dropped.append(submission.logstore))
    delivery.start()
    for index in range(3):
        delivery.put(_submission(index))

    timer = threading.Timer(0.05, release.set)
    timer.start()
    delivery.stop(drain=False)
    timer.join()

    assert len(processed) + len(dropped) == 3
    assert dropped


def test_worker_errors_are_logged_and_processing_continues(caplog: pytest.LogCaptureFixture) -> None:
    processed: list[str] = []

    def worker(submission: Submission) -> None:
        if submission.logstore == "store-0":
            raise ValueError("bad submission")
        processed.append(submission.logstore)

    delivery = DeliveryQueue(worker=worker)
    with caplog.at_level(logging.ERROR, logger="lib_log_loghub.adapters.queue"):
        delivery.start()
        delivery.put(_submission(0))
        delivery.put(_submission(1))
        delivery.stop()

    assert processed == ["store-1"]
    assert delivery.worker_failed
    assert any("Delivery worker raised" in record.getMessage() for record in caplog.records)


def test_stop_times_out_when_worker_hangs() -> None:
    release = threading.Event()
    delivery = DeliveryQueue(worker=lambda submission: release.wait(5), stop_timeout=0.05)
    delivery.start()
    delivery.put(_submission(0))

    with pytest.raises(RuntimeError):
        delivery.stop()
    release.set()


def test_invalid_drop_policy_is_rejected() -> None:
    with pytest.raises(ValueError):
        DeliveryQueue(drop_policy="spill")


def test_stop_without_start_is_noop() -> None:
    DeliveryQueue().stop()
