"""Thread-based delivery queue used by the bundled producers.

Purpose
-------
Move submissions off the logging caller's thread so ``send`` never blocks on
output, and give ``flush``/``close`` a deterministic drain point.

Contents
--------
* :class:`Submission` - one ``send`` call captured for the worker.
* :class:`DeliveryQueue` - background worker with drop/block policies.

System Role
-----------
Infrastructure helper of :class:`RichConsoleProducer`. Real producer clients
ship their own batching pipeline and do not need it.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from lib_log_loghub.application.ports.producer import SendCallback
from lib_log_loghub.domain.items import LogItem

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submission:
    """Arguments of one :meth:`ProducerPort.send` call."""

    project: str
    logstore: str
    topic: str
    source: str | None
    items: Sequence[LogItem]
    callback: SendCallback | None = None


class DeliveryQueue:
    """Process submissions on a background thread in FIFO order.

    Examples
    --------
    >>> processed = []
    >>> delivery = DeliveryQueue(worker=lambda submission: processed.append(submission.logstore))
    >>> delivery.start()
    >>> delivery.put(Submission("proj", "store", "", None, ()))
    True
    >>> delivery.stop(drain=True)
    >>> processed
    ['store']
    """

    def __init__(
        self,
        *,
        worker: Callable[[Submission], None] | None = None,
        maxsize: int = 2048,
        drop_policy: str = "block",
        on_drop: Callable[[Submission], None] | None = None,
        timeout: float | None = 1.0,
        stop_timeout: float | None = 5.0,
        thread_name: str = "loghub-delivery",
    ) -> None:
        """Create the queue.

        Parameters
        ----------
        worker:
            Callable invoked for each submission on the worker thread.
        maxsize:
            Maximum number of queued submissions before the drop policy applies.
        drop_policy:
            ``"block"`` makes :meth:`put` wait up to ``timeout``; ``"drop"``
            rejects new submissions immediately when full.
        on_drop:
            Optional callback receiving rejected or discarded submissions.
        timeout:
            Producer wait (seconds) under the blocking policy; ``None`` waits
            indefinitely.
        stop_timeout:
            Default drain deadline for :meth:`stop`; ``None`` waits indefinitely.
        """
        policy = drop_policy.lower()
        if policy not in {"block", "drop"}:
            raise ValueError("drop_policy must be 'block' or 'drop'")
        self._worker = worker
        self._queue: queue.Queue[Submission | None] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._discarding = False
        self._drop_policy = policy
        self._on_drop = on_drop
        self._timeout = timeout
        self._stop_timeout = stop_timeout
        self._thread_name = thread_name
        self._worker_failed = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background worker thread if it is not already running."""
        if self.running:
            return
        self._stop_event.clear()
        self._discarding = False
        self._worker_failed = False
        self._thread = threading.Thread(target=self._run, name=self._thread_name, daemon=True)
        self._thread.start()

    def stop(self, *, drain: bool = True, timeout: float | None = None) -> None:
        """Stop the worker, optionally processing everything still queued first.

        Raises
        ------
        RuntimeError
            When the worker does not finish within the drain deadline.
        """
        thread = self._thread
        if thread is None:
            return

        effective_timeout = timeout if timeout is not None else self._stop_timeout
        deadline = time.monotonic() + effective_timeout if effective_timeout is not None else None

        def remaining() -> float | None:
            if deadline is None:
                return None
            return max(0.0, deadline - time.monotonic())

        if not drain:
            self._discarding = True
            self._discard_pending()
        self._stop_event.set()
        try:
            self._queue.put(None, timeout=remaining())
        except queue.Full as exc:
            raise RuntimeError("Delivery worker failed to stop within the allotted timeout") from exc
        thread.join(remaining())

        if thread.is_alive():
            self._discarding = True
            raise RuntimeError("Delivery worker failed to stop within the allotted timeout")
        self._thread = None
        self._stop_event.clear()
        self._discarding = False

    def put(self, submission: Submission) -> bool:
        """Enqueue ``submission``; ``False`` when the drop policy discarded it."""
        try:
            if self._drop_policy == "drop" or self._worker_failed:
                self._queue.put(submission, block=False)
            else:
                self._queue.put(submission, timeout=self._timeout)
        except queue.Full:
            self._handle_drop(submission)
            return False
        return True

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every queued submission was processed.

        Returns ``False`` when ``timeout`` elapsed first.
        """

        deadline = time.monotonic() + timeout if timeout is not None else None
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    @property
    def worker_failed(self) -> bool:
        """``True`` once the worker raised; new puts then stop blocking."""

        return self._worker_failed

    def _run(self) -> None:
        while True:
            submission = self._queue.get()
            try:
                if submission is None:
                    if self._stop_event.is_set():
                        break
                    continue
                if self._discarding:
                    self._handle_drop(submission)
                    continue
                if self._worker is not None:
                    try:
                        self._worker(submission)
                    except Exception as exc:  # noqa: BLE001
                        self._worker_failed = True
                        LOGGER.error("Delivery worker raised an exception; continuing", exc_info=exc)
            finally:
                self._queue.task_done()

    def _handle_drop(self, submission: Submission) -> None:
        if self._on_drop is None:
            return
        try:
            self._on_drop(submission)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Delivery drop handler raised an exception; continuing", exc_info=exc)

    def _discard_pending(self) -> None:
        while True:
            try:
                pending = self._queue.get_nowait()
            except queue.Empty:
                break
            else:
                if pending is not None:
                    self._handle_drop(pending)
                self._queue.task_done()


__all__ = ["DeliveryQueue", "Submission"]
