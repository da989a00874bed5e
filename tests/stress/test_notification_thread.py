"""
Stress tests for NotificationWorkerThread.

Validates:
- emit() returns immediately even when delivery is slow
- notifier failures are counted and do not stop the worker
- a full queue drops the newest events instead of blocking
- stop() delivers events queued before it
"""

from __future__ import annotations

import threading
import time
from typing import List

import pytest

from alarm_service.notification.base import NotificationEvent
from alarm_service.notification.notification_thread import NotificationThreadConfig, NotificationWorkerThread


def _event(i: int = 0) -> NotificationEvent:
    return NotificationEvent(type="alarm_raised", recipients=("+1",), message=f"m{i}", source=f"T{i}")


class RecordingNotifier:
    def __init__(self, delay_s: float = 0.0, fail_every: int = 0):
        self.delay_s = delay_s
        self.fail_every = fail_every
        self.received: List[NotificationEvent] = []
        self._calls = 0

    def notify(self, event: NotificationEvent) -> None:
        self._calls += 1
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.fail_every and self._calls % self.fail_every == 0:
            raise RuntimeError("gateway down")
        self.received.append(event)


class GatedNotifier:
    def __init__(self):
        self.gate = threading.Event()
        self.received: List[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        assert self.gate.wait(5.0)
        self.received.append(event)


@pytest.mark.stress
def test_emit_does_not_wait_for_slow_delivery() -> None:
    notifier = RecordingNotifier(delay_s=0.2)
    worker = NotificationWorkerThread([notifier], NotificationThreadConfig(poll_timeout_s=0.05))
    worker.start()

    t0 = time.monotonic()
    for i in range(5):
        assert worker.emit(_event(i)) is True
    elapsed = time.monotonic() - t0

    assert elapsed < 0.1
    worker.stop(timeout=5.0)
    assert [e.message for e in notifier.received] == [f"m{i}" for i in range(5)]
    assert worker.sent == 5


@pytest.mark.stress
def test_failures_are_counted_and_worker_keeps_running(caplog) -> None:
    notifier = RecordingNotifier(fail_every=2)
    worker = NotificationWorkerThread([notifier], NotificationThreadConfig(poll_timeout_s=0.05))
    worker.start()

    with caplog.at_level("ERROR"):
        for i in range(10):
            worker.emit(_event(i))
        worker.stop(timeout=5.0)

    assert worker.failed == 5
    assert worker.sent == 5
    assert len(notifier.received) == 5
    assert "Failed to send" in caplog.text


@pytest.mark.stress
def test_full_queue_drops_newest_without_blocking() -> None:
    notifier = GatedNotifier()
    worker = NotificationWorkerThread([notifier], NotificationThreadConfig(max_queue=2, poll_timeout_s=0.05))
    worker.start()

    accepted = [worker.emit(_event(i)) for i in range(5)]

    assert worker.dropped >= 2
    assert accepted.count(False) == worker.dropped
    assert accepted[0] is True and accepted[1] is True

    notifier.gate.set()
    worker.stop(timeout=5.0)
    assert worker.sent == 5 - worker.dropped
    assert len(notifier.received) == worker.sent


def test_stop_before_start_is_harmless() -> None:
    worker = NotificationWorkerThread([RecordingNotifier()])
    worker.stop(timeout=0.1)
    assert worker.pending() == 1


def test_emit_after_stop_is_refused() -> None:
    notifier = RecordingNotifier()
    worker = NotificationWorkerThread([notifier], NotificationThreadConfig(poll_timeout_s=0.05))
    worker.start()
    worker.stop(timeout=5.0)

    assert worker.emit(_event()) is False
    assert worker.dropped == 1
    assert notifier.received == []
