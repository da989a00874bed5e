from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import List

from alarm_service.notification.base import NotificationEvent, Notifier

logger = logging.getLogger(__name__)

_STOP = NotificationEvent(type="__stop__", recipients=(), message="")


@dataclass(frozen=True)
class NotificationThreadConfig:
    max_queue: int = 2000
    poll_timeout_s: float = 0.5


class NotificationWorkerThread:
    """
    Single background thread delivering notifications off the cycle's path.

    `emit()` never blocks: when the queue is full the newest event is dropped.
    Each notifier failure is logged and counted; nothing is retried.
    """

    def __init__(self, notifiers: List[Notifier], cfg: NotificationThreadConfig | None = None):
        self._notifiers = notifiers
        self._cfg = cfg or NotificationThreadConfig()
        self._q: "queue.Queue[NotificationEvent]" = queue.Queue(maxsize=self._cfg.max_queue)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="notification-worker", daemon=True)
        self._counts_lock = threading.Lock()
        self.sent = 0
        self.failed = 0
        self.dropped = 0

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self, timeout: float | None = 2.0) -> None:
        self._stop.set()
        try:
            self._q.put_nowait(_STOP)
        except queue.Full:
            pass
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def emit(self, event: NotificationEvent) -> bool:
        """
        Queue an event for delivery.

        Returns
        -------
        bool
            False if the event was dropped because the queue is full or
            the worker has been stopped.
        """
        if self._stop.is_set():
            with self._counts_lock:
                self.dropped += 1
            logger.error("Notification worker stopped; dropping %s for %s", event.type, event.source)
            return False
        try:
            self._q.put_nowait(event)
            return True
        except queue.Full:
            with self._counts_lock:
                self.dropped += 1
            logger.error("Notification queue full; dropping %s for %s", event.type, event.source)
            return False

    def pending(self) -> int:
        return self._q.qsize()

    def _run(self) -> None:
        # Events queued before stop() are delivered; the sentinel ends the loop.
        while True:
            try:
                event = self._q.get(timeout=self._cfg.poll_timeout_s)
            except queue.Empty:
                if self._stop.is_set():
                    break
                continue

            if event is _STOP:
                break

            for notifier in self._notifiers:
                self._deliver(notifier, event)

    def _deliver(self, notifier: Notifier, event: NotificationEvent) -> None:
        try:
            notifier.notify(event)
        except Exception:
            with self._counts_lock:
                self.failed += 1
            logger.exception("Failed to send %s notification for %s", event.type, event.source)
            return
        with self._counts_lock:
            self.sent += 1
