from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000


class Cycle(Protocol):
    def run_once(self) -> object:
        ...


class CycleScheduler:
    """
    Periodic driver of evaluation cycles with skip-if-busy semantics.

    Concurrency Model
    -----------------
    - A timer thread ticks on a fixed wall-clock grid (monotonic clock).
    - Each tick tries to take a non-blocking guard. If a previous cycle still
      holds it, the tick is skipped entirely: missed ticks are never queued
      or merged.
    - A tick that takes the guard runs its cycle on a short-lived worker
      thread, so a slow cycle never delays the timer itself.
    - Any exception from a cycle is logged; the guard is always released.

    Parameters
    ----------
    cycle
        Object with a ``run_once()`` method (e.g., `AlarmCycle`).
    interval_ms
        Tick interval in milliseconds.
    """

    def __init__(self, cycle: Cycle, interval_ms: int = DEFAULT_INTERVAL_MS):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._cycle = cycle
        self._interval_s = interval_ms / 1000.0
        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._counts_lock = threading.Lock()
        self.completed_cycles = 0
        self.failed_cycles = 0
        self.skipped_ticks = 0

    @property
    def interval_ms(self) -> int:
        return int(self._interval_s * 1000)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    def start(self, interval_ms: Optional[int] = None) -> None:
        """
        Begin periodic ticks. A second call while running only logs a warning.

        Parameters
        ----------
        interval_ms
            Optional new tick interval; the current one is kept when None.
        """
        if self.is_running:
            logger.warning("Cycle scheduler is already running")
            return
        if interval_ms is not None:
            if interval_ms <= 0:
                raise ValueError("interval_ms must be positive")
            self._interval_s = interval_ms / 1000.0
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="alarm-scheduler", daemon=True)
        self._thread.start()
        logger.info("Alarm evaluation started with polling interval %dms", self.interval_ms)

    def stop(self, timeout: float | None = 2.0) -> None:
        """
        Stop scheduling new ticks. Idempotent.

        An in-flight cycle is not interrupted; stop() waits up to ``timeout``
        for it to finish so its notifications are queued before returning.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning("Alarm cycle still running after %.1fs; not waiting further", timeout or 0.0)
        self._thread = None
        logger.info("Alarm evaluation stopped")

    def tick(self) -> bool:
        """
        Run one guarded cycle in the calling thread.

        Returns
        -------
        bool
            False if the tick was skipped because a cycle is in flight.
        """
        if not self._busy.acquire(blocking=False):
            self._count_skip()
            return False
        self._run_guarded()
        return True

    def _count_skip(self) -> None:
        with self._counts_lock:
            self.skipped_ticks += 1
        logger.debug("Previous alarm cycle still running; tick skipped")

    def _run_guarded(self) -> None:
        # Caller holds the guard.
        try:
            self._cycle.run_once()
        except Exception:
            with self._counts_lock:
                self.failed_cycles += 1
            logger.exception("Error during alert evaluation cycle")
        else:
            with self._counts_lock:
                self.completed_cycles += 1
        finally:
            self._busy.release()

    def _fire(self) -> None:
        if not self._busy.acquire(blocking=False):
            self._count_skip()
            return
        worker = threading.Thread(target=self._run_guarded, name="alarm-cycle", daemon=True)
        try:
            worker.start()
            self._worker = worker
        except Exception:
            self._busy.release()
            raise

    def _run(self) -> None:
        next_tick = time.monotonic() + self._interval_s
        while not self._stop.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self._fire()
            except Exception:
                logger.exception("Failed to launch alert evaluation cycle")
            next_tick += self._interval_s
            now = time.monotonic()
            if next_tick <= now:
                # Fell behind (e.g., suspended); realign to the grid.
                next_tick = now + self._interval_s
