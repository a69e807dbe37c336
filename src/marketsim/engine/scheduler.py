"""Cancellable periodic tick scheduler."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger("marketsim.scheduler")


class TickScheduler:
    """Run `callback` every `interval_seconds` on a background thread.

    `stop()` cancels pending ticks; a later `start()` resumes from now and
    never replays ticks missed while stopped. `step()` runs one tick
    synchronously for deterministic driving.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval_seconds: float,
        max_ticks: int | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if max_ticks is not None and max_ticks <= 0:
            raise ValueError("max_ticks must be positive")
        self.callback = callback
        self.interval_seconds = float(interval_seconds)
        self.max_ticks = max_ticks
        self.ticks = 0
        self.error: BaseException | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def exhausted(self) -> bool:
        return self.max_ticks is not None and self.ticks >= self.max_ticks

    def start(self) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="marketsim-ticker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def step(self) -> None:
        with self._lock:
            self.callback()
            self.ticks += 1

    def _loop(self) -> None:
        stop = self._stop
        while not stop.is_set() and not self.exhausted:
            try:
                self.step()
            except Exception as exc:
                logger.error("Tick failed, stopping scheduler: %s", exc)
                self.error = exc
                stop.set()
                return
            if self.exhausted:
                return
            stop.wait(self.interval_seconds)
