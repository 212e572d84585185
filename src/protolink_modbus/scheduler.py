"""TickScheduler: fixed-period callback on one worker thread, ticks never overlap."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Calls ``tick`` every ``interval`` seconds from a single worker thread.

    The first tick fires one interval after start(). The next wait begins only
    when the previous tick has returned, so a slow tick delays the cadence
    instead of running two ticks at once.
    """

    def __init__(self, tick: Callable[[], None], interval: float, name: str = "protolink-poll") -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._tick = tick
        self._interval = interval
        self._name = name
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self._guard = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        with self._guard:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop = threading.Event()
            self._thread = threading.Thread(target=self._run, args=(self._stop,), name=self._name, daemon=True)
            self._thread.start()
        logger.debug("Tick scheduler started (%.3fs)", self._interval)

    def stop(self) -> None:
        """
        Stop the cadence. Returns only after any in-flight tick has finished,
        except when called from inside a tick, where it just ends the loop.
        """
        with self._guard:
            thread, self._thread = self._thread, None
            self._stop.set()
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join()
        logger.debug("Tick scheduler stopped")

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self._interval):
            try:
                self._tick()
            except Exception:
                # a tick handles its own errors; anything else is a bug, keep the loop alive
                logger.exception("Unhandled error in poll tick")
