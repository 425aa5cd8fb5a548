"""Periodic timer driving the dashboard tick.

Runs the callback on a background thread at a fixed cadence. The wait is
on a threading.Event, so stop() takes effect immediately instead of after
the current interval.

Usage:
    from app.timer import PeriodicTimer

    def on_tick(timer):
        print("Tick!")

    timer = PeriodicTimer(on_tick, interval=0.5)
    timer.start()
"""

import threading
import time
from typing import Callable, Optional

from config import get_logger

logger = get_logger(__name__)


class PeriodicTimer:
    """Timer that calls a function every ``interval`` seconds.

    Ticks are scheduled against a monotonic clock; if a callback overruns,
    the missed ticks are skipped rather than fired back to back.

    Attributes:
        interval: Time between timer ticks in seconds.

    Example:
        >>> timer = PeriodicTimer(callback, interval=1.0)
        >>> timer.start()
        >>> # Later...
        >>> timer.stop()
    """

    def __init__(self, callback: Callable, interval: float, name: str = "PeriodicTimer"):
        """Initialize the timer.

        Args:
            callback: Function to call on each tick. Receives the timer as argument.
            interval: Time between ticks in seconds.
            name: Thread name, for logs.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self.ticks = 0

    @property
    def interval(self) -> float:
        """Get the current interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Update interval."""
        if value <= 0:
            raise ValueError("interval must be positive")
        with self._lock:
            self._interval = value

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def _timer_loop(self) -> None:
        next_at = time.monotonic() + self._interval
        while not self._stop_event.wait(max(0.0, next_at - time.monotonic())):
            try:
                self._callback(self)
            except Exception as e:
                logger.error(f"Error in {self._name} callback: {e}", exc_info=True)
            self.ticks += 1

            now = time.monotonic()
            next_at += self._interval
            if next_at < now:
                next_at = now + self._interval

    def start(self) -> None:
        """Start the timer in a background thread."""
        if self.running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._timer_loop, daemon=True, name=self._name)
        self._thread.start()
        logger.debug(f"{self._name} started with interval {self._interval}s")

    def stop(self, timeout: float = 1.0) -> None:
        """Stop the timer and wait for an in-progress tick to finish."""
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.debug(f"{self._name} stopped")
