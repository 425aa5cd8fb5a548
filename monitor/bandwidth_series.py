"""Bounded rx/tx history per interface for the graph panel."""

import threading
from collections import deque
from typing import Dict, Iterable, List, Optional, Tuple

from config import THRESHOLDS, get_logger

logger = get_logger(__name__)

RatePoint = Tuple[float, float]


class BandwidthSeries:
    """Fixed-capacity time series of (rx_rate, tx_rate) per interface.

    Pushed from the timer thread and read from the render thread, so every
    read hands out a copy taken under the lock.
    """

    def __init__(self, capacity: int = THRESHOLDS.SERIES_CAPACITY):
        """Initialize the series store.

        Args:
            capacity: Number of points kept per interface.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        # interface -> (rx deque, tx deque)
        self._series: Dict[str, Tuple[deque, deque]] = {}
        self._lock = threading.Lock()
        logger.debug(f"BandwidthSeries initialized, capacity={capacity}")

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, interface: str, rx_rate: float, tx_rate: float) -> None:
        """Append one point, evicting the oldest once capacity is reached."""
        with self._lock:
            if interface not in self._series:
                self._series[interface] = (
                    deque(maxlen=self._capacity),
                    deque(maxlen=self._capacity),
                )
            rx, tx = self._series[interface]
            rx.append(rx_rate)
            tx.append(tx_rate)

    def snapshot(self, interface: str) -> Tuple[RatePoint, ...]:
        """Return the points for an interface, oldest first.

        Returns an empty tuple for interfaces never observed.
        """
        with self._lock:
            if interface not in self._series:
                return ()
            rx, tx = self._series[interface]
            return tuple(zip(rx, tx))

    def latest(self, interface: str) -> Optional[RatePoint]:
        """Most recent point for an interface."""
        with self._lock:
            if interface not in self._series:
                return None
            rx, tx = self._series[interface]
            if not rx:
                return None
            return rx[-1], tx[-1]

    def peak(self, interface: str) -> RatePoint:
        """Highest rx and tx rate currently in the window."""
        with self._lock:
            if interface not in self._series:
                return 0.0, 0.0
            rx, tx = self._series[interface]
            return max(rx, default=0.0), max(tx, default=0.0)

    def interfaces(self) -> List[str]:
        """Interfaces that have a series, sorted by name."""
        with self._lock:
            return sorted(self._series)

    def retain(self, interfaces: Iterable[str]) -> None:
        """Drop the series of every interface not listed."""
        keep = set(interfaces)
        with self._lock:
            for name in [n for n in self._series if n not in keep]:
                del self._series[name]
                logger.debug(f"Dropped series for {name}")

    def clear(self) -> None:
        with self._lock:
            self._series.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)


__all__ = ["BandwidthSeries", "RatePoint"]
