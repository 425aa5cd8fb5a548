"""Throughput calculation from cumulative interface counters.

This module turns successive reads of monotonic byte counters into
per-interface rates in bits per second. It keeps the previous read as
its own state; everything else is computed from the counters it is given.

Example:
    >>> sampler = RateSampler()
    >>> sampler.sample({"eth0": InterfaceCounters("eth0", 1000, 0, 0.0)}, now=0.0)
    >>> rates = sampler.sample({"eth0": InterfaceCounters("eth0", 1500, 0, 1.0)}, now=1.0)
    >>> rates["eth0"].rx_rate
    4000.0
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from config import THRESHOLDS, CounterReadError, get_logger
from monitor.counters import InterfaceCounters, read_counters

logger = get_logger(__name__)

CounterReader = Callable[[], Mapping[str, InterfaceCounters]]


@dataclass(frozen=True)
class RateSample:
    """Instantaneous throughput of one interface.

    Attributes:
        interface: Interface name.
        rx_rate: Receive rate in bits per second.
        tx_rate: Transmit rate in bits per second.
        at: Timestamp of the sample.
    """

    interface: str
    rx_rate: float
    tx_rate: float
    at: float


def _rate(current: int, previous: int, elapsed: float) -> float:
    delta = current - previous
    if delta < 0:
        # wrapped or reset interface
        return 0.0
    return delta * 8 / elapsed


class RateSampler:
    """Converts counter deltas between ticks into rates.

    Attributes:
        min_interval: Reads closer together than this do not produce a sample.

    Example:
        >>> sampler = RateSampler(reader=read_counters)
        >>> rates = sampler.poll()
    """

    def __init__(
        self,
        reader: Optional[CounterReader] = None,
        min_interval: float = THRESHOLDS.MIN_SAMPLE_INTERVAL_SECONDS,
    ) -> None:
        self._reader = reader or read_counters
        self.min_interval = min_interval
        self._previous: Dict[str, InterfaceCounters] = {}
        self._last_rates: Dict[str, RateSample] = {}

    def sample(
        self, counters: Mapping[str, InterfaceCounters], now: Optional[float] = None
    ) -> Dict[str, RateSample]:
        """Fold a counter read into rates.

        Args:
            counters: Current read, keyed by interface name.
            now: Timestamp of the read; defaults to the monotonic clock.

        Returns:
            New samples keyed by interface. Interfaces whose elapsed time
            is below min_interval are left out and keep their last rate.
        """
        now = time.monotonic() if now is None else now
        samples: Dict[str, RateSample] = {}
        baseline: Dict[str, InterfaceCounters] = {}

        for name, current in counters.items():
            current = InterfaceCounters(name, current.rx_bytes, current.tx_bytes, now)
            previous = self._previous.get(name)

            if previous is None:
                logger.debug(f"Tracking new interface {name}")
                samples[name] = RateSample(name, 0.0, 0.0, now)
                baseline[name] = current
                continue

            elapsed = now - previous.sampled_at
            if elapsed <= self.min_interval:
                baseline[name] = previous
                continue

            rx_rate = _rate(current.rx_bytes, previous.rx_bytes, elapsed)
            tx_rate = _rate(current.tx_bytes, previous.tx_bytes, elapsed)
            if current.rx_bytes < previous.rx_bytes or current.tx_bytes < previous.tx_bytes:
                logger.debug(f"Counter reset on {name}")

            samples[name] = RateSample(name, rx_rate, tx_rate, now)
            baseline[name] = current

        dropped = set(self._previous) - set(counters)
        for name in dropped:
            logger.debug(f"Interface {name} disappeared")
            self._last_rates.pop(name, None)

        self._previous = baseline
        self._last_rates.update(samples)
        return samples

    def poll(self, now: Optional[float] = None) -> Dict[str, RateSample]:
        """Read counters and sample them.

        A failed read skips the tick: nothing is emitted and the last rates
        stay in place.
        """
        try:
            counters = self._reader()
        except CounterReadError as e:
            logger.warning(f"Skipping tick: {e}")
            return {}
        return self.sample(counters, now)

    def last_rate(self, interface: str) -> Optional[RateSample]:
        """Most recent sample emitted for an interface, if it is still tracked."""
        return self._last_rates.get(interface)

    def tracked(self) -> list:
        """Names of the interfaces currently tracked."""
        return sorted(self._previous)

    def reset(self) -> None:
        """Forget all baselines."""
        self._previous.clear()
        self._last_rates.clear()


__all__ = ["RateSample", "RateSampler"]
