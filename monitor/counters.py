"""Per-interface byte counters from the kernel's /proc/net/dev.

The file is read whole on every tick. Its layout is two header lines
followed by one line per interface:

    Inter-|   Receive                            ...|  Transmit
     face |bytes    packets errs drop fifo frame ...|bytes    packets ...
      eth0: 1234567    8901    0    0    0     0 ...  7654321    4321 ...

Example:
    >>> counters = read_counters()
    >>> counters["eth0"].rx_bytes
    1234567
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from config import NETWORK, CounterReadError, ParseError

# Field positions after the "iface:" prefix
RX_BYTES_FIELD = 0
TX_BYTES_FIELD = 8


@dataclass(frozen=True)
class InterfaceCounters:
    """Cumulative byte counters for one interface at one instant.

    Attributes:
        name: Interface name (e.g. "wlp3s0").
        rx_bytes: Bytes received since the counter was last reset.
        tx_bytes: Bytes transmitted since the counter was last reset.
        sampled_at: Monotonic timestamp of the read.
    """

    name: str
    rx_bytes: int
    tx_bytes: int
    sampled_at: float


def is_excluded(name: str, extra: Iterable[str] = ()) -> bool:
    """Check whether an interface should never be graphed.

    Loopback, docker and bridge interfaces are skipped, plus any names
    the user listed in their settings.
    """
    if name in NETWORK.EXCLUDED_INTERFACES or name in set(extra):
        return True
    if any(sub in name for sub in NETWORK.EXCLUDED_SUBSTRINGS):
        return True
    return name.startswith(NETWORK.EXCLUDED_PREFIXES)


def parse_counter_line(line: str, sampled_at: float) -> InterfaceCounters:
    """Parse one interface line of /proc/net/dev.

    Raises:
        ParseError: If the line has no interface prefix or too few fields.
    """
    if ":" not in line:
        raise ParseError("Missing interface separator", line)

    name, data = line.split(":", 1)
    name = name.strip()
    fields = data.split()
    if not name or len(fields) <= TX_BYTES_FIELD:
        raise ParseError("Too few counter fields", line)

    try:
        rx = int(fields[RX_BYTES_FIELD])
        tx = int(fields[TX_BYTES_FIELD])
    except ValueError as e:
        raise ParseError(f"Non-numeric counter: {e}", line) from e

    return InterfaceCounters(name=name, rx_bytes=rx, tx_bytes=tx, sampled_at=sampled_at)


def parse_counters(
    text: str,
    sampled_at: float,
    exclude: Iterable[str] = (),
) -> Dict[str, InterfaceCounters]:
    """Parse the full contents of /proc/net/dev.

    The read is all or nothing: a half-parsed file would make an interface
    look absent for one tick.

    Raises:
        CounterReadError: If any interface line cannot be parsed.
    """
    extra = tuple(exclude)
    counters: Dict[str, InterfaceCounters] = {}

    for line in text.splitlines()[2:]:
        if not line.strip():
            continue
        try:
            entry = parse_counter_line(line, sampled_at)
        except ParseError as e:
            raise CounterReadError(f"Unreadable counter line: {e.message}",
                                   {"line": line.strip()}) from e
        if is_excluded(entry.name, extra):
            continue
        counters[entry.name] = entry

    return counters


def read_counters(
    path: Optional[str] = None,
    now: Optional[float] = None,
    exclude: Iterable[str] = (),
) -> Dict[str, InterfaceCounters]:
    """Read and parse the kernel counter file.

    Args:
        path: Counter file, defaults to NETWORK.PROC_NET_DEV.
        now: Timestamp to stamp the samples with (monotonic clock by default).
        exclude: Extra interface names to skip.

    Returns:
        Mapping of interface name to InterfaceCounters.

    Raises:
        CounterReadError: If the file is missing or unreadable.
    """
    path = path or NETWORK.PROC_NET_DEV
    try:
        with open(path, encoding="ascii", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise CounterReadError(f"Cannot read counters: {e}", {"path": path}) from e

    return parse_counters(text, time.monotonic() if now is None else now, exclude)


__all__ = [
    "InterfaceCounters",
    "is_excluded",
    "parse_counter_line",
    "parse_counters",
    "read_counters",
]
