"""Shared formatting helpers for the dashboard.

Example:
    >>> from monitor.utils import format_rate
    >>> format_rate(4000)
    '4.0 Kb/s'
    >>> format_rate(12_500_000)
    '12.5 Mb/s'
"""

from __future__ import annotations

from typing import Union

# Type alias for numeric values
NumericValue = Union[int, float]

MEGABIT = 1_000_000


def format_rate(bits_per_second: NumericValue) -> str:
    """Format a rate in bits per second using decimal units.

    Examples:
        >>> format_rate(0)
        '0 b/s'
        >>> format_rate(999)
        '999 b/s'
        >>> format_rate(1_500_000_000)
        '1.5 Gb/s'
    """
    value = float(bits_per_second)
    if abs(value) < 1000:
        return f"{value:.0f} b/s"

    for unit in ["Kb/s", "Mb/s", "Gb/s"]:
        value /= 1000.0
        if abs(value) < 1000:
            return f"{value:.1f} {unit}"
    return f"{value:.1f} Gb/s"


def to_mbps(bits_per_second: NumericValue) -> float:
    """Convert bits per second to megabits per second."""
    return float(bits_per_second) / MEGABIT


def truncate(text: str, width: int) -> str:
    """Shorten text to width characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[: max(0, width - 1)] + "…"


__all__ = ["NumericValue", "format_rate", "to_mbps", "truncate"]
