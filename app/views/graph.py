"""Block-character bandwidth graph.

Renders the rx/tx history of one interface as a rich Panel. Each column is
one sample, scaled against the larger of the two peaks so rx and tx share
a scale.
"""
from typing import List, Optional, Sequence, Tuple

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from config import UI
from monitor.utils import format_rate, to_mbps

BLOCKS = " ▁▂▃▄▅▆▇█"
RX_STYLE = "green"
TX_STYLE = "magenta"


def area_rows(values: Sequence[float], width: int, height: int, max_val: float) -> List[str]:
    """Multi-row area chart, top row first.

    Each column is filled from the bottom with full blocks and topped with
    a partial block, giving ``height * 8`` levels.
    """
    if width <= 0 or height <= 0:
        return []
    recent = list(values)[-width:]
    if len(recent) < width:
        recent = [0.0] * (width - len(recent)) + recent

    levels = []
    for v in recent:
        if max_val <= 0:
            levels.append(0)
        else:
            levels.append(min(height * 8, int(round(max(0.0, v) / max_val * height * 8))))

    rows = []
    for row in range(height):
        floor = (height - row - 1) * 8
        chars = []
        for level in levels:
            fill = level - floor
            if fill >= 8:
                chars.append(BLOCKS[8])
            elif fill > 0:
                chars.append(BLOCKS[fill])
            else:
                chars.append(" ")
        rows.append("".join(chars))
    return rows


def render_graph(
    interface: Optional[str],
    points: Sequence[Tuple[float, float]],
    width: int = 60,
    height: int = UI.GRAPH_HEIGHT,
) -> Panel:
    """Graph panel for an interface's (rx, tx) history."""
    if interface is None:
        return Panel(Text("no interface to graph", style="dim"), title="Bandwidth")

    rx = [p[0] for p in points]
    tx = [p[1] for p in points]
    peak_rx = max(rx, default=0.0)
    peak_tx = max(tx, default=0.0)
    scale = max(peak_rx, peak_tx)
    half = max(1, height // 2)

    body = []
    for line in area_rows(rx, width, half, scale):
        body.append(Text(line, style=RX_STYLE))
    for line in area_rows(tx, width, half, scale):
        body.append(Text(line, style=TX_STYLE))

    current_rx = rx[-1] if rx else 0.0
    current_tx = tx[-1] if tx else 0.0
    legend = Text()
    legend.append(f"↓ {to_mbps(current_rx):6.2f} Mb/s", style=RX_STYLE)
    legend.append(f"  peak {format_rate(peak_rx)}", style="dim")
    legend.append("   ")
    legend.append(f"↑ {to_mbps(current_tx):6.2f} Mb/s", style=TX_STYLE)
    legend.append(f"  peak {format_rate(peak_tx)}", style="dim")

    return Panel(Group(*body, legend), title=f"Bandwidth: {interface}",
                 subtitle="g: next interface")


__all__ = ["area_rows", "render_graph", "BLOCKS"]
