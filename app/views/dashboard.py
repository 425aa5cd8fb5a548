"""Rich renderables for the dashboard screen.

Pure functions from controller state to rich objects; nothing here reads
the system or touches the terminal.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from config import UI
from monitor.interfaces import ActiveInterface
from monitor.models import UNKNOWN, EntityKind, ManagedEntity, Snapshot, WifiNetwork
from monitor.utils import truncate

MARK_ACTIVE = "●"
MARK_INACTIVE = "○"

_MODE_TITLES = {
    EntityKind.VPN: "VPN connections",
    EntityKind.WIFI: "Wi-Fi networks",
}


def signal_bars(strength: Optional[int]) -> str:
    """Four-step signal indicator; '?' when nmcli gave no value."""
    if strength is None:
        return "?"
    steps = min(4, (strength + 24) // 25)
    return "▂▄▆█"[:steps].ljust(4, "·")


def _entity_row(
    entity: ManagedEntity,
    selected: bool,
    pending: bool,
    status: Optional[str],
) -> List[RenderableType]:
    marker = Text(MARK_ACTIVE if entity.active else MARK_INACTIVE,
                  style="bold green" if entity.active else "dim")
    name_style = "reverse" if selected else ("bold" if entity.active else "")
    name = Text(truncate(entity.name, UI.MAX_ENTITY_NAME_LENGTH), style=name_style)

    if isinstance(entity, WifiNetwork):
        detail = Text(f"{signal_bars(entity.signal_strength)} {entity.security_kind}")
    else:
        detail = Text(entity.kind if entity.kind != UNKNOWN else "")
        if entity.device:
            detail.append(f" {entity.device}", style="cyan")

    note = Text()
    if pending:
        note.append("working…", style="yellow")
    elif status:
        note.append(status, style="red")
    return [marker, name, detail, note]


def render_entity_list(
    kind: EntityKind,
    snapshot: Snapshot,
    selected: int,
    pending_keys: Iterable[str] = (),
    status: Mapping[str, str] = None,
    poll_error: Optional[str] = None,
) -> Panel:
    """The selectable list of Wi-Fi networks or VPN profiles."""
    status = status or {}
    pending = set(pending_keys)

    table = Table(box=None, show_header=False, expand=True, padding=(0, 1))
    table.add_column(width=1)
    table.add_column(ratio=3, no_wrap=True)
    table.add_column(ratio=2, no_wrap=True)
    table.add_column(ratio=2, no_wrap=True)

    if not snapshot.entities:
        table.add_row("", Text("nothing listed yet" if poll_error is None else "unavailable",
                               style="dim"), "", "")
    for i, entity in enumerate(snapshot.entities):
        table.add_row(*_entity_row(entity, i == selected, entity.key in pending,
                                   status.get(entity.key)))

    # Text, not markup: nmcli error text may contain brackets
    title = Text(_MODE_TITLES[kind])
    if poll_error:
        title.append(f" (stale: {poll_error})", style="red")
    return Panel(table, title=title, subtitle="Tab: switch", box=box.ROUNDED)


def render_interfaces(interfaces: Sequence[ActiveInterface]) -> Panel:
    """Interfaces that are up, with their IPv4 address."""
    if not interfaces:
        content: RenderableType = Text("no active interfaces", style="dim")
    else:
        table = Table(box=None, show_header=False, padding=(0, 1))
        table.add_column(no_wrap=True)
        table.add_column(no_wrap=True)
        for iface in interfaces:
            style = "cyan" if iface.is_tunnel else ""
            table.add_row(Text(iface.name, style=style), Text(iface.address, style=style))
        content = table
    return Panel(content, title="Interfaces", box=box.ROUNDED)


def render_footer(
    help_items: Sequence[Tuple[str, str]],
    poll_errors: Mapping[str, str] = None,
    message: Optional[str] = None,
) -> Panel:
    """Key help plus any poll errors or general status."""
    line = Text()
    for i, (key, description) in enumerate(help_items):
        if i:
            line.append("  ")
        line.append(key, style="cyan")
        line.append(f" {description}")

    lines: List[RenderableType] = [line]
    for source, error in sorted((poll_errors or {}).items()):
        lines.append(Text(f"{source}: {error}", style="red"))
    if message:
        lines.append(Text(message, style="yellow"))
    return Panel(Group(*lines), box=box.ROUNDED, style="dim")


def render_password_prompt(name: str, typed: int, error: Optional[str] = None) -> Panel:
    """Password entry for a network or VPN profile; the input is never echoed."""
    lines: List[RenderableType] = [
        Text(f"Password for '{name}'", style="bold"),
        Text("Enter to connect, Esc to cancel. Leave empty to use the saved secrets.",
             style="dim"),
        Text(f"> {'*' * typed}█"),
    ]
    if error:
        lines.append(Text(error, style="red"))
    return Panel(Group(*lines), title="Connect", box=box.ROUNDED, border_style="yellow")


def status_texts(messages: Mapping[str, object]) -> Dict[str, str]:
    """Flatten StatusMessage objects to their text, keyed as given."""
    return {key: getattr(m, "text", str(m)) for key, m in messages.items()}


__all__ = [
    "MARK_ACTIVE",
    "MARK_INACTIVE",
    "signal_bars",
    "render_entity_list",
    "render_interfaces",
    "render_footer",
    "render_password_prompt",
    "status_texts",
]
