"""Full-screen terminal dashboard.

Owns the UI state (mode, selection, graph interface, password prompt) and
the main-thread input/render loop. All data comes from the controller; this
module never runs a subprocess itself.

Usage:
    app = DashboardApp(controller, timer)
    app.run()
"""

import time
from typing import Optional

from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live

from config import INTERVALS, get_logger
from app.controller import GENERAL, DashboardController
from app.keys import BACKSPACE, DOWN, ENTER, ESCAPE, TAB, UP, KeyBindings, KeyReader
from app.timer import PeriodicTimer
from app.views.dashboard import (
    render_entity_list,
    render_footer,
    render_interfaces,
    render_password_prompt,
    status_texts,
)
from app.views.graph import render_graph
from monitor.models import EntityKind, ManagedEntity
from monitor.nmcli import accepts_secret

logger = get_logger(__name__)

MAX_PASSWORD_LENGTH = 128


class PasswordPrompt:
    """Typed-but-not-echoed secret for one Wi-Fi network or VPN profile."""

    def __init__(self, entity: ManagedEntity):
        self.entity = entity
        self._chars = []

    def type(self, char: str) -> None:
        if len(self._chars) < MAX_PASSWORD_LENGTH:
            self._chars.append(char)

    def backspace(self) -> None:
        if self._chars:
            self._chars.pop()

    @property
    def length(self) -> int:
        return len(self._chars)

    def secret(self) -> Optional[str]:
        return "".join(self._chars) or None


class DashboardApp:
    """Interactive dashboard bound to a controller.

    Attributes:
        mode: Which entity list is shown (VPN or Wi-Fi).
        selected: Cursor position per mode.
        graph_interface: Interface shown in the graph, None until one exists.
        prompt: Active password prompt, if any.
    """

    def __init__(self, controller: DashboardController, timer: Optional[PeriodicTimer] = None,
                 console: Optional[Console] = None):
        self.controller = controller
        self.timer = timer
        self.console = console or Console()
        self.mode = EntityKind.VPN
        self.selected = {kind: 0 for kind in EntityKind}
        self.graph_interface: Optional[str] = None
        self.prompt: Optional[PasswordPrompt] = None
        self.should_quit = False
        self.bindings = self._build_bindings()

    def _build_bindings(self) -> KeyBindings:
        bindings = KeyBindings()
        bindings.bind(TAB, self.switch_mode, "switch")
        bindings.bind_many(["j", DOWN], lambda: self.move(1), "down")
        bindings.bind_many(["k", UP], lambda: self.move(-1), "up")
        bindings.bind(ENTER, self.activate, "connect")
        bindings.bind("x", self.deactivate, "disconnect")
        bindings.bind("r", self.controller.refresh, "refresh")
        bindings.bind("g", self.cycle_graph, "graph")
        bindings.bind("a", self.controller.open_editor, "editor")
        bindings.bind("q", self.quit, "quit")
        return bindings

    # === Commands ===

    def _entities(self):
        return self.controller.snapshot(self.mode).entities

    def current_entity(self) -> Optional[ManagedEntity]:
        entities = self._entities()
        if not entities:
            return None
        index = min(self.selected[self.mode], len(entities) - 1)
        return entities[index]

    def switch_mode(self) -> None:
        self.mode = EntityKind.WIFI if self.mode is EntityKind.VPN else EntityKind.VPN

    def move(self, step: int) -> None:
        count = len(self._entities())
        if count == 0:
            self.selected[self.mode] = 0
            return
        current = min(self.selected[self.mode], count - 1)
        self.selected[self.mode] = max(0, min(count - 1, current + step))

    def activate(self) -> None:
        entity = self.current_entity()
        if entity is None:
            return
        if not entity.active and accepts_secret(entity):
            self.prompt = PasswordPrompt(entity)
            return
        self.controller.connect(entity)

    def deactivate(self) -> None:
        entity = self.current_entity()
        if entity is not None:
            self.controller.disconnect(entity)

    def cycle_graph(self) -> None:
        candidates = self.controller.graph_interfaces()
        if not candidates:
            self.graph_interface = None
            return
        if self.graph_interface not in candidates:
            self.graph_interface = candidates[0]
            return
        index = candidates.index(self.graph_interface)
        self.graph_interface = candidates[(index + 1) % len(candidates)]

    def quit(self) -> None:
        self.should_quit = True

    def handle_key(self, key: Optional[str]) -> None:
        """Route one key to the prompt or the bindings."""
        if key is None:
            return
        if self.prompt is not None:
            self._handle_prompt_key(key)
            return
        self.bindings.dispatch(key)

    def _handle_prompt_key(self, key: str) -> None:
        prompt = self.prompt
        if key == ESCAPE:
            self.prompt = None
        elif key == ENTER:
            self.prompt = None
            self.controller.connect(prompt.entity, prompt.secret())
        elif key == BACKSPACE:
            prompt.backspace()
        elif len(key) == 1:
            prompt.type(key)

    # === Rendering ===

    def _ensure_graph_interface(self) -> None:
        candidates = self.controller.graph_interfaces()
        if self.graph_interface not in candidates:
            self.graph_interface = candidates[0] if candidates else None

    def render(self):
        """Build the full screen renderable."""
        self._ensure_graph_interface()
        controller = self.controller
        messages = controller.status_messages()
        general = messages.pop(GENERAL, None)
        poll_errors = controller.poll_errors()

        snapshot = controller.snapshot(self.mode)
        selected = min(self.selected[self.mode], max(0, len(snapshot) - 1))
        entity_list = render_entity_list(
            self.mode, snapshot, selected,
            pending_keys=controller.pending_keys(),
            status=status_texts(messages),
            poll_error=poll_errors.get(self.mode.value),
        )

        points = ()
        if self.graph_interface is not None:
            points = controller.series.snapshot(self.graph_interface)
        width = max(10, self.console.width - 6)

        layout = Layout()
        layout.split_column(
            Layout(name="top", ratio=2),
            Layout(render_graph(self.graph_interface, points, width=width),
                   name="graph", size=14),
            Layout(render_footer(self.bindings.help_items(), poll_errors,
                                 general.text if general else None),
                   name="footer", size=5),
        )
        layout["top"].split_row(
            Layout(entity_list, name="entities", ratio=3),
            Layout(render_interfaces(controller.active_interfaces()),
                   name="interfaces", ratio=2),
        )
        if self.prompt is not None:
            return Group(render_password_prompt(self.prompt.entity.name, self.prompt.length),
                         layout)
        return layout

    # === Main loop ===

    def run(self) -> None:
        """Run until quit; restores the terminal on the way out."""
        self.controller.start()
        if self.timer is not None:
            self.timer.start()
        try:
            with KeyReader() as keys, Live(self.render(), console=self.console,
                                           screen=True, auto_refresh=False) as live:
                while not self.should_quit:
                    self.handle_key(keys.read_key(timeout=INTERVALS.RENDER_SECONDS))
                    live.update(self.render(), refresh=True)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        started = time.monotonic()
        if self.timer is not None:
            self.timer.stop()
        self.controller.stop()
        logger.info(f"Dashboard closed in {(time.monotonic() - started) * 1000:.0f}ms")


__all__ = ["DashboardApp", "PasswordPrompt"]
