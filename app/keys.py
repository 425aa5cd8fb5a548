"""Keyboard input for the dashboard.

Two parts: a KeyReader that puts the terminal in cbreak mode and returns
one logical key per call (arrow escape sequences folded into names), and
KeyBindings, a dispatch table from key names to handlers.
"""

import os
import select
import sys
import termios
import tty
from typing import Callable, Dict, Optional, TextIO

from config import get_logger

logger = get_logger(__name__)

# Logical key names
TAB = "tab"
ENTER = "enter"
ESCAPE = "escape"
BACKSPACE = "backspace"
UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"

_SPECIAL = {
    "\t": TAB,
    "\r": ENTER,
    "\n": ENTER,
    "\x7f": BACKSPACE,
    "\b": BACKSPACE,
}

_ESCAPE_SEQUENCES = {
    "[A": UP,
    "[B": DOWN,
    "[C": RIGHT,
    "[D": LEFT,
    "OA": UP,
    "OB": DOWN,
    "OC": RIGHT,
    "OD": LEFT,
}


def normalize_key(raw: str) -> Optional[str]:
    """Map raw terminal input to a logical key name.

    Printable characters map to themselves; control characters and escape
    sequences map to the names above. Unknown sequences give None.

    Examples:
        >>> normalize_key("\\x1b[A")
        'up'
        >>> normalize_key("j")
        'j'
    """
    if not raw:
        return None
    if raw in _SPECIAL:
        return _SPECIAL[raw]
    if raw.startswith("\x1b"):
        if raw == "\x1b":
            return ESCAPE
        return _ESCAPE_SEQUENCES.get(raw[1:3])
    if len(raw) == 1 and raw.isprintable():
        return raw
    return None


class KeyReader:
    """Non-blocking single-key reader for a POSIX terminal.

    Use as a context manager: entering switches stdin to cbreak mode,
    leaving restores the saved settings even if the body raised.

    Example:
        >>> with KeyReader() as keys:
        ...     key = keys.read_key(timeout=0.1)
    """

    def __init__(self, stream: TextIO = None):
        self._stream = stream or sys.stdin
        self._saved = None

    def __enter__(self) -> "KeyReader":
        try:
            fd = self._stream.fileno()
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError, ValueError) as e:
            # not a terminal (piped input, tests); keys are read as they come
            logger.debug(f"cbreak mode unavailable: {e}")
            self._saved = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.restore()

    def restore(self) -> None:
        """Put the terminal back the way it was."""
        if self._saved is None:
            return
        try:
            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved)
        except (termios.error, OSError, ValueError) as e:
            logger.warning(f"Could not restore terminal settings: {e}")
        self._saved = None

    def _ready(self, timeout: float) -> bool:
        readable, _, _ = select.select([self._stream], [], [], timeout)
        return bool(readable)

    def _read_char(self) -> str:
        data = os.read(self._stream.fileno(), 1)
        return data.decode("utf-8", errors="ignore")

    def read_key(self, timeout: float = 0.0) -> Optional[str]:
        """Wait up to timeout seconds for a key.

        Returns:
            Logical key name, or None if nothing (recognisable) was typed.
        """
        if not self._ready(timeout):
            return None
        raw = self._read_char()
        if raw == "\x1b":
            # an escape sequence arrives in one burst; a lone Esc does not
            while len(raw) < 3 and self._ready(0.01):
                raw += self._read_char()
        return normalize_key(raw)


class KeyBindings:
    """Dispatch table from logical key names to handlers.

    Example:
        >>> bindings = KeyBindings()
        >>> bindings.bind("q", app.quit, "Quit")
        >>> bindings.dispatch("q")
        True
    """

    def __init__(self):
        self._handlers: Dict[str, Callable[[], None]] = {}
        self._help: Dict[str, str] = {}

    def bind(self, key: str, handler: Callable[[], None], description: str = "") -> None:
        """Bind a key; a later binding for the same key replaces the earlier one."""
        self._handlers[key] = handler
        if description:
            self._help[key] = description

    def bind_many(self, keys, handler: Callable[[], None], description: str = "") -> None:
        for i, key in enumerate(keys):
            self.bind(key, handler, description if i == 0 else "")

    def unbind(self, key: str) -> None:
        self._handlers.pop(key, None)
        self._help.pop(key, None)

    def dispatch(self, key: Optional[str]) -> bool:
        """Run the handler for a key.

        Returns:
            True if a handler was bound for the key.
        """
        if key is None:
            return False
        handler = self._handlers.get(key)
        if handler is None:
            return False
        handler()
        return True

    def help_items(self):
        """(key, description) pairs in binding order."""
        return list(self._help.items())

    def __contains__(self, key: str) -> bool:
        return key in self._handlers


__all__ = [
    "KeyBindings",
    "KeyReader",
    "normalize_key",
    "TAB",
    "ENTER",
    "ESCAPE",
    "BACKSPACE",
    "UP",
    "DOWN",
    "LEFT",
    "RIGHT",
]
