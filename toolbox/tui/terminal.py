"""
Terminal primitives for the interactive mode.

- read_key(): blocking single key read in raw mode
- decode_key(): map raw input to menu keys
- hidden_cursor(): scoped cursor hiding, restored on every exit path
"""

import atexit
import os
import select
import signal
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

from toolbox.logging import TOOLBOX_THEME

try:
    import termios
    import tty
    TERMIOS_AVAILABLE = True
except ImportError:
    TERMIOS_AVAILABLE = False

ESC = "\x1b"
ARROW_UP = "\x1b[A"
ARROW_DOWN = "\x1b[B"
CTRL_C = "\x03"


class Key(Enum):
    """Keys the menu reacts to."""
    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    OTHER = "other"


_KEYMAP = {
    "k": Key.UP,
    ARROW_UP: Key.UP,
    "j": Key.DOWN,
    ARROW_DOWN: Key.DOWN,
    "\r": Key.CONFIRM,
    "\n": Key.CONFIRM,
    "q": Key.CANCEL,
    ESC: Key.CANCEL,
}


def decode_key(raw: str) -> Key:
    """
    Map a raw key read to a menu key.

    Args:
        raw: Output of read_key()

    Returns:
        Key (OTHER for anything the menu ignores)
    """
    return _KEYMAP.get(raw, Key.OTHER)


def make_console(**kwargs) -> Console:
    """Console with the Toolbox theme, writing to stdout by default."""
    kwargs.setdefault("theme", TOOLBOX_THEME)
    return Console(**kwargs)


def read_key() -> str:
    """
    Read a single key press from stdin.

    Arrow keys come back as their full escape sequence, a lone Escape as
    "\\x1b". Ctrl-C raises KeyboardInterrupt. When stdin is not a terminal
    one character is read and end of input reads as "q".
    """
    if not (TERMIOS_AVAILABLE and sys.stdin.isatty()):
        key = sys.stdin.read(1)
        return key if key else "q"

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        key = os.read(fd, 1).decode("utf-8", errors="ignore")

        if key == ESC:
            # Arrow keys arrive as ESC [ X; a lone ESC has nothing behind it
            ready, _, _ = select.select([fd], [], [], 0.1)
            if ready:
                key += os.read(fd, 2).decode("utf-8", errors="ignore")
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    if key == CTRL_C:
        raise KeyboardInterrupt
    return key


def erase_lines(console: Console, count: int) -> None:
    """Move the cursor up over the last `count` lines, clearing each."""
    if count <= 0:
        return
    codes = [(ControlType.ERASE_IN_LINE, 2)]
    for _ in range(count):
        codes.extend([(ControlType.CURSOR_UP, 1), (ControlType.ERASE_IN_LINE, 2)])
    codes.append(ControlType.CARRIAGE_RETURN)
    console.control(Control(*codes))


class _CursorGuard:
    """
    Process-wide cursor visibility with nesting.

    The cursor is hidden while at least one hidden_cursor() scope is open.
    The first acquisition installs an atexit hook and a SIGTERM handler
    that show the cursor again.
    """

    def __init__(self):
        self.depth = 0
        self.console: Optional[Console] = None
        self._hooks_installed = False

    def acquire(self, console: Console) -> None:
        if self.depth == 0:
            self.console = console
            console.show_cursor(False)
        self.depth += 1
        self._install_hooks()

    def release(self) -> None:
        self.depth = max(self.depth - 1, 0)
        if self.depth == 0:
            self.restore()

    def restore(self) -> None:
        if self.console is not None:
            self.console.show_cursor(True)

    def _install_hooks(self) -> None:
        if self._hooks_installed:
            return
        self._hooks_installed = True
        atexit.register(self.restore)
        try:
            signal.signal(signal.SIGTERM, self._on_sigterm)
        except ValueError:
            # Not the main thread
            pass

    def _on_sigterm(self, signum, frame) -> None:
        self.restore()
        sys.exit(128 + signum)


_cursor = _CursorGuard()


@contextmanager
def hidden_cursor(console: Console) -> Iterator[None]:
    """Hide the cursor for the duration of the block."""
    _cursor.acquire(console)
    try:
        yield
    finally:
        _cursor.release()


@contextmanager
def visible_cursor(console: Console) -> Iterator[None]:
    """Show the cursor for direct text input, re-hiding it afterwards if needed."""
    console.show_cursor(True)
    try:
        yield
    finally:
        if _cursor.depth > 0:
            console.show_cursor(False)
