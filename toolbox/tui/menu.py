"""
Keyboard-driven selection menu.

The menu draws a title and a list of options, moves a highlight with
j/k or the arrow keys and returns the index picked with Enter, or None
when the user presses q or Escape. Each redraw overwrites the previous
frame in place.
"""

from typing import Callable, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from toolbox.tui.terminal import Key, decode_key, erase_lines, hidden_cursor, make_console, read_key

CANCELLED = None

INSTRUCTIONS = "Use j/k or arrow keys to navigate, Enter to select, q to quit"


class Menu:
    """
    Single-selection menu.

    Example:
        menu = Menu()
        index = menu.select("Toolbox", ["View/Run Commands", "Quit"])
        if index is None:
            print("cancelled")
    """

    def __init__(self, read_key: Callable[[], str] = read_key, console: Optional[Console] = None):
        """
        Initialize menu.

        Args:
            read_key: Blocking key reader returning raw key strings
            console: Console to draw on
        """
        self.read_key = read_key
        self.console = console or make_console()
        self.selected = 0
        self._lines_drawn = 0

    def select(self, title: str, options: Sequence[str]) -> Optional[int]:
        """
        Show options and wait for a choice.

        Args:
            title: Menu title
            options: Option labels (at least one)

        Returns:
            Selected index, or None if cancelled
        """
        if not options:
            raise ValueError("Menu needs at least one option")

        self.selected = 0
        self._lines_drawn = 0

        with hidden_cursor(self.console):
            while True:
                self._draw(title, options)
                key = decode_key(self.read_key())

                if key is Key.DOWN:
                    self.selected = min(self.selected + 1, len(options) - 1)
                elif key is Key.UP:
                    self.selected = max(self.selected - 1, 0)
                elif key is Key.CONFIRM:
                    self.console.print()
                    return self.selected
                elif key is Key.CANCEL:
                    self.console.print()
                    return CANCELLED

    def confirm(self, title: str, yes_label: str, no_label: str = "No, cancel") -> bool:
        """Two-option dialog. True only when the first option is chosen."""
        return self.select(title, [yes_label, no_label]) == 0

    def _draw(self, title: str, options: Sequence[str]) -> None:
        """Erase the previous frame and draw the current one."""
        erase_lines(self.console, self._lines_drawn)

        lines = self._frame(title, options)
        for line in lines:
            self.console.print(line, no_wrap=True, overflow="ellipsis", crop=True)
        self._lines_drawn = len(lines)

    def _frame(self, title: str, options: Sequence[str]) -> List[str]:
        # One screen line per entry, or the redraw erases too little
        lines = [
            f"[toolbox.title]{escape(_single_line(title))}[/toolbox.title]",
            "[cyan]─────────────────────[/cyan]",
            f"[yellow]{INSTRUCTIONS}[/yellow]",
            "",
        ]
        for i, option in enumerate(options):
            option = _single_line(option)
            if i == self.selected:
                lines.append(f"[toolbox.selected]> {escape(option)}[/toolbox.selected]")
            else:
                lines.append(f"  {escape(option)}")
        return lines


def _single_line(text: str) -> str:
    return " ".join(text.splitlines())
