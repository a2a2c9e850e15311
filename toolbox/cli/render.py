"""
Rendering of command listings for the CLI.
"""

from itertools import groupby
from typing import List, Optional, Sequence, Tuple

from rich import box
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from toolbox.state.store import CommandRecord

BOX_WIDTH = 52

USAGE_EXAMPLES = [
    "toolbox",
    'toolbox add list-ports "lsof -i -P -n | grep LISTEN" -d "List all listening ports" -c network',
    "toolbox list",
    "toolbox list -c network",
    "toolbox run list-ports",
    "toolbox export my_commands -c system",
    "toolbox import my_commands.json",
]


def listing_title(records: Sequence[CommandRecord], category: Optional[str],
                  search: Optional[str]) -> str:
    """Summary line for a listing."""
    if category:
        return f"Commands in category [bold magenta]{escape(category)}[/bold magenta] ({len(records)} found)"
    if search:
        return f'Search results for [bold yellow]"{escape(search)}"[/bold yellow] ({len(records)} found)'
    categories = len({r.category for r in records})
    return f"All Commands ({len(records)} in {categories} categories)"


def _line(markup: str) -> Text:
    text = Text.from_markup(markup)
    text.no_wrap = True
    text.overflow = "ellipsis"
    return text


def category_panel(category: str, records: Sequence[CommandRecord]) -> Panel:
    """Boxed group of the commands in one category."""
    rows: List[Text] = []
    for record in records:
        rows.append(_line(f"[toolbox.name]▶ {escape(record.name)}[/toolbox.name]"))
        if record.description:
            rows.append(_line(f"  [toolbox.description]{escape(record.description)}[/toolbox.description]"))
        rows.append(_line(f"  [toolbox.command]$ {escape(record.command)}[/toolbox.command]"))
        rows.append(Text(""))

    return Panel(
        Group(*rows[:-1]),
        title=f"[bold magenta]{escape(category.upper())}[/bold magenta]",
        title_align="left",
        border_style="magenta",
        box=box.SQUARE,
        width=BOX_WIDTH,
    )


def render_listing(console: Console, records: Sequence[CommandRecord],
                   category: Optional[str] = None, search: Optional[str] = None) -> None:
    """
    Print records grouped by category.

    Args:
        console: Target console
        records: Records sorted by category then name
        category: Category filter used (for the title)
        search: Search term used (for the title)
    """
    console.print()
    console.print(Panel(
        Text.from_markup(listing_title(records, category, search), justify="center"),
        border_style="bold cyan",
        box=box.ROUNDED,
        width=BOX_WIDTH,
    ))
    console.print()

    for name, group in groupby(records, key=lambda r: r.category):
        console.print(category_panel(name, list(group)))
        console.print()


def render_categories(console: Console, categories: Sequence[Tuple[str, int]]) -> None:
    """Print "name (N commands)" for each category."""
    console.print("[toolbox.title]Available Categories[/toolbox.title]")
    console.print("[cyan]─────────────────────[/cyan]")
    for name, count in categories:
        noun = "command" if count == 1 else "commands"
        console.print(f"  [toolbox.category]{escape(name)} ({count} {noun})[/toolbox.category]")


def render_record(console: Console, record: CommandRecord) -> None:
    """Print one record the way confirmations show it."""
    console.print(f"  [toolbox.name]{escape(record.name)}[/toolbox.name]")
    if record.description:
        console.print(f"  [toolbox.description]{escape(record.description)}[/toolbox.description]")
    console.print(f"  [toolbox.command]$ {escape(record.command)}[/toolbox.command]")
