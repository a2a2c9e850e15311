"""
Interactive session.

A state machine over the main menu: each workflow runs, reports its
outcome and hands control back to the main menu until the user quits.

    MAIN_MENU -> VIEW_RUN | ADD | MODIFY | DELETE | EXPORT | IMPORT -> MAIN_MENU
    MAIN_MENU -> QUIT
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from toolbox.config import Settings
from toolbox.exceptions import (
    CancelledByUserError,
    DuplicateNameError,
    EmptyImportError,
    MissingDependencyError,
    NotFoundError,
    ToolboxError,
    ValidationEmptyError,
)
from toolbox.logging import get_toolbox_logger
from toolbox.state.store import CommandRecord, Store, default_export_name
from toolbox.transport import LocalTransport, Transport
from toolbox.tui.category import CategoryPicker
from toolbox.tui.menu import Menu
from toolbox.tui.pickers import FzfPicker, PickItem, Picker, deletion_picker, record_items
from toolbox.tui.terminal import hidden_cursor, make_console, read_key, visible_cursor


class State(Enum):
    """Session states."""
    MAIN_MENU = "main_menu"
    VIEW_RUN = "view_run"
    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    EXPORT = "export"
    IMPORT = "import"
    QUIT = "quit"


MAIN_MENU: List[Tuple[str, State]] = [
    ("View/Run Commands", State.VIEW_RUN),
    ("Add New Command", State.ADD),
    ("Modify Command", State.MODIFY),
    ("Delete Command", State.DELETE),
    ("Export Commands", State.EXPORT),
    ("Import Commands", State.IMPORT),
    ("Quit", State.QUIT),
]


class Session:
    """
    Interactive Toolbox session.

    All collaborators can be injected, which is how the tests drive a
    session with scripted keys and answers.
    """

    def __init__(
        self,
        store: Store,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        read_key: Callable[[], str] = read_key,
        menu: Optional[Menu] = None,
        browser: Optional[Picker] = None,
        delete_picker: Optional[Picker] = None,
        file_picker: Optional[Picker] = None,
        transport: Optional[Transport] = None,
        prompt: Optional[Callable[[str], str]] = None,
        pause: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize session.

        Args:
            store: Command store
            settings: Settings (default: from environment)
            console: Console to draw on
            read_key: Blocking key reader
            menu: Menu (default: built on console and read_key)
            browser: Picker for browsing commands (default: fzf)
            delete_picker: Picker for deletion (default: by settings)
            file_picker: Picker for import files (default: fzf)
            transport: Runs chosen commands
            prompt: Text input, called with a label
            pause: Called after each workflow
        """
        self.store = store
        self.settings = settings or Settings.from_env()
        self.console = console or make_console()
        self.read_key = read_key
        self.log = get_toolbox_logger(__name__, out=self.console)

        self.menu = menu or Menu(read_key=read_key, console=self.console)
        self.browser = browser or FzfPicker()
        self.delete_picker = delete_picker or deletion_picker(self.settings, self.menu)
        self.file_picker = file_picker or FzfPicker(preview=None)
        self.transport = transport or LocalTransport(log=self.log)
        self.prompt = prompt or self._prompt
        self.pause = pause or self._pause
        self.categories = CategoryPicker(store, self.menu, self.prompt)

        self._workflows: Dict[State, Callable[[], Optional[bool]]] = {
            State.VIEW_RUN: self.view_run,
            State.ADD: self.add,
            State.MODIFY: self.modify,
            State.DELETE: self.delete,
            State.EXPORT: self.export,
            State.IMPORT: self.import_,
        }

    def run(self) -> None:
        """Loop over the main menu until the user quits."""
        state = State.MAIN_MENU
        with hidden_cursor(self.console):
            while state is not State.QUIT:
                state = self.step(state)
        self.log.success("Exiting TUI mode.")

    def step(self, state: State) -> State:
        """Run one state and return the next one."""
        if state is State.MAIN_MENU:
            return self.main_menu()

        self.run_workflow(self._workflows[state])
        return State.MAIN_MENU

    def main_menu(self) -> State:
        """Show the main menu. Cancelling it quits."""
        self.console.clear()
        self.console.print("[toolbox.title]Toolbox[/toolbox.title]")
        self.console.print("[yellow]Command Shortcut Manager[/yellow]")
        self.console.print()

        index = self.menu.select("Toolbox TUI Mode", [label for label, _ in MAIN_MENU])
        if index is None:
            return State.QUIT
        return MAIN_MENU[index][1]

    def run_workflow(self, workflow: Callable[[], Optional[bool]]) -> None:
        """
        Run a workflow, reporting any Toolbox error.

        A workflow returns False when it ended without anything to show,
        which skips the pause.
        """
        shown = True
        try:
            shown = workflow() is not False
        except (CancelledByUserError, EmptyImportError) as e:
            self.log.notice(str(e))
        except MissingDependencyError as e:
            self.log.failure(str(e))
            self.log.notice("Cannot browse commands without it.")
        except ToolboxError as e:
            self.log.failure(f"Error: {e}")

        if shown:
            self.pause()

    # Workflows

    def view_run(self) -> Optional[bool]:
        """Pick a command, confirm and run it."""
        records = self.store.list()
        if not records:
            self.log.notice("No commands found. Add some first.")
            return None

        self.console.clear()
        self._header("Select a command to run")
        record = self._browse(records, "Select command to run: ")
        if record is None:
            return False

        self.console.clear()
        self.console.print(
            f"[cyan]About to run:[/cyan] [toolbox.command]{escape(record.command)}[/toolbox.command]"
        )
        if not self.menu.confirm("Run Command?", "Yes, run this command"):
            return False

        with visible_cursor(self.console):
            self.console.clear()
            self.console.print(
                f"[cyan]Running:[/cyan] [toolbox.command]{escape(record.command)}[/toolbox.command]"
            )
            self.console.rule(style="yellow")
            code = self.transport.run_shell(record.command)
            self.console.rule(style="yellow")

        if code == 0:
            self.log.success("Command execution completed.")
        else:
            self.log.failure(f"Command exited with status {code}.")
        return None

    def add(self) -> Optional[bool]:
        """Prompt for a new command and save it."""
        self.console.clear()
        self._header("Add a New Command")

        with visible_cursor(self.console):
            name = self.prompt("Command name")
            if not name.strip():
                raise ValidationEmptyError("Command name")
            if self.store.exists(name):
                raise DuplicateNameError(name)

            command = self.prompt("Command to run")
            if not command.strip():
                raise ValidationEmptyError("Command to run")

            description = self.prompt("Description (optional)")

        category = self._pick_category(
            "Select Category for Command",
            include_all=False,
            include_new=True,
            cancelled="Command addition cancelled.",
        )

        self.store.add(name, command, description, category or "")
        self.log.success(f"Command '{name}' added successfully.")
        return None

    def modify(self) -> Optional[bool]:
        """Pick a command and change its fields. Empty answers keep the current value."""
        records = self.store.list()
        if not records:
            self.log.notice("No commands found to modify.")
            return None

        self.console.clear()
        self._header("Modify a Command")
        record = self._browse(records, "Select command to modify: ")
        if record is None:
            return False

        self.console.clear()
        self._header(f"Modifying Command: {record.name}")

        with visible_cursor(self.console):
            self.console.print(
                f"[cyan]Current command:[/cyan] [toolbox.command]{escape(record.command)}[/toolbox.command]"
            )
            new_command = self.prompt("New command (leave empty to keep current)")

            self.console.print(
                f"[cyan]Current description:[/cyan] "
                f"[toolbox.description]{escape(record.description)}[/toolbox.description]"
            )
            new_description = self.prompt("New description (leave empty to keep current)")

            self.console.print(
                f"[cyan]Current category:[/cyan] [toolbox.category]{escape(record.category)}[/toolbox.category]"
            )

        category = self._pick_category(
            "Select New Category for Command",
            include_all=False,
            include_new=True,
            cancelled="Command modification cancelled.",
        )

        self.store.modify(record.name, new_command, new_description, category or "")
        self.log.success(f"Command '{record.name}' updated successfully.")
        return None

    def delete(self) -> Optional[bool]:
        """Pick one or more commands and delete each after confirmation."""
        records = self.store.list()
        if not records:
            self.log.notice("No commands found to delete.")
            return None

        self.console.clear()
        self._header("Delete a Command")
        chosen = self.delete_picker.choose(
            record_items(records),
            multi=True,
            prompt="Select a command to delete: ",
            header="TAB: Select multiple | Enter: Delete | ESC/ctrl-q: Back",
        )
        if not chosen:
            return False

        for item in chosen:
            self._confirm_delete(item.value)
        return None

    def export(self) -> Optional[bool]:
        """Export all commands or one category to a bundle."""
        if not self.store.count():
            self.log.notice("No commands to export.")
            return None

        self.console.clear()
        self._header("Export Commands")

        default_name = default_export_name()
        with visible_cursor(self.console):
            filename = self.prompt(f"Export filename (default: {default_name})").strip()

        category = self._pick_category(
            "Select Category to Export",
            include_all=True,
            include_new=False,
            cancelled="Export cancelled.",
        )

        result = self.store.export(filename or default_name, category)
        if result.category:
            self.log.success(
                f"{result.count} command(s) in category '{result.category}' exported to {result.path}"
            )
        else:
            self.log.success(f"All commands ({result.count}) exported to {result.path}")
        return None

    def import_(self) -> Optional[bool]:
        """Merge a bundle into the store."""
        self.console.clear()
        self._header("Import Commands")

        source = self._choose_import_source()
        if source is None:
            raise CancelledByUserError("Import cancelled.")

        incoming = self.store.read_bundle(source)
        if not incoming:
            raise EmptyImportError("No commands found in the import file.")

        categories = sorted({r.category for r in incoming.values()})
        self.console.print(
            f"[yellow]About to import [bold]{len(incoming)}[/bold] command(s) "
            f"({escape(', '.join(categories))}).[/yellow]"
        )
        if not self.menu.confirm("Import these commands?", "Yes, import them"):
            raise CancelledByUserError("Import cancelled.")

        count = self.store.import_bundle(source)
        self.log.success(f"Imported {count} command(s) successfully.")
        return None

    # Helpers

    def _header(self, title: str) -> None:
        self.console.print(f"[toolbox.title]{escape(title)}[/toolbox.title]")
        self.console.print("[cyan]─────────────────────[/cyan]")

    def _browse(self, records: List[CommandRecord], prompt: str) -> Optional[CommandRecord]:
        chosen = self.browser.choose(
            record_items(records),
            prompt=prompt,
            header="Type to search | Enter: Select | ESC/ctrl-q: Back",
        )
        return chosen[0].value if chosen else None

    def _pick_category(self, title: str, include_all: bool, include_new: bool,
                       cancelled: str) -> Optional[str]:
        try:
            return self.categories.pick(title, include_all=include_all, include_new=include_new)
        except CancelledByUserError as e:
            raise CancelledByUserError(cancelled) from e

    def _confirm_delete(self, record: CommandRecord) -> None:
        self.console.clear()
        self.console.print("[toolbox.failure]Confirm Deletion[/toolbox.failure]")
        self.console.print("[yellow]About to delete:[/yellow]")
        self.console.print(f"  [toolbox.name]{escape(record.name)}[/toolbox.name]")
        if record.description:
            self.console.print(f"  [toolbox.description]{escape(record.description)}[/toolbox.description]")
        self.console.print(f"  [toolbox.command]$ {escape(record.command)}[/toolbox.command]")

        if not self.menu.confirm("Are you sure?", "Yes, delete this command"):
            self.log.notice(f"Deletion cancelled for '{record.name}'.")
            return

        try:
            self.store.delete(record.name)
        except NotFoundError as e:
            self.log.failure(str(e))
            return
        self.log.success(f"Command '{record.name}' deleted successfully.")

    def _choose_import_source(self) -> Optional[Path]:
        if not self.file_picker.is_available():
            with visible_cursor(self.console):
                filename = self.prompt("Enter filename to import").strip()
            return Path(filename) if filename else None

        files = self.store.export_files()
        if not files:
            raise CancelledByUserError(f"No exported files found in {self.store.export_dir}")

        self.console.print("[yellow]Select a file to import:[/yellow]")
        chosen = self.file_picker.choose(
            [PickItem(columns=(f.name,), value=f) for f in files],
            prompt="Select file to import: ",
        )
        return chosen[0].value if chosen else None

    def _prompt(self, message: str) -> str:
        return self.console.input(f"[toolbox.notice]{escape(message)}:[/toolbox.notice] ")

    def _pause(self) -> None:
        self.console.print("[dim]Press any key to continue...[/dim]")
        self.read_key()
