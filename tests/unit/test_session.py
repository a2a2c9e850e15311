"""
Unit tests for the interactive session.

Sessions are driven with scripted keys and prompt answers, fake pickers
and a recording transport, so no terminal or fzf is needed.
"""

import io
import json
from unittest.mock import MagicMock

import pytest

from toolbox.config import Settings
from toolbox.exceptions import MissingDependencyError
from toolbox.transport import Transport
from toolbox.tui.pickers import Picker
from toolbox.tui.session import MAIN_MENU, Session, State
from toolbox.tui.terminal import make_console


class FakePicker(Picker):
    """Picks items by their first column."""

    def __init__(self, *names, available=True):
        self.names = names
        self.available = available
        self.calls = []

    def is_available(self):
        return self.available

    def choose(self, items, multi=False, prompt="Select: ", header=""):
        self.calls.append({"prompt": prompt, "multi": multi, "count": len(items)})
        by_name = {item.columns[0]: item for item in items}
        return [by_name[name] for name in self.names]


class MissingFzf(Picker):
    """Picker whose binary is not installed."""

    def choose(self, items, multi=False, prompt="Select: ", header=""):
        raise MissingDependencyError("fzf", "Install it with your package manager.")


class RecordingTransport(Transport):
    """Remembers commands instead of running them."""

    def __init__(self, code=0):
        self.code = code
        self.commands = []

    def run_shell(self, command):
        self.commands.append(command)
        return self.code


@pytest.fixture
def make_session(store, tmp_path, keys, answers):
    """Factory: make_session(keys=[...], replies=[...], **collaborators)."""

    def factory(key_script=(), replies=(), **kwargs):
        kwargs.setdefault("browser", FakePicker())
        kwargs.setdefault("file_picker", FakePicker())
        kwargs.setdefault("transport", RecordingTransport())
        kwargs.setdefault("pause", MagicMock())
        return Session(
            store,
            settings=Settings(home=tmp_path),
            console=make_console(file=io.StringIO(), width=300),
            read_key=keys(*key_script),
            prompt=answers(*replies),
            **kwargs,
        )

    return factory


def output(session):
    return session.console.file.getvalue()


@pytest.fixture
def populated(store):
    store.add("build", "npm run build", "builds the project", "dev")
    store.add("ports", "lsof -i -P -n | grep LISTEN", "List listening ports", "network")
    return store


class TestSessionLoop:
    """Tests for the main menu state machine."""

    def test_quit_with_q(self, make_session):
        """Test that cancelling the main menu ends the session."""
        session = make_session(["q"])

        session.run()

        assert "Exiting TUI mode." in output(session)

    def test_quit_option(self, make_session):
        """Test that the Quit entry ends the session."""
        session = make_session(["j"] * (len(MAIN_MENU) - 1) + ["\r"])

        session.run()

        assert "Exiting TUI mode." in output(session)

    @pytest.mark.parametrize("position,state", [(i, s) for i, (_, s) in enumerate(MAIN_MENU)])
    def test_main_menu_maps_to_states(self, make_session, position, state):
        """Test that each main menu entry leads to its state."""
        session = make_session(["j"] * position + ["\r"])

        assert session.main_menu() is state

    def test_main_menu_labels(self, make_session):
        """Test the entries in order."""
        assert [label for label, _ in MAIN_MENU] == [
            "View/Run Commands",
            "Add New Command",
            "Modify Command",
            "Delete Command",
            "Export Commands",
            "Import Commands",
            "Quit",
        ]

    def test_workflow_returns_to_main_menu(self, make_session, store):
        """Test add via the main menu, then quit."""
        session = make_session(["j", "\r", "q"], ["build", "npm run build", "builds"])

        session.run()

        assert store.get("build").category == "general"
        assert "Command 'build' added successfully." in output(session)
        session.pause.assert_called_once()

    def test_step_returns_main_menu_after_workflow(self, make_session):
        """Test that every workflow hands back to the main menu."""
        session = make_session()

        assert session.step(State.EXPORT) is State.MAIN_MENU


class TestViewRun:
    """Tests for browsing and running commands."""

    def test_empty_store(self, make_session):
        """Test the notice when nothing is saved."""
        session = make_session()

        session.step(State.VIEW_RUN)

        assert "No commands found. Add some first." in output(session)

    def test_run_confirmed(self, make_session, populated):
        """Test that a confirmed command goes to the transport."""
        session = make_session(["\r"], browser=FakePicker("ports"))

        session.step(State.VIEW_RUN)

        assert session.transport.commands == ["lsof -i -P -n | grep LISTEN"]
        assert "Command execution completed." in output(session)
        assert session.browser.calls[0]["count"] == 2
        session.pause.assert_called_once()

    def test_run_declined(self, make_session, populated):
        """Test that declining runs nothing and skips the pause."""
        session = make_session(["j", "\r"], browser=FakePicker("build"))

        session.step(State.VIEW_RUN)

        assert session.transport.commands == []
        session.pause.assert_not_called()

    def test_browse_cancelled(self, make_session, populated):
        """Test that backing out of the browser returns quietly."""
        session = make_session(browser=FakePicker())

        session.step(State.VIEW_RUN)

        assert session.transport.commands == []
        session.pause.assert_not_called()

    def test_failing_command_reports_status(self, make_session, populated):
        """Test that a nonzero exit is shown."""
        session = make_session(["\r"], browser=FakePicker("build"), transport=RecordingTransport(code=2))

        session.step(State.VIEW_RUN)

        assert "Command exited with status 2." in output(session)

    def test_missing_fzf(self, make_session, populated):
        """Test that a missing fzf is reported and the session continues."""
        session = make_session(browser=MissingFzf())

        assert session.step(State.VIEW_RUN) is State.MAIN_MENU

        text = output(session)
        assert "fzf is required but not installed." in text
        assert "Cannot browse commands without it." in text


class TestAdd:
    """Tests for the add workflow."""

    def test_add_to_empty_store_uses_general(self, make_session, store):
        """Test that the first command lands in general without a category menu."""
        session = make_session([], ["build", "npm run build", "builds the project"])

        session.step(State.ADD)

        record = store.get("build")
        assert (record.command, record.description, record.category) == (
            "npm run build", "builds the project", "general")
        assert session.prompt.questions == ["Command name", "Command to run", "Description (optional)"]

    def test_add_to_existing_category(self, make_session, populated):
        """Test picking an existing category (dev, network, [New Category])."""
        session = make_session(["j", "\r"], ["ping", "ping -c 1 1.1.1.1", ""])

        session.step(State.ADD)

        assert populated.get("ping").category == "network"
        assert "Select Category for Command" in output(session)
        assert "All Categories" not in output(session)

    def test_add_with_new_category(self, make_session, populated):
        """Test creating a category while adding."""
        session = make_session(["j", "j", "\r"], ["disk", "df -h", "", "system"])

        session.step(State.ADD)

        assert populated.get("disk").category == "system"
        assert session.prompt.questions[-1] == "Enter new category name"

    def test_add_category_cancelled(self, make_session, populated):
        """Test that cancelling the category menu saves nothing."""
        session = make_session(["q"], ["disk", "df -h", ""])

        session.step(State.ADD)

        assert not populated.exists("disk")
        assert "Command addition cancelled." in output(session)

    def test_blank_name(self, make_session, store):
        """Test that an empty name stops the workflow right away."""
        session = make_session([], [""])

        session.step(State.ADD)

        assert "Command name cannot be empty." in output(session)
        assert session.prompt.questions == ["Command name"]
        assert store.count() == 0

    def test_duplicate_name(self, make_session, populated):
        """Test that an existing name is refused before asking for the command."""
        session = make_session([], ["build"])

        session.step(State.ADD)

        assert "Command 'build' already exists. Use modify to update it." in output(session)
        assert session.prompt.questions == ["Command name"]
        assert populated.get("build").command == "npm run build"

    def test_blank_command(self, make_session, store):
        """Test that an empty command is refused."""
        session = make_session([], ["disk", "   "])

        session.step(State.ADD)

        assert "Command to run cannot be empty." in output(session)
        assert store.count() == 0


class TestModify:
    """Tests for the modify workflow."""

    def test_empty_answers_keep_values(self, make_session, populated):
        """Test that empty answers and the current category change nothing."""
        before = populated.get("build")
        session = make_session(["\r"], ["", ""], browser=FakePicker("build"))

        session.step(State.MODIFY)

        assert populated.get("build") == before
        assert "Command 'build' updated successfully." in output(session)

    def test_change_command_and_category(self, make_session, populated):
        """Test replacing the command and moving to a new category."""
        session = make_session(["j", "j", "\r"], ["yarn build", "", "frontend"], browser=FakePicker("build"))

        session.step(State.MODIFY)

        record = populated.get("build")
        assert record.command == "yarn build"
        assert record.description == "builds the project"
        assert record.category == "frontend"

    def test_shows_current_values(self, make_session, populated):
        """Test that the current fields are shown next to the prompts."""
        session = make_session(["\r"], ["", ""], browser=FakePicker("ports"))

        session.step(State.MODIFY)

        text = output(session)
        assert "Modifying Command: ports" in text
        assert "Current command: lsof -i -P -n | grep LISTEN" in text
        assert "Current description: List listening ports" in text
        assert "Current category: network" in text

    def test_category_cancelled(self, make_session, populated):
        """Test that cancelling the category menu keeps the record."""
        session = make_session(["q"], ["changed", "changed"], browser=FakePicker("build"))

        session.step(State.MODIFY)

        assert populated.get("build").command == "npm run build"
        assert "Command modification cancelled." in output(session)

    def test_browse_cancelled(self, make_session, populated):
        """Test that backing out asks nothing."""
        session = make_session(browser=FakePicker())

        session.step(State.MODIFY)

        assert session.prompt.questions == []

    def test_empty_store(self, make_session):
        """Test the notice when nothing is saved."""
        session = make_session()

        session.step(State.MODIFY)

        assert "No commands found to modify." in output(session)


class TestDelete:
    """Tests for the delete workflow."""

    def test_delete_with_menu(self, make_session, populated):
        """Test single deletion through the built-in menu."""
        session = make_session(["j", "\r", "\r"])

        session.step(State.DELETE)

        assert not populated.exists("ports")
        assert populated.exists("build")
        assert "Command 'ports' deleted successfully." in output(session)

    def test_multi_delete_confirms_each(self, make_session, populated):
        """Test that every chosen record gets its own confirmation."""
        picker = FakePicker("build", "ports")
        session = make_session(["\r", "j", "\r"], delete_picker=picker)

        session.step(State.DELETE)

        assert not populated.exists("build")
        assert populated.exists("ports")
        assert "Deletion cancelled for 'ports'." in output(session)
        assert picker.calls[0]["multi"] is True

    def test_record_gone_before_confirmation(self, make_session, populated):
        """Test that a record deleted meanwhile is reported and the loop goes on."""
        session = make_session(["\r", "\r", "\r"], delete_picker=FakePicker("build", "build", "ports"))

        session.step(State.DELETE)

        text = output(session)
        assert "Command 'build' not found." in text
        assert "Command 'ports' deleted successfully." in text
        assert populated.count() == 0

    def test_picker_cancelled(self, make_session, populated):
        """Test that choosing nothing deletes nothing."""
        session = make_session(["q"])

        session.step(State.DELETE)

        assert populated.count() == 2
        session.pause.assert_not_called()

    def test_empty_store(self, make_session):
        """Test the notice when nothing is saved."""
        session = make_session()

        session.step(State.DELETE)

        assert "No commands found to delete." in output(session)


class TestExport:
    """Tests for the export workflow."""

    def test_export_all(self, make_session, populated):
        """Test exporting every category."""
        session = make_session(["\r"], ["mybundle"])

        session.step(State.EXPORT)

        bundle = populated.export_dir / "mybundle.json"
        assert set(json.loads(bundle.read_text())["commands"]) == {"build", "ports"}
        assert "All commands (2) exported to" in output(session)

    def test_export_one_category(self, make_session, populated):
        """Test exporting a single category (All, dev, network)."""
        session = make_session(["j", "\r"], ["devonly"])

        session.step(State.EXPORT)

        bundle = populated.export_dir / "devonly.json"
        assert set(json.loads(bundle.read_text())["commands"]) == {"build"}
        assert "1 command(s) in category 'dev' exported to" in output(session)

    def test_export_default_name(self, make_session, populated):
        """Test that an empty answer uses the timestamped name."""
        session = make_session(["\r"], [""])

        session.step(State.EXPORT)

        names = [p.name for p in populated.export_files()]
        assert len(names) == 1
        assert names[0].startswith("toolbox_export_")
        assert session.prompt.questions[0].startswith("Export filename (default: toolbox_export_")

    def test_export_cancelled(self, make_session, populated):
        """Test that cancelling the category menu writes nothing."""
        session = make_session(["q"], ["mybundle"])

        session.step(State.EXPORT)

        assert populated.export_files() == []
        assert "Export cancelled." in output(session)

    def test_empty_store(self, make_session):
        """Test the notice when nothing is saved."""
        session = make_session()

        session.step(State.EXPORT)

        assert "No commands to export." in output(session)


class TestImport:
    """Tests for the import workflow."""

    @pytest.fixture
    def bundle(self, tmp_path):
        path = tmp_path / "incoming.json"
        path.write_text(json.dumps({"commands": {
            "build": {"command": "make", "description": "c build", "category": "c"},
            "disk": {"command": "df -h", "description": "", "category": "system"},
        }}))
        return path

    def test_import_by_filename(self, make_session, populated, bundle):
        """Test the typed filename path when no file picker is installed."""
        session = make_session(["\r"], [str(bundle)], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        assert populated.get("build").command == "make"
        assert populated.get("disk").category == "system"
        assert populated.exists("ports")
        text = output(session)
        assert "About to import 2 command(s) (c, system)." in text
        assert "Imported 2 command(s) successfully." in text

    def test_import_from_export_directory(self, make_session, populated):
        """Test choosing a bundle from the export directory."""
        populated.export("snapshot")
        populated.delete("ports")
        session = make_session(["\r"], file_picker=FakePicker("snapshot.json"))

        session.step(State.IMPORT)

        assert populated.exists("ports")

    def test_import_declined(self, make_session, populated, bundle):
        """Test that declining leaves the store alone."""
        session = make_session(["j", "\r"], [str(bundle)], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        assert populated.get("build").command == "npm run build"
        assert not populated.exists("disk")
        assert "Import cancelled." in output(session)

    def test_no_exported_files(self, make_session, populated):
        """Test the notice when the export directory is empty."""
        session = make_session(file_picker=FakePicker())

        session.step(State.IMPORT)

        assert "No exported files found in" in output(session)

    def test_file_picker_cancelled(self, make_session, populated):
        """Test that backing out of the file list cancels."""
        populated.export("snapshot")
        session = make_session(file_picker=FakePicker())

        session.step(State.IMPORT)

        assert "Import cancelled." in output(session)

    def test_blank_filename(self, make_session, populated):
        """Test that an empty filename cancels."""
        session = make_session([], [""], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        assert "Import cancelled." in output(session)

    def test_missing_file(self, make_session, populated):
        """Test that an unknown file is reported."""
        session = make_session([], ["nope.json"], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        assert "Error: File not found: nope.json" in output(session)

    def test_empty_bundle(self, make_session, populated, tmp_path):
        """Test that an empty bundle is a notice, not an error."""
        empty = tmp_path / "empty.json"
        empty.write_text('{"commands": {}}')
        session = make_session([], [str(empty)], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        text = output(session)
        assert "No commands found in the import file." in text
        assert "Error:" not in text

    def test_invalid_bundle(self, make_session, populated, tmp_path):
        """Test that a broken bundle is reported and nothing changes."""
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        session = make_session([], [str(broken)], file_picker=FakePicker(available=False))

        session.step(State.IMPORT)

        assert "Error: Invalid JSON file" in output(session)
        assert populated.count() == 2

    def test_non_string_fields(self, make_session, populated, tmp_path):
        """Test that a hand-edited bundle with a numeric command is reported and the loop goes on."""
        typed = tmp_path / "typed.json"
        typed.write_text(json.dumps({"commands": {"x": {"command": 5}}}))
        session = make_session([], [str(typed)], file_picker=FakePicker(available=False))

        assert session.step(State.IMPORT) is State.MAIN_MENU

        assert "Error: Invalid command entry 'x'" in output(session)
        assert not populated.exists("x")
        session.pause.assert_called_once()
