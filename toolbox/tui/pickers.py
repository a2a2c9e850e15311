"""
Record pickers.

A picker chooses zero or more items from a list; an empty result means
the user backed out. Two interchangeable strategies:

- FzfPicker: external fzf with search, preview and multi-select
- MenuPicker: the built-in Menu, single select
"""

import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from toolbox.config import Settings
from toolbox.exceptions import MissingDependencyError
from toolbox.logging import get_toolbox_logger
from toolbox.state.store import CommandRecord
from toolbox.tui.menu import Menu

logger = get_toolbox_logger(__name__)

FZF_HINT = (
    "Install it with your package manager (apt/dnf/brew install fzf) "
    "or see https://github.com/junegunn/fzf#installation"
)

RECORD_PREVIEW = (
    "printf '\\033[1;36mCommand:\\033[0m %s\\n"
    "\\033[1;33mCategory:\\033[0m %s\\n"
    "\\033[1;32mDescription:\\033[0m %s\\n"
    "\\033[1;34mCommand to run:\\033[0m %s\\n' {2} {3} {4} {5}"
)


@dataclass
class PickItem:
    """One selectable entry. `columns` are shown, `value` is returned."""
    columns: Tuple[str, ...]
    value: Any = None
    label: str = field(default="")

    def __post_init__(self):
        if not self.label:
            self.label = " | ".join(c for c in self.columns if c)


def record_items(records: Iterable[CommandRecord]) -> List[PickItem]:
    """Pick items for records: name, category, description, command."""
    return [
        PickItem(
            columns=(r.name, r.category, r.description, r.command),
            value=r,
            label=record_label(r),
        )
        for r in records
    ]


def record_label(record: CommandRecord) -> str:
    """Single-line label: "name [category] - description"."""
    label = f"{record.name} [{record.category}]"
    if record.description:
        label += f" - {record.description}"
    return _flatten(label)


class Picker(ABC):
    """Chooses items from a list."""

    def is_available(self) -> bool:
        """Whether the picker can run on this machine."""
        return True

    @abstractmethod
    def choose(self, items: Sequence[PickItem], multi: bool = False,
               prompt: str = "Select: ", header: str = "") -> List[PickItem]:
        """
        Let the user choose items.

        Args:
            items: Candidates
            multi: Allow choosing more than one
            prompt: Prompt text
            header: Help line shown above the list

        Returns:
            Chosen items (empty when cancelled)
        """
        pass


class FzfPicker(Picker):
    """
    Picker backed by the fzf binary.

    Each candidate is fed to fzf as a tab separated line whose hidden
    first field is the candidate's index.
    """

    def __init__(self, executable: str = "fzf", preview: Optional[str] = RECORD_PREVIEW,
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        self.executable = executable
        self.preview = preview
        self.runner = runner

    @staticmethod
    def available(executable: str = "fzf") -> bool:
        """Check whether fzf is on PATH."""
        return shutil.which(executable) is not None

    def is_available(self) -> bool:
        return self.available(self.executable)

    def build_args(self, multi: bool, prompt: str, header: str) -> List[str]:
        """fzf command line."""
        args = [
            self.executable,
            "--layout=reverse",
            "--height=100%",
            "--border",
            "--delimiter=\t",
            "--with-nth=2..",
            "--bind=ctrl-q:abort",
            f"--prompt={prompt}",
        ]
        if multi:
            args.append("--multi")
        if header:
            args.append(f"--header={header}")
        if self.preview:
            args.extend([f"--preview={self.preview}", "--preview-window=right:40%"])
        return args

    def choose(self, items: Sequence[PickItem], multi: bool = False,
               prompt: str = "Select: ", header: str = "") -> List[PickItem]:
        if not self.is_available():
            raise MissingDependencyError("fzf", FZF_HINT)
        if not items:
            return []

        lines = [
            "\t".join([str(i)] + [_flatten(c) for c in item.columns])
            for i, item in enumerate(items)
        ]
        result = self.runner(
            self.build_args(multi, prompt, header),
            input="\n".join(lines),
            stdout=subprocess.PIPE,
            text=True,
        )

        # 1: no match, 130: aborted with Esc/ctrl-q
        if result.returncode != 0:
            if result.returncode not in (1, 130):
                logger.warning(f"fzf exited with status {result.returncode}")
            return []

        chosen = []
        for line in result.stdout.splitlines():
            index, _, _ = line.partition("\t")
            if index.isdigit() and int(index) < len(items):
                chosen.append(items[int(index)])
        return chosen if multi else chosen[:1]


class MenuPicker(Picker):
    """Picker backed by the built-in Menu. Always single select."""

    def __init__(self, menu: Menu):
        self.menu = menu

    def choose(self, items: Sequence[PickItem], multi: bool = False,
               prompt: str = "Select: ", header: str = "") -> List[PickItem]:
        if not items:
            return []

        index = self.menu.select(prompt.rstrip(": "), [item.label for item in items])
        if index is None:
            return []
        return [items[index]]


def deletion_picker(settings: Settings, menu: Menu) -> Picker:
    """fzf multi-select when enabled and installed, the menu otherwise."""
    if settings.use_fzf and FzfPicker.available():
        return FzfPicker()
    return MenuPicker(menu)


def _flatten(text: str) -> str:
    """Keep tabs and newlines out of fzf lines."""
    return " ".join(str(text).split()) if ("\t" in text or "\n" in text) else text
