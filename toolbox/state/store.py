"""
Command store backed by a single JSON file.

Layout:
    {"commands": {<name>: {"command": ..., "description": ..., "category": ...}}}

Every operation reads the whole file, transforms it in memory and writes
the whole new snapshot back with write-then-rename, so a failed write
never leaves a partial file behind.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from toolbox.config import Settings
from toolbox.exceptions import (
    DuplicateNameError,
    EmptyImportError,
    InvalidFormatError,
    NotFoundError,
    SourceNotFoundError,
    StorePersistenceError,
    ValidationEmptyError,
)
from toolbox.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "general"
BUNDLE_SUFFIX = ".json"

PathLike = Union[str, Path]


@dataclass
class CommandRecord:
    """A saved command shortcut."""
    name: str
    command: str
    description: str = ""
    category: str = DEFAULT_CATEGORY

    def to_dict(self) -> Dict[str, str]:
        """Persisted shape (the name is the mapping key)."""
        return {
            "command": self.command,
            "description": self.description,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, str]) -> "CommandRecord":
        """Build a record from its persisted shape."""
        return cls(
            name=name,
            command=data.get("command", ""),
            description=data.get("description") or "",
            category=normalize_category(data.get("category")),
        )


@dataclass
class ExportResult:
    """Outcome of an export."""
    path: Path
    count: int
    category: Optional[str] = None


def normalize_category(category: Optional[str]) -> str:
    """Blank categories become the default category."""
    if category is None or not category.strip():
        return DEFAULT_CATEGORY
    return category


def default_export_name(now: Optional[datetime] = None) -> str:
    """Timestamped bundle name, e.g. toolbox_export_20240131_094500.json."""
    now = now or datetime.now()
    return f"toolbox_export_{now.strftime('%Y%m%d_%H%M%S')}{BUNDLE_SUFFIX}"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class Store:
    """
    JSON-file command store.

    Example:
        store = Store()
        store.add("ports", "lsof -i -P -n | grep LISTEN", category="network")
        for record in store.list(category="network"):
            print(record.name, record.command)
    """

    def __init__(self, path: Optional[PathLike] = None, export_dir: Optional[PathLike] = None):
        """
        Initialize command store.

        Args:
            path: Store file (default: ~/.toolbox/commands.json)
            export_dir: Default bundle directory (default: ~/.toolbox/exports)
        """
        if path is None or export_dir is None:
            settings = Settings.from_env()
            path = path or settings.db_file
            export_dir = export_dir or settings.export_dir

        self.path = Path(path)
        self.export_dir = Path(export_dir)

    # Persistence

    def _ensure_initialized(self) -> None:
        """Create the data directories and an empty store on first use."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.export_dir.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            logger.debug(f"Initializing empty store at {self.path}")
            self._write({})

    def _read(self) -> Dict[str, CommandRecord]:
        """Load the complete record set."""
        self._ensure_initialized()
        return _parse_commands(self.path)

    def _write(self, records: Dict[str, CommandRecord]) -> None:
        """Atomically replace the store file with a full snapshot."""
        _write_snapshot(self.path, records)

    # Mutations

    def add(self, name: str, command: str, description: str = "",
            category: str = "") -> CommandRecord:
        """
        Add a new command.

        Args:
            name: Unique command name
            command: Shell command text
            description: Optional free text
            category: Category (blank means "general")

        Returns:
            The stored record

        Raises:
            ValidationEmptyError: If name or command is blank
            DuplicateNameError: If the name is already taken
        """
        if _is_blank(name):
            raise ValidationEmptyError("Command name")
        if _is_blank(command):
            raise ValidationEmptyError("Command to run")

        records = self._read()
        if name in records:
            raise DuplicateNameError(name)

        record = CommandRecord(
            name=name,
            command=command,
            description=description or "",
            category=normalize_category(category),
        )
        records[name] = record
        self._write(records)

        logger.debug(f"Added command {name!r} in category {record.category!r}")
        return record

    def modify(self, name: str, command: Optional[str] = None,
               description: Optional[str] = None,
               category: Optional[str] = None) -> CommandRecord:
        """
        Update an existing command.

        Fields passed as None or "" keep their stored value.

        Raises:
            NotFoundError: If the name is not in the store
        """
        records = self._read()
        current = records.get(name)
        if current is None:
            raise NotFoundError(name)

        updated = CommandRecord(
            name=name,
            command=current.command if _is_blank(command) else command,
            description=description or current.description,
            category=current.category if _is_blank(category) else category,
        )
        records[name] = updated
        self._write(records)

        logger.debug(f"Modified command {name!r}")
        return updated

    def delete(self, name: str) -> CommandRecord:
        """
        Remove a command.

        Returns:
            The removed record

        Raises:
            NotFoundError: If the name is not in the store
        """
        records = self._read()
        removed = records.pop(name, None)
        if removed is None:
            raise NotFoundError(name)

        self._write(records)
        logger.debug(f"Deleted command {name!r}")
        return removed

    # Queries

    def get(self, name: str) -> CommandRecord:
        """
        Get a command by name.

        Raises:
            NotFoundError: If the name is not in the store
        """
        record = self._read().get(name)
        if record is None:
            raise NotFoundError(name)
        return record

    def exists(self, name: str) -> bool:
        """Check whether a command name is taken."""
        return name in self._read()

    def count(self) -> int:
        """Number of stored commands."""
        return len(self._read())

    def list(self, category: Optional[str] = None,
             search: Optional[str] = None) -> List[CommandRecord]:
        """
        List commands, sorted by category then name.

        Args:
            category: Only commands in exactly this category
            search: Only commands whose name or description contains this text

        Returns:
            Matching records (empty list when nothing matches)
        """
        records = self._read().values()

        if category:
            records = [r for r in records if r.category == category]
        if search:
            records = [r for r in records if search in r.name or search in r.description]

        return sorted(records, key=lambda r: (r.category, r.name))

    def categories(self) -> List[Tuple[str, int]]:
        """
        Distinct categories with their command counts.

        Returns:
            List of (category, count), sorted by category
        """
        counts: Dict[str, int] = {}
        for record in self._read().values():
            counts[record.category] = counts.get(record.category, 0) + 1
        return sorted(counts.items())

    # Bundles

    def resolve_export_path(self, destination: Optional[PathLike] = None) -> Path:
        """
        Work out where an export goes.

        A missing name becomes a timestamped one, ".json" is appended when
        absent, and a bare filename lands in the export directory.
        """
        name = str(destination) if destination else default_export_name()
        if not name.endswith(BUNDLE_SUFFIX):
            name += BUNDLE_SUFFIX

        path = Path(name).expanduser()
        if path.parent == Path("."):
            return self.export_dir / path
        return path

    def export(self, destination: Optional[PathLike] = None,
               category: Optional[str] = None) -> ExportResult:
        """
        Write a bundle of all commands, or of one category.

        Args:
            destination: Bundle filename or path
            category: Only export commands in this category

        Returns:
            ExportResult with the bundle path and record count
        """
        records = self._read()
        if category:
            records = {name: r for name, r in records.items() if r.category == category}

        path = self.resolve_export_path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        _write_snapshot(path, records)

        logger.debug(f"Exported {len(records)} command(s) to {path}")
        return ExportResult(path=path, count=len(records), category=category or None)

    def resolve_import_path(self, source: PathLike) -> Path:
        """
        Locate an import source, falling back to the export directory.

        Raises:
            SourceNotFoundError: If neither location has the file
        """
        path = Path(source).expanduser()
        if path.is_file():
            return path

        candidate = self.export_dir / str(source)
        if candidate.is_file():
            return candidate

        raise SourceNotFoundError(str(source))

    def read_bundle(self, source: PathLike) -> Dict[str, CommandRecord]:
        """
        Parse a bundle without changing the store.

        Raises:
            SourceNotFoundError: If the file cannot be found
            InvalidFormatError: If the file is not a valid bundle
        """
        return _parse_commands(self.resolve_import_path(source))

    def import_bundle(self, source: PathLike) -> int:
        """
        Merge a bundle into the store. Imported commands replace
        existing commands with the same name.

        Returns:
            Number of imported commands

        Raises:
            SourceNotFoundError: If the file cannot be found
            InvalidFormatError: If the file is not a valid bundle
            EmptyImportError: If the bundle holds no commands
        """
        incoming = self.read_bundle(source)
        if not incoming:
            raise EmptyImportError("No commands found in the import file.")

        records = self._read()
        records.update(incoming)
        self._write(records)

        logger.debug(f"Imported {len(incoming)} command(s) from {source}")
        return len(incoming)

    def export_files(self) -> List[Path]:
        """Bundles in the export directory, sorted by name."""
        self._ensure_initialized()
        return sorted(p for p in self.export_dir.glob(f"*{BUNDLE_SUFFIX}") if p.is_file())


def _parse_commands(path: Path) -> Dict[str, CommandRecord]:
    """Read and validate a store/bundle file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"Invalid JSON file: {path} ({e})") from e
    except UnicodeDecodeError as e:
        raise InvalidFormatError(f"Invalid JSON file: {path} ({e})") from e

    commands = data.get("commands") if isinstance(data, dict) else None
    if not isinstance(commands, dict):
        raise InvalidFormatError(f"Invalid command file: {path} (missing 'commands' mapping)")

    records: Dict[str, CommandRecord] = {}
    for name, entry in commands.items():
        if not _valid_entry(name, entry):
            raise InvalidFormatError(f"Invalid command entry {name!r} in {path}")
        records[name] = CommandRecord.from_dict(name, entry)
    return records


def _valid_entry(name: str, entry: object) -> bool:
    """A non-blank string command; description and category are strings when present."""
    if not isinstance(entry, dict) or _is_blank(name):
        return False
    command = entry.get("command")
    if not isinstance(command, str) or _is_blank(command):
        return False
    return all(entry.get(key) is None or isinstance(entry[key], str)
               for key in ("description", "category"))


def _write_snapshot(path: Path, records: Dict[str, CommandRecord]) -> None:
    """
    Write records to path via a temporary file and os.replace.

    Raises:
        StorePersistenceError: If any step fails (path is left untouched)
    """
    payload = {"commands": {name: records[name].to_dict() for name in sorted(records)}}
    tmp_name = None

    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            json.dump(payload, tmp, indent=2, ensure_ascii=False)
            tmp.write("\n")
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorePersistenceError(f"Could not save {path}: {e}") from e
