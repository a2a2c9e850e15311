"""
Exception hierarchy for Toolbox.

Every error raised by the store, the pickers and the interactive session
is a subclass of ToolboxError, so the CLI and the session workflows can
report it and carry on.
"""

__all__ = [
    "ToolboxError",
    "StoreError",
    "DuplicateNameError",
    "NotFoundError",
    "SourceNotFoundError",
    "ValidationEmptyError",
    "InvalidFormatError",
    "EmptyImportError",
    "StorePersistenceError",
    "MissingDependencyError",
    "CancelledByUserError",
]


class ToolboxError(Exception):
    """Root exception for all Toolbox errors."""


# Store

class StoreError(ToolboxError):
    """Base class for command store errors."""


class DuplicateNameError(StoreError):
    """Raised when adding a command whose name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Command '{name}' already exists. Use modify to update it.")
        self.name = name


class NotFoundError(StoreError):
    """Raised when a command name is not in the store."""

    def __init__(self, name: str, message: str = ""):
        super().__init__(message or f"Command '{name}' not found.")
        self.name = name


class SourceNotFoundError(NotFoundError):
    """Raised when an import source file cannot be located."""

    def __init__(self, source: str):
        super().__init__(source, f"File not found: {source}")


class ValidationEmptyError(StoreError):
    """Raised when a required field is blank."""

    def __init__(self, field: str):
        super().__init__(f"{field} cannot be empty.")
        self.field = field


class InvalidFormatError(StoreError):
    """Raised when a store file or bundle does not parse."""


class EmptyImportError(StoreError):
    """Raised when an import bundle holds no commands. Not fatal."""


class StorePersistenceError(StoreError):
    """Raised when writing the store to disk fails. The old file is kept."""


# Collaborators

class MissingDependencyError(ToolboxError):
    """Raised when a required external tool is not installed."""

    def __init__(self, tool: str, hint: str = ""):
        message = f"{tool} is required but not installed."
        if hint:
            message += f" {hint}"
        super().__init__(message)
        self.tool = tool


class CancelledByUserError(ToolboxError):
    """Raised when the user backs out of a workflow. Not a failure."""

    def __init__(self, message: str = "Cancelled."):
        super().__init__(message)
