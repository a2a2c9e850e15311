"""
Logging for Toolbox.

Example:
    from toolbox.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Loaded 12 commands")
    logger.warning("Export directory missing, creating it")
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

TOOLBOX_THEME = Theme({
    "log.time": "dim cyan",
    "log.level.debug": "dim blue",
    "log.level.info": "green",
    "log.level.warning": "yellow",
    "log.level.error": "bold red",
    "log.level.critical": "bold white on red",
    "toolbox.success": "bold green",
    "toolbox.notice": "yellow",
    "toolbox.failure": "bold red",
    "toolbox.security": "bold red",
    "toolbox.title": "bold cyan",
    "toolbox.name": "bold cyan",
    "toolbox.category": "magenta",
    "toolbox.description": "yellow",
    "toolbox.command": "green",
    "toolbox.selected": "bold green",
})

# Global console instance
console = Console(theme=TOOLBOX_THEME, stderr=True)

_initialized = False


def setup_logging(
    level: str = "WARNING",
    show_time: bool = True,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> None:
    """
    Initialize Toolbox logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        show_time: Show timestamps in log output
        show_path: Show file path in log output
        rich_tracebacks: Use rich formatting for tracebacks

    Note:
        The handler is installed once. Later calls only change the level,
        so the CLI can apply --log-level after modules created their loggers.
    """
    global _initialized

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    if _initialized:
        logging.getLogger().setLevel(numeric_level)
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not _initialized:
        setup_logging()

    return logging.getLogger(name)


class ToolboxLogger:
    """
    Toolbox-specific logger.

    Wraps the standard logger with helpers for the messages the CLI and
    the interactive session show to the user.
    """

    def __init__(self, name: str, out: Optional[Console] = None):
        """
        Initialize Toolbox logger.

        Args:
            name: Logger name (typically __name__)
            out: Console for user-facing messages (default: stderr console)
        """
        self.logger = get_logger(name)
        self.console = out or console

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        self.logger.debug(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self.logger.warning(message, **kwargs)

    def success(self, message: str) -> None:
        """
        Show a success message.

        Args:
            message: Plain text, markup is escaped
        """
        self.console.print(f"[toolbox.success]✓[/toolbox.success] {escape(message)}")

    def notice(self, message: str) -> None:
        """Show a neutral notice (cancellations, empty results)."""
        self.console.print(f"[toolbox.notice]{escape(message)}[/toolbox.notice]")

    def failure(self, message: str) -> None:
        """Show an error the user can act on."""
        self.console.print(f"[toolbox.failure]{escape(message)}[/toolbox.failure]")

    def security_warning(self, message: str, command: Optional[str] = None) -> None:
        """
        Show a security warning before running a risky command.

        Args:
            message: Warning text
            command: Optional command the warning is about
        """
        separator = "-" * 70
        header = f"\n{separator}\n"
        header += "SECURITY WARNING"
        if command:
            header += f": {command}"
        header += f"\n{separator}"

        self.console.print(f"[toolbox.security]{escape(header)}[/toolbox.security]")
        self.console.print(f"[toolbox.security]{escape(message)}[/toolbox.security]")
        self.console.print(f"[toolbox.security]{separator}[/toolbox.security]\n")


def get_toolbox_logger(name: str, out: Optional[Console] = None) -> ToolboxLogger:
    """
    Get a ToolboxLogger instance for the given module.

    Args:
        name: Logger name (typically __name__)
        out: Console for user-facing messages

    Returns:
        ToolboxLogger instance

    Example:
        logger = get_toolbox_logger(__name__)
        logger.success("Command 'build' added")
    """
    return ToolboxLogger(name, out)
