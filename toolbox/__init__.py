__version__ = "1.0.0"

from toolbox.state import Store, CommandRecord
from toolbox.tui import Menu, CategoryPicker, Session
from toolbox.logging import get_logger, get_toolbox_logger, setup_logging

"""
Foundations of Toolbox:
    Store keeps every saved command in one JSON file, written atomically.
    CommandRecord is a saved command: name, command text, description, category.
    Menu is the keyboard-driven selection widget of the interactive mode.
    CategoryPicker resolves a category through the Menu.
    Session is the interactive main-menu loop running the workflows.
"""

__all__ = [
    "Store",
    "CommandRecord",
    "Menu",
    "CategoryPicker",
    "Session",
    "get_logger",
    "get_toolbox_logger",
    "setup_logging",
]
