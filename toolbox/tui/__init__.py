"""
Interactive terminal mode.

Components:
- Menu: keyboard-driven selection widget
- CategoryPicker: category selection on top of the menu
- FzfPicker / MenuPicker: interchangeable record pickers
- Session: main menu state machine running the workflows
"""

from toolbox.tui.category import CategoryPicker
from toolbox.tui.menu import CANCELLED, Menu
from toolbox.tui.pickers import FzfPicker, MenuPicker, PickItem, Picker
from toolbox.tui.session import Session, State

__all__ = [
    "CANCELLED",
    "Menu",
    "CategoryPicker",
    "Picker",
    "PickItem",
    "FzfPicker",
    "MenuPicker",
    "Session",
    "State",
]
