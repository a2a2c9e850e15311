"""
Category selection on top of the menu.
"""

from typing import Callable, List, Optional, Tuple

from toolbox.exceptions import CancelledByUserError
from toolbox.state.store import DEFAULT_CATEGORY, Store
from toolbox.tui.menu import Menu
from toolbox.tui.terminal import hidden_cursor, visible_cursor

ALL_CATEGORIES = "All Categories"
NEW_CATEGORY = "[New Category]"

# Option kinds
_ALL = "all"
_EXISTING = "existing"
_NEW = "new"


class CategoryPicker:
    """
    Resolves a category through the menu.

    pick() returns a category name, or None for "All Categories"
    (no filter). Backing out raises CancelledByUserError.
    """

    def __init__(self, store: Store, menu: Menu, prompt: Callable[[str], str]):
        self.store = store
        self.menu = menu
        self.prompt = prompt

    def options(self, include_all: bool, include_new: bool) -> List[Tuple[str, str, Optional[str]]]:
        """Menu entries as (label, kind, category)."""
        entries: List[Tuple[str, str, Optional[str]]] = []
        if include_all:
            entries.append((ALL_CATEGORIES, _ALL, None))
        for category, _count in self.store.categories():
            entries.append((category, _EXISTING, category))
        if include_new:
            entries.append((NEW_CATEGORY, _NEW, None))
        return entries

    def pick(self, title: str, include_all: bool = True, include_new: bool = True) -> Optional[str]:
        """
        Ask for a category.

        Args:
            title: Menu title
            include_all: Offer "All Categories" (resolves to None)
            include_new: Offer "[New Category]" (prompts for a name)

        Returns:
            Category name, or None for all categories

        Raises:
            CancelledByUserError: If the menu is cancelled, or there is
                nothing to choose from
        """
        if not self.store.categories():
            if include_new:
                return DEFAULT_CATEGORY
            raise CancelledByUserError("No categories available.")

        # Also scopes the new-name prompt
        with hidden_cursor(self.menu.console):
            entries = self.options(include_all, include_new)
            index = self.menu.select(title, [label for label, _, _ in entries])
            if index is None:
                raise CancelledByUserError()

            _label, kind, category = entries[index]
            if kind == _NEW:
                return self._ask_new()
            return category

    def _ask_new(self) -> str:
        with visible_cursor(self.menu.console):
            name = self.prompt("Enter new category name")
        return name.strip() or DEFAULT_CATEGORY
