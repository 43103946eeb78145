"""Application state shared by the HTTP action handlers.

A single ``AppState`` instance holds the cached catalog, the settings, the cart
and the waiter's current filters. It is created once per application and
passed explicitly to every handler.
"""

from dataclasses import dataclass, field
from enum import Enum

from restaurant_ordering_service.models.cart_models import Cart
from restaurant_ordering_service.models.menu_models import (
    ALL_CATEGORIES,
    DEFAULT_SETTINGS,
    AppSettings,
    Category,
    MenuItem,
)


class ViewState(str, Enum):
    """Which screen the front-end is showing."""

    WAITER = "waiter"
    ADMIN_LOGIN = "admin_login"
    ADMIN_DASHBOARD = "admin_dashboard"


def filter_menu_items(
    items: list[MenuItem],
    category: str = ALL_CATEGORIES,
    search_query: str = "",
) -> list[MenuItem]:
    """Filter menu items for display.

    Args:
        items: Cached menu items, in display order
        category: Exact category name, or "All" to match every item
        search_query: Case-insensitive substring matched against item names

    Returns:
        Matching items in their original order
    """
    query = search_query.lower()
    return [
        item
        for item in items
        if (category == ALL_CATEGORIES or item.category == category)
        and query in item.name.lower()
    ]


@dataclass
class CatalogSnapshot:
    """Menu items, categories and settings loaded together."""

    items: list[MenuItem]
    categories: list[Category]
    settings: AppSettings


@dataclass
class AppState:
    """Everything the waiter and admin screens render from."""

    menu: list[MenuItem] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    settings: AppSettings = field(default_factory=lambda: DEFAULT_SETTINGS.model_copy())
    cart: Cart = field(default_factory=Cart)
    view: ViewState = ViewState.WAITER
    selected_category: str = ALL_CATEGORIES
    search_query: str = ""
    is_loading: bool = True

    def apply_catalog(self, snapshot: CatalogSnapshot) -> None:
        """Replace the cached catalog with a freshly fetched one."""
        self.menu = snapshot.items
        self.categories = snapshot.categories
        self.settings = snapshot.settings
        self.is_loading = False

    def find_item(self, item_id: str) -> MenuItem | None:
        for item in self.menu:
            if item.id == item_id:
                return item
        return None

    def visible_items(self) -> list[MenuItem]:
        """Menu items after applying the category and search filters."""
        return filter_menu_items(self.menu, self.selected_category, self.search_query)
