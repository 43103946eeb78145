"""Catalog service for menu, category and settings administration."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Literal

from restaurant_ordering_service.models.app_state import CatalogSnapshot
from restaurant_ordering_service.models.menu_models import (
    DEFAULT_MENU,
    DEFAULT_SETTINGS,
    UNCATEGORIZED,
    AppSettings,
    Category,
    MenuItem,
    MenuItemInput,
    generate_image_url,
    generate_item_id,
    seed_category_names,
)
from restaurant_ordering_service.observability import traced
from restaurant_ordering_service.observability.metrics import record_catalog_mutation
from restaurant_ordering_service.repositories.catalog_repositories import (
    CategoryRepository,
    MenuItemRepository,
    SettingsRepository,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for reading and administering the restaurant catalog.

    This service translates admin actions into repository calls, seeds an
    empty store with the default menu, and keeps category names consistent
    across the items that reference them.
    """

    def __init__(
        self,
        menu_item_repository: MenuItemRepository,
        category_repository: CategoryRepository,
        settings_repository: SettingsRepository,
    ) -> None:
        """Initialize the CatalogService.

        Args:
            menu_item_repository: Repository for menu items
            category_repository: Repository for categories
            settings_repository: Repository for the settings row
        """
        self.menu_item_repository = menu_item_repository
        self.category_repository = category_repository
        self.settings_repository = settings_repository

    @traced(
        "fetch_catalog",
        result_attributes=lambda snapshot: {
            "catalog.item_count": len(snapshot.items),
            "catalog.category_count": len(snapshot.categories),
        },
    )
    async def fetch_catalog(self) -> CatalogSnapshot:
        """Load menu items, categories and settings concurrently.

        Returns:
            CatalogSnapshot with the current (or freshly seeded) data
        """
        (items, seeded), categories, settings = await asyncio.gather(
            self._load_menu(),
            self.get_categories(),
            self.get_settings(),
        )

        # Categories are seeded together with the menu, so reread them
        if seeded:
            categories = await self.get_categories()

        return CatalogSnapshot(items=items, categories=categories, settings=settings)

    async def get_menu(self) -> list[MenuItem]:
        """List menu items, seeding the default menu into an empty store."""
        items, _ = await self._load_menu()
        return items

    async def _load_menu(self) -> tuple[list[MenuItem], bool]:
        items = await asyncio.to_thread(self.menu_item_repository.list_items)
        if items:
            return items, False

        seeded = await asyncio.to_thread(self._seed_default_menu)
        return seeded, True

    def _seed_default_menu(self) -> list[MenuItem]:
        logger.info("Menu table is empty, seeding default menu")

        now = datetime.now(UTC)
        seeded = [
            item.model_copy(update={"created_at": now + timedelta(microseconds=index)})
            for index, item in enumerate(DEFAULT_MENU)
        ]
        self.menu_item_repository.insert_items(seeded)
        self.category_repository.insert_categories(seed_category_names(seeded))

        return seeded

    async def get_categories(self) -> list[Category]:
        return await asyncio.to_thread(self.category_repository.list_categories)

    async def get_settings(self) -> AppSettings:
        """Read the settings row, storing the defaults on first read."""
        settings = await asyncio.to_thread(self.settings_repository.get_settings)
        if settings is not None:
            return settings

        logger.info("No settings stored yet, saving defaults")
        defaults = DEFAULT_SETTINGS.model_copy()
        return await asyncio.to_thread(self.settings_repository.save_settings, defaults)

    @traced("save_settings")
    async def save_settings(self, settings: AppSettings) -> AppSettings:
        saved = await asyncio.to_thread(self.settings_repository.save_settings, settings)
        record_catalog_mutation("save_settings")
        return saved

    async def resolve_item(self, item_input: MenuItemInput) -> MenuItem:
        """Turn an admin form payload into a complete menu item.

        New items get a fresh id. A blank category falls back to the first
        category in display order (or Uncategorized when there are none) and
        a blank image to a generated stock image.

        Args:
            item_input: Payload from the admin dashboard

        Returns:
            MenuItem ready to be stored

        Raises:
            ValueError: If the name is blank
        """
        name = item_input.name.strip()
        if not name:
            raise ValueError("Item name must not be empty")

        category = (item_input.category or "").strip()
        if not category:
            categories = await self.get_categories()
            category = categories[0].name if categories else UNCATEGORIZED

        created_at = None
        if item_input.id:
            existing = await asyncio.to_thread(self.menu_item_repository.get_item, item_input.id)
            created_at = existing.created_at if existing else None

        return MenuItem(
            id=item_input.id or generate_item_id(),
            name=name,
            description=item_input.description,
            price=item_input.price,
            category=category,
            image=item_input.image or generate_image_url(),
            available=item_input.available,
            created_at=created_at or datetime.now(UTC),
        )

    @traced("upsert_item")
    async def upsert_item(self, item: MenuItem | MenuItemInput) -> MenuItem:
        """Insert a new menu item or replace the one with the same id.

        Args:
            item: A complete item, or an admin payload to resolve first

        Returns:
            MenuItem: The stored representation
        """
        if isinstance(item, MenuItemInput):
            item = await self.resolve_item(item)

        stored = await asyncio.to_thread(self.menu_item_repository.upsert_item, item)
        record_catalog_mutation("upsert_item")
        logger.info(f"Saved menu item {stored.id} ({stored.name})")
        return stored

    @traced("delete_item")
    async def delete_item(self, item_id: str) -> None:
        await asyncio.to_thread(self.menu_item_repository.delete_item, item_id)
        record_catalog_mutation("delete_item")
        logger.info(f"Deleted menu item {item_id}")

    @traced("toggle_availability")
    async def toggle_availability(self, item_id: str) -> MenuItem:
        """Flip an item between available and sold out.

        Raises:
            LookupError: If no item has this id
        """
        item = await asyncio.to_thread(self.menu_item_repository.get_item, item_id)
        if item is None:
            raise LookupError(f"Menu item '{item_id}' does not exist")

        toggled = item.model_copy(update={"available": not item.available})
        return await self.upsert_item(toggled)

    @traced("add_category")
    async def add_category(self, name: str) -> Category:
        """Append a new category.

        Raises:
            ValueError: If the name is blank or already taken
        """
        name = name.strip()
        if not name:
            raise ValueError("Category name must not be empty")

        existing = await self.get_categories()
        if any(category.name == name for category in existing):
            raise ValueError(f"Category '{name}' already exists")

        category = await asyncio.to_thread(self.category_repository.add_category, name)
        record_catalog_mutation("add_category")
        return category

    @traced("rename_category", result_attributes=lambda moved: {"catalog.items_changed": moved})
    async def rename_category(self, old_name: str, new_name: str) -> int:
        """Rename a category and every item that references it.

        Renaming to the current name is a no-op.

        Args:
            old_name: Current category name
            new_name: Replacement name

        Returns:
            int: Number of items moved to the new name

        Raises:
            LookupError: If no category is named ``old_name``
            ValueError: If ``new_name`` is blank or already taken
        """
        new_name = new_name.strip()
        if not new_name:
            raise ValueError("Category name must not be empty")
        if new_name == old_name:
            return 0

        names = {category.name for category in await self.get_categories()}
        if old_name not in names:
            raise LookupError(f"Category '{old_name}' does not exist")
        if new_name in names:
            raise ValueError(f"Category '{new_name}' already exists")

        moved = await asyncio.to_thread(
            self.category_repository.rename_category, old_name, new_name
        )
        record_catalog_mutation("rename_category")
        return moved

    @traced("delete_category", result_attributes=lambda moved: {"catalog.items_changed": moved})
    async def delete_category(self, name: str) -> int:
        """Delete a category, moving its items to Uncategorized first.

        Returns:
            int: Number of items reassigned
        """
        reassigned = await asyncio.to_thread(self.category_repository.delete_category, name)
        record_catalog_mutation("delete_category")
        return reassigned

    @traced("reorder_categories")
    async def reorder_categories(self, ordered: list[Category]) -> list[Category]:
        """Persist a new display order.

        Each category's sort_order becomes its index in ``ordered``.

        Args:
            ordered: Categories in their new display order

        Returns:
            The categories with updated sort_order values
        """
        reordered = [
            category.model_copy(update={"sort_order": index})
            for index, category in enumerate(ordered)
        ]
        await asyncio.to_thread(self.category_repository.update_sort_orders, reordered)
        record_catalog_mutation("reorder_categories")
        return reordered

    async def reorder_by_ids(self, category_ids: list[str]) -> list[Category]:
        """Reorder categories given their ids in the new display order.

        Raises:
            ValueError: If the ids are not a permutation of the stored categories
        """
        current = {category.id: category for category in await self.get_categories()}
        if sorted(category_ids) != sorted(current):
            raise ValueError("Category order must list every existing category exactly once")

        return await self.reorder_categories([current[category_id] for category_id in category_ids])

    async def move_category(
        self, category_id: str, direction: Literal["up", "down"]
    ) -> list[Category]:
        """Swap a category with its neighbour and persist the new order.

        Moving the first category up or the last one down changes nothing.

        Raises:
            LookupError: If no category has this id
        """
        categories = await self.get_categories()
        index = next((i for i, c in enumerate(categories) if c.id == category_id), None)
        if index is None:
            raise LookupError(f"Category '{category_id}' does not exist")

        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(categories):
            return categories

        categories[index], categories[target] = categories[target], categories[index]
        return await self.reorder_categories(categories)
