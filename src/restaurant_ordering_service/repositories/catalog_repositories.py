"""DynamoDB repository classes for the catalog tables.

These repositories provide CRUD operations for menu items, categories and the
settings row. Unlike lookups that simply find nothing, a failed call to
DynamoDB is always raised as a StoreError so the action that triggered it can
report the failure and leave its state untouched.

Category rename, delete and reorder touch several rows (and sometimes both
tables). Up to 100 rows they are committed as a single DynamoDB transaction,
so a failure never leaves items pointing at a category that no longer exists.
Larger operations are split into consecutive transactions that update the
items first and write the category row last.
"""

import logging
import uuid
from collections.abc import Iterator
from typing import Any

from boto3.dynamodb.conditions import Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_ordering_service.exceptions import StoreError
from restaurant_ordering_service.models.menu_models import (
    SETTINGS_ID,
    UNCATEGORIZED,
    AppSettings,
    Category,
    MenuItem,
)

logger = logging.getLogger(__name__)

# DynamoDB rejects transactions with more writes than this
MAX_TRANSACTION_ITEMS = 100


def scan_all(table: Table, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """Yield every row of a table scan, following pagination.

    Args:
        table: DynamoDB table to scan
        **kwargs: Extra scan arguments (FilterExpression, ProjectionExpression...)

    Yields:
        Raw DynamoDB items
    """
    response = table.scan(**kwargs)
    yield from response.get("Items", [])

    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
        yield from response.get("Items", [])


class CatalogTransaction:
    """Collects writes across catalog tables and commits them transactionally."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource) -> None:
        """Initialize an empty transaction.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource whose client commits the writes
        """
        self.client = dynamodb_resource.meta.client
        self.serializer = TypeSerializer()
        self.operations: list[dict[str, Any]] = []

    def _serialize(self, values: dict[str, Any]) -> dict[str, Any]:
        return {name: self.serializer.serialize(value) for name, value in values.items()}

    def set_attribute(
        self, table_name: str, key: dict[str, Any], attribute: str, value: Any
    ) -> None:
        """Queue ``SET attribute = value`` on the row identified by ``key``.

        The row must already exist, so a concurrent delete cancels the whole
        transaction instead of recreating a half-filled row.
        """
        self.operations.append(
            {
                "Update": {
                    "TableName": table_name,
                    "Key": self._serialize(key),
                    "UpdateExpression": "SET #attr = :value",
                    "ConditionExpression": "attribute_exists(id)",
                    "ExpressionAttributeNames": {"#attr": attribute},
                    "ExpressionAttributeValues": self._serialize({":value": value}),
                }
            }
        )

    def delete(self, table_name: str, key: dict[str, Any]) -> None:
        """Queue deletion of the row identified by ``key``."""
        self.operations.append(
            {"Delete": {"TableName": table_name, "Key": self._serialize(key)}}
        )

    def commit(self) -> None:
        """Commit all queued writes.

        Up to MAX_TRANSACTION_ITEMS writes go out as one TransactWriteItems
        call and are all-or-nothing. Larger batches are committed in chunks of
        that size, in queue order, so callers queue the row that completes the
        operation last. If a chunk fails, the earlier chunks stay applied.

        Raises:
            StoreError: If DynamoDB cancels a transaction
        """
        if not self.operations:
            return

        chunks = [
            self.operations[start : start + MAX_TRANSACTION_ITEMS]
            for start in range(0, len(self.operations), MAX_TRANSACTION_ITEMS)
        ]
        if len(chunks) > 1:
            logger.warning(
                f"Committing {len(self.operations)} writes in {len(chunks)} transactions; "
                "the operation is not atomic"
            )

        for index, chunk in enumerate(chunks):
            try:
                self.client.transact_write_items(TransactItems=chunk)
            except ClientError as e:
                logger.error(f"Catalog transaction {index + 1}/{len(chunks)} failed: {e}")
                raise StoreError(
                    f"Catalog transaction failed ({index} of {len(chunks)} batches applied): {e}"
                ) from e


class MenuItemRepository:
    """Repository for menu item CRUD operations.

    Manages menu item rows in DynamoDB with ``id`` as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def list_items(self) -> list[MenuItem]:
        """List every menu item, oldest first.

        Returns:
            list: MenuItem objects ordered by creation time (empty list if none)

        Raises:
            StoreError: If the scan fails
        """
        try:
            items = [MenuItem.from_dynamodb_item(row) for row in scan_all(self.table)]
        except ClientError as e:
            logger.error(f"Failed to list menu items: {e}")
            raise StoreError(f"Failed to load menu: {e}") from e

        # Rows without a timestamp sort first, ids break ties between seeded rows
        return sorted(items, key=lambda item: (item.created_at is not None, item.created_at or 0, item.id))

    def get_item(self, item_id: str) -> MenuItem | None:
        """Retrieve a menu item by id.

        Args:
            item_id: Menu item identifier

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": item_id})
        except ClientError as e:
            logger.error(f"Failed to get menu item {item_id}: {e}")
            raise StoreError(f"Failed to load menu item: {e}") from e

        if "Item" not in response:
            return None

        return MenuItem.from_dynamodb_item(response["Item"])

    def upsert_item(self, item: MenuItem) -> MenuItem:
        """Insert or replace a menu item by id.

        Args:
            item: MenuItem to save

        Returns:
            MenuItem: The stored representation
        """
        try:
            self.table.put_item(Item=item.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to save menu item {item.id}: {e}")
            raise StoreError(f"Failed to save menu item: {e}") from e

        return item

    def insert_items(self, items: list[MenuItem]) -> list[MenuItem]:
        """Bulk insert menu items (used for seeding)."""
        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=item.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to seed menu items: {e}")
            raise StoreError(f"Failed to seed menu: {e}") from e

        return items

    def delete_item(self, item_id: str) -> None:
        """Delete a menu item. Deleting an unknown id is not an error.

        Args:
            item_id: Menu item identifier
        """
        try:
            self.table.delete_item(Key={"id": item_id})
        except ClientError as e:
            logger.error(f"Failed to delete menu item {item_id}: {e}")
            raise StoreError(f"Failed to delete menu item: {e}") from e

    def list_item_ids_in_category(self, category_name: str) -> list[str]:
        """Ids of every item whose category equals ``category_name``."""
        try:
            rows = scan_all(
                self.table,
                FilterExpression=Attr("category").eq(category_name),
                ProjectionExpression="id",
            )
            return [str(row["id"]) for row in rows]
        except ClientError as e:
            logger.error(f"Failed to list items in category {category_name}: {e}")
            raise StoreError(f"Failed to load items for category: {e}") from e


class CategoryRepository:
    """Repository for category CRUD operations.

    Manages category rows in DynamoDB with ``id`` as partition key. Category
    names are referenced by menu items, so renames and deletes cascade into
    the menu item table.
    """

    def __init__(
        self,
        dynamodb_resource: DynamoDBServiceResource,
        table_name: str,
        menu_item_repository: MenuItemRepository,
    ) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
            menu_item_repository: Repository of the items referencing categories
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)
        self.menu_item_repository = menu_item_repository

    def list_categories(self) -> list[Category]:
        """List categories in display order.

        Returns:
            list: Category objects ordered by sort_order (empty list if none)
        """
        try:
            categories = [Category.from_dynamodb_item(row) for row in scan_all(self.table)]
        except ClientError as e:
            logger.error(f"Failed to list categories: {e}")
            raise StoreError(f"Failed to load categories: {e}") from e

        return sorted(categories, key=lambda category: (category.sort_order, category.name))

    def find_by_name(self, name: str) -> list[Category]:
        try:
            rows = scan_all(self.table, FilterExpression=Attr("name").eq(name))
            return [Category.from_dynamodb_item(row) for row in rows]
        except ClientError as e:
            logger.error(f"Failed to look up category {name}: {e}")
            raise StoreError(f"Failed to load category: {e}") from e

    def add_category(self, name: str, sort_order: int | None = None) -> Category:
        """Insert a new category with a store-assigned id.

        Args:
            name: Category name
            sort_order: Explicit position; appended after the last category if omitted

        Returns:
            Category: The stored category
        """
        if sort_order is None:
            existing = self.list_categories()
            sort_order = max((c.sort_order for c in existing), default=-1) + 1

        category = Category(id=f"cat_{uuid.uuid4().hex[:12]}", name=name, sort_order=sort_order)

        try:
            self.table.put_item(Item=category.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to add category {name}: {e}")
            raise StoreError(f"Failed to add category: {e}") from e

        return category

    def insert_categories(self, names: list[str]) -> list[Category]:
        """Bulk insert categories with sort_order equal to their list position."""
        categories = [
            Category(id=f"cat_{uuid.uuid4().hex[:12]}", name=name, sort_order=index)
            for index, name in enumerate(names)
        ]

        try:
            with self.table.batch_writer() as batch:
                for category in categories:
                    batch.put_item(Item=category.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to seed categories: {e}")
            raise StoreError(f"Failed to seed categories: {e}") from e

        return categories

    def rename_category(self, old_name: str, new_name: str) -> int:
        """Rename a category and every item referencing it.

        Args:
            old_name: Current category name
            new_name: Replacement name

        Returns:
            int: Number of menu items moved to the new name
        """
        categories = self.find_by_name(old_name)
        item_ids = self.menu_item_repository.list_item_ids_in_category(old_name)

        transaction = CatalogTransaction(self.dynamodb)
        for item_id in item_ids:
            transaction.set_attribute(
                self.menu_item_repository.table_name, {"id": item_id}, "category", new_name
            )
        for category in categories:
            transaction.set_attribute(self.table_name, {"id": category.id}, "name", new_name)
        transaction.commit()

        logger.info(f"Renamed category '{old_name}' to '{new_name}' ({len(item_ids)} items)")
        return len(item_ids)

    def delete_category(self, name: str) -> int:
        """Move referencing items to Uncategorized, then delete the category.

        Args:
            name: Category name

        Returns:
            int: Number of menu items reassigned
        """
        categories = self.find_by_name(name)
        item_ids = self.menu_item_repository.list_item_ids_in_category(name)

        transaction = CatalogTransaction(self.dynamodb)
        for item_id in item_ids:
            transaction.set_attribute(
                self.menu_item_repository.table_name, {"id": item_id}, "category", UNCATEGORIZED
            )
        for category in categories:
            transaction.delete(self.table_name, {"id": category.id})
        transaction.commit()

        logger.info(f"Deleted category '{name}' ({len(item_ids)} items now {UNCATEGORIZED})")
        return len(item_ids)

    def update_sort_orders(self, categories: list[Category]) -> None:
        """Persist the sort_order of every given category in one transaction."""
        transaction = CatalogTransaction(self.dynamodb)
        for category in categories:
            transaction.set_attribute(
                self.table_name, {"id": category.id}, "sort_order", category.sort_order
            )
        transaction.commit()


class SettingsRepository:
    """Repository for the singleton settings row (``id = 1``)."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_settings(self) -> AppSettings | None:
        """Retrieve the settings row.

        Returns:
            AppSettings if the row exists, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": SETTINGS_ID})
        except ClientError as e:
            logger.error(f"Failed to get settings: {e}")
            raise StoreError(f"Failed to load settings: {e}") from e

        if "Item" not in response:
            return None

        return AppSettings.from_dynamodb_item(response["Item"])

    def save_settings(self, settings: AppSettings) -> AppSettings:
        """Replace the settings row as a whole."""
        try:
            self.table.put_item(Item=settings.to_dynamodb_item())
        except ClientError as e:
            logger.error(f"Failed to save settings: {e}")
            raise StoreError(f"Failed to save settings: {e}") from e

        return settings
