"""Catalog data models.

These models represent menu items, categories and the restaurant settings
singleton, together with their DynamoDB row format and the default data used
to seed an empty store.
"""

import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNCATEGORIZED = "Uncategorized"
ALL_CATEGORIES = "All"
PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/400x300?text=No+Image"
SETTINGS_ID = 1


def generate_item_id() -> str:
    """Generate a client-side identifier for a new menu item."""
    return str(uuid.uuid4())


def generate_image_url() -> str:
    """Generate a random stock image URL for items created without one."""
    return f"https://picsum.photos/400/300?random={int(time.time() * 1000)}"


class MenuItem(BaseModel):
    """Menu item model."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str = Field(..., description="Unique identifier for the menu item", min_length=1)
    name: str = Field(..., description="Item name", min_length=1)
    description: str = Field(default="", description="Item description")
    price: Decimal = Field(..., description="Item price", ge=0)
    category: str = Field(default=UNCATEGORIZED, description="Name of the category")
    image: str = Field(default=PLACEHOLDER_IMAGE_URL, description="URL to item image")
    available: bool = Field(default=True, description="Whether item is currently available")
    created_at: datetime | None = Field(None, description="When the item was first stored")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "available": self.available,
        }

        if self.created_at is not None:
            item["created_at"] = self.created_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Rows written by older clients may lack a category or image; those fall
        back to the sentinel category and the placeholder image.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": str(item["id"]),
            "name": item["name"],
            "description": item.get("description") or "",
            "price": Decimal(str(item["price"])),
            "category": item.get("category") or UNCATEGORIZED,
            "image": item.get("image") or PLACEHOLDER_IMAGE_URL,
            "available": bool(item.get("available", True)),
        }

        if item.get("created_at"):
            data["created_at"] = datetime.fromisoformat(item["created_at"])

        return cls(**data)


class MenuItemInput(BaseModel):
    """Admin form payload for creating or updating a menu item.

    Only name and price are mandatory. Missing fields are resolved by the
    catalog service before the item is stored.
    """

    id: str | None = Field(None, description="Existing item id; omitted for new items")
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    description: str = ""
    category: str | None = None
    image: str | None = None
    available: bool = True


class Category(BaseModel):
    """Menu category model."""

    id: str = Field(..., description="Unique identifier for the category")
    name: str = Field(..., description="Category name", min_length=1)
    sort_order: int = Field(default=0, description="Display order of category")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Category":
        """Create Category from DynamoDB item."""
        return cls(
            id=str(item["id"]),
            name=item["name"],
            sort_order=int(item.get("sort_order", 0)),
        )


class AppSettings(BaseModel):
    """Restaurant-wide settings, stored as a single row."""

    restaurant_name: str = Field(..., description="Display title of the restaurant")
    currency: str = Field(default="$", description="Currency symbol used in prices")
    telegram_bot_token: str = Field(default="", description="Bot token for order notifications")
    telegram_chat_id: str = Field(default="", description="Chat that receives order notifications")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        return {
            "id": SETTINGS_ID,
            "restaurant_name": self.restaurant_name,
            "currency": self.currency,
            "telegram_bot_token": self.telegram_bot_token,
            "telegram_chat_id": self.telegram_chat_id,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "AppSettings":
        """Create AppSettings from DynamoDB item."""
        return cls(
            restaurant_name=item.get("restaurant_name") or DEFAULT_SETTINGS.restaurant_name,
            currency=item.get("currency") or "$",
            telegram_bot_token=item.get("telegram_bot_token") or "",
            telegram_chat_id=item.get("telegram_chat_id") or "",
        )


DEFAULT_SETTINGS = AppSettings(
    restaurant_name="Gourmet Bistro",
    currency="$",
    telegram_bot_token="",
    telegram_chat_id="",
)

DEFAULT_MENU: list[MenuItem] = [
    MenuItem(
        id="1",
        name="Classic Cheeseburger",
        description="Angus beef patty, cheddar, lettuce, tomato, house sauce.",
        price=Decimal("12.99"),
        category="Mains",
        image="https://picsum.photos/400/300?random=1",
    ),
    MenuItem(
        id="2",
        name="Truffle Fries",
        description="Crispy shoestring fries tossed in truffle oil and parmesan.",
        price=Decimal("6.50"),
        category="Sides",
        image="https://picsum.photos/400/300?random=2",
    ),
    MenuItem(
        id="3",
        name="Caesar Salad",
        description="Romaine hearts, garlic croutons, shaved parmesan.",
        price=Decimal("10.00"),
        category="Starters",
        image="https://picsum.photos/400/300?random=3",
    ),
    MenuItem(
        id="4",
        name="Grilled Salmon",
        description="Fresh salmon fillet with asparagus and lemon butter.",
        price=Decimal("18.50"),
        category="Mains",
        image="https://picsum.photos/400/300?random=4",
    ),
    MenuItem(
        id="5",
        name="Chocolate Lava Cake",
        description="Warm chocolate cake with a molten center, served with vanilla ice cream.",
        price=Decimal("8.00"),
        category="Desserts",
        image="https://picsum.photos/400/300?random=5",
    ),
    MenuItem(
        id="6",
        name="Iced Lemon Tea",
        description="House-brewed black tea with fresh lemon slices.",
        price=Decimal("4.50"),
        category="Drinks",
        image="https://picsum.photos/400/300?random=6",
    ),
]


def seed_category_names(items: list[MenuItem]) -> list[str]:
    """Distinct category names of ``items`` in order of first appearance."""
    return list(dict.fromkeys(item.category for item in items))
