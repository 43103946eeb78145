"""Shared pytest fixtures and configuration for all tests."""

import os
from decimal import Decimal

import pytest

# Entry point modules only build the real application outside of tests
os.environ.setdefault("ENVIRONMENT", "test")

from restaurant_ordering_service.models.menu_models import (  # noqa: E402
    AppSettings,
    Category,
    MenuItem,
)


@pytest.fixture
def sample_items() -> list[MenuItem]:
    """Fixture providing sample menu items for testing."""
    return [
        MenuItem(
            id="1",
            name="Classic Cheeseburger",
            description="Angus beef patty, cheddar, lettuce, tomato, house sauce.",
            price=Decimal("12.99"),
            category="Mains",
            image="https://example.com/burger.jpg",
        ),
        MenuItem(
            id="2",
            name="Truffle Fries",
            description="Crispy shoestring fries tossed in truffle oil and parmesan.",
            price=Decimal("6.50"),
            category="Sides",
            image="https://example.com/fries.jpg",
        ),
        MenuItem(
            id="3",
            name="Grilled Salmon",
            description="Fresh salmon fillet with asparagus and lemon butter.",
            price=Decimal("18.50"),
            category="Mains",
            image="https://example.com/salmon.jpg",
            available=False,
        ),
    ]


@pytest.fixture
def sample_categories() -> list[Category]:
    """Fixture providing sample categories for testing."""
    return [
        Category(id="cat_1", name="Mains", sort_order=0),
        Category(id="cat_2", name="Sides", sort_order=1),
        Category(id="cat_3", name="Drinks", sort_order=2),
    ]


@pytest.fixture
def configured_settings() -> AppSettings:
    """Fixture providing settings with Telegram configured."""
    return AppSettings(
        restaurant_name="Gourmet Bistro",
        currency="$",
        telegram_bot_token="123456:ABC-DEF",
        telegram_chat_id="-100123456789",
    )


@pytest.fixture
def unconfigured_settings() -> AppSettings:
    """Fixture providing settings without Telegram credentials."""
    return AppSettings(restaurant_name="Gourmet Bistro", currency="$")
