"""Unit tests for the FastAPI waiter and admin endpoints."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from restaurant_ordering_service.auth.credential_provider import StaticCredentialProvider
from restaurant_ordering_service.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DeliveryError,
    StoreError,
)
from restaurant_ordering_service.handlers.api_handler import create_app
from restaurant_ordering_service.models.app_state import AppState, CatalogSnapshot, ViewState
from restaurant_ordering_service.models.menu_models import AppSettings, Category, MenuItem
from restaurant_ordering_service.services.catalog_service import CatalogService
from restaurant_ordering_service.services.order_service import OrderReceipt, OrderService

ADMIN = ("admin", "1234")


@pytest.fixture
def app_state(
    sample_items: list[MenuItem],
    sample_categories: list[Category],
    configured_settings: AppSettings,
) -> AppState:
    """Application state with a catalog already loaded."""
    state = AppState()
    state.apply_catalog(
        CatalogSnapshot(
            items=sample_items,
            categories=sample_categories,
            settings=configured_settings,
        )
    )
    return state


@pytest.fixture
def mock_catalog_service(
    sample_items: list[MenuItem],
    sample_categories: list[Category],
    configured_settings: AppSettings,
) -> MagicMock:
    """Create a mock catalog service that returns the sample catalog."""
    service = MagicMock(spec=CatalogService)
    service.fetch_catalog = AsyncMock(
        return_value=CatalogSnapshot(
            items=sample_items,
            categories=sample_categories,
            settings=configured_settings,
        )
    )
    return service


@pytest.fixture
def mock_order_service() -> MagicMock:
    service = MagicMock(spec=OrderService)
    service.place_order = AsyncMock()
    return service


@pytest.fixture
def client(
    mock_catalog_service: MagicMock,
    mock_order_service: MagicMock,
    app_state: AppState,
) -> TestClient:
    """Create a test client with mocked services."""
    app = create_app(
        catalog_service=mock_catalog_service,
        order_service=mock_order_service,
        credential_provider=StaticCredentialProvider(username="admin", password="1234"),
        state=app_state,
    )
    return TestClient(app)


@pytest.mark.unit
class TestHealthEndpoint:
    """Test suite for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test health check endpoint returns 200."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


@pytest.mark.unit
class TestMenuEndpoints:
    """Test suite for catalog and menu endpoints."""

    def test_load_catalog(self, client: TestClient, mock_catalog_service: MagicMock) -> None:
        """Test that /catalog refetches from the store."""
        response = client.get("/catalog")

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data["items"]] == ["1", "2", "3"]
        assert [c["name"] for c in data["categories"]] == ["Mains", "Sides", "Drinks"]
        assert data["settings"]["restaurant_name"] == "Gourmet Bistro"
        mock_catalog_service.fetch_catalog.assert_called_once()

    def test_load_catalog_store_failure(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        """Test that store failures surface as a notification."""
        mock_catalog_service.fetch_catalog.side_effect = StoreError("Failed to list menu items")

        response = client.get("/catalog")

        assert response.status_code == 502
        assert response.json() == {
            "error": "StoreError",
            "notification": "Failed to list menu items",
        }

    def test_menu_defaults_to_all(self, client: TestClient) -> None:
        response = client.get("/menu")

        assert response.status_code == 200
        data = response.json()
        assert data["category"] == "All"
        assert data["search"] == ""
        assert len(data["items"]) == 3

    def test_menu_filters_by_category_and_search(self, client: TestClient) -> None:
        """Test that category and case-insensitive search are combined."""
        response = client.get("/menu", params={"category": "Mains", "search": "SALMON"})

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == ["3"]

    def test_menu_remembers_filters(self, client: TestClient, app_state: AppState) -> None:
        """Test that omitted parameters keep the previous filter."""
        client.get("/menu", params={"category": "Sides"})

        response = client.get("/menu")

        assert app_state.selected_category == "Sides"
        assert [item["id"] for item in response.json()["items"]] == ["2"]

    def test_menu_loads_catalog_on_first_request(
        self,
        mock_catalog_service: MagicMock,
        mock_order_service: MagicMock,
    ) -> None:
        """Test that an unloaded state is filled before answering."""
        state = AppState()
        app = create_app(
            catalog_service=mock_catalog_service,
            order_service=mock_order_service,
            credential_provider=StaticCredentialProvider(username="admin", password="1234"),
            state=state,
        )
        client = TestClient(app)

        response = client.get("/menu")

        assert response.status_code == 200
        assert len(response.json()["items"]) == 3
        assert state.is_loading is False
        mock_catalog_service.fetch_catalog.assert_called_once()


@pytest.mark.unit
class TestCartEndpoints:
    """Test suite for cart endpoints."""

    def test_empty_cart(self, client: TestClient) -> None:
        response = client.get("/cart")

        assert response.status_code == 200
        assert response.json() == {"items": [], "total_items": 0, "total_price": "0.00"}

    def test_add_items_and_totals(self, client: TestClient) -> None:
        """Test that repeated adds increase quantity and totals follow."""
        client.post("/cart/items", json={"item_id": "1"})
        client.post("/cart/items", json={"item_id": "1"})
        response = client.post("/cart/items", json={"item_id": "2"})

        assert response.status_code == 200
        data = response.json()
        assert [(line["id"], line["quantity"]) for line in data["items"]] == [("1", 2), ("2", 1)]
        assert data["total_items"] == 3
        assert Decimal(data["total_price"]) == Decimal("32.48")

    def test_add_unknown_item(self, client: TestClient) -> None:
        response = client.post("/cart/items", json={"item_id": "missing"})

        assert response.status_code == 404

    def test_add_sold_out_item(self, client: TestClient, app_state: AppState) -> None:
        """Test that unavailable items cannot be added."""
        response = client.post("/cart/items", json={"item_id": "3"})

        assert response.status_code == 409
        assert "sold out" in response.json()["detail"]
        assert app_state.cart.is_empty is True

    def test_adjust_quantity_to_zero_removes_line(self, client: TestClient) -> None:
        client.post("/cart/items", json={"item_id": "1"})
        client.post("/cart/items", json={"item_id": "2"})

        response = client.patch("/cart/items/1", json={"delta": -1})

        assert response.status_code == 200
        assert [line["id"] for line in response.json()["items"]] == ["2"]

    def test_adjust_unknown_line_is_noop(self, client: TestClient) -> None:
        client.post("/cart/items", json={"item_id": "1"})

        response = client.patch("/cart/items/99", json={"delta": 1})

        assert response.status_code == 200
        assert response.json()["total_items"] == 1

    def test_clear_cart(self, client: TestClient) -> None:
        client.post("/cart/items", json={"item_id": "1"})

        response = client.delete("/cart")

        assert response.status_code == 200
        assert response.json()["total_items"] == 0


@pytest.mark.unit
class TestOrderEndpoint:
    """Test suite for placing orders."""

    def test_place_order_success(
        self,
        client: TestClient,
        mock_order_service: MagicMock,
        app_state: AppState,
        configured_settings: AppSettings,
    ) -> None:
        """Test that the cart and settings are handed to the order service."""
        mock_order_service.place_order.return_value = OrderReceipt(
            table_number="5",
            item_count=3,
            total=Decimal("32.48"),
            sent_at=datetime(2024, 1, 15, 19, 30, tzinfo=UTC),
        )

        response = client.post("/orders", json={"table_number": "5"})

        assert response.status_code == 200
        data = response.json()
        assert data["notification"] == "Order Sent to Kitchen!"
        assert data["item_count"] == 3
        assert Decimal(data["total"]) == Decimal("32.48")

        cart, table_number, settings = mock_order_service.place_order.call_args.args
        assert cart is app_state.cart
        assert table_number == "5"
        assert settings == configured_settings

    def test_place_order_requires_table_number(
        self, client: TestClient, mock_order_service: MagicMock
    ) -> None:
        response = client.post("/orders", json={"table_number": ""})

        assert response.status_code == 422
        mock_order_service.place_order.assert_not_called()

    def test_place_order_empty_cart(
        self, client: TestClient, mock_order_service: MagicMock
    ) -> None:
        """Test that validation errors from the service become 400."""
        mock_order_service.place_order.side_effect = ValueError("Cannot place an empty order")

        response = client.post("/orders", json={"table_number": "5"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot place an empty order"

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ConfigurationError("Admin has not configured Telegram Bot settings."), 400),
            (DeliveryError("Telegram Error: chat not found"), 502),
            (ConnectivityError("Connection failed."), 503),
        ],
    )
    def test_place_order_notification_failures(
        self,
        client: TestClient,
        mock_order_service: MagicMock,
        error: Exception,
        status_code: int,
    ) -> None:
        """Test that each failure kind maps to its status and notification."""
        mock_order_service.place_order.side_effect = error

        response = client.post("/orders", json={"table_number": "5"})

        assert response.status_code == status_code
        assert response.json() == {
            "error": type(error).__name__,
            "notification": str(error),
        }


@pytest.mark.unit
class TestAdminSession:
    """Test suite for login and logout."""

    def test_login_success(self, client: TestClient, app_state: AppState) -> None:
        response = client.post("/admin/login", json={"username": "admin", "password": "1234"})

        assert response.status_code == 200
        assert response.json() == {"view": "admin_dashboard"}
        assert app_state.view == ViewState.ADMIN_DASHBOARD

    def test_login_failure(self, client: TestClient, app_state: AppState) -> None:
        """Test that wrong credentials keep the login screen."""
        response = client.post("/admin/login", json={"username": "admin", "password": "0000"})

        assert response.status_code == 401
        assert app_state.view == ViewState.ADMIN_LOGIN

    def test_logout(self, client: TestClient, app_state: AppState) -> None:
        app_state.view = ViewState.ADMIN_DASHBOARD

        response = client.post("/admin/logout")

        assert response.status_code == 200
        assert app_state.view == ViewState.ADMIN_LOGIN

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("put", "/admin/items"),
            ("delete", "/admin/items/1"),
            ("post", "/admin/categories"),
            ("get", "/admin/settings"),
        ],
    )
    def test_admin_endpoints_require_credentials(
        self, client: TestClient, method: str, path: str
    ) -> None:
        """Test that admin endpoints reject requests without Basic auth."""
        response = client.request(method, path)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Basic"

    def test_admin_endpoints_reject_wrong_password(self, client: TestClient) -> None:
        response = client.get("/admin/settings", auth=("admin", "wrong"))

        assert response.status_code == 401


@pytest.mark.unit
class TestAdminItemEndpoints:
    """Test suite for menu item administration."""

    def test_upsert_item(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        sample_items: list[MenuItem],
    ) -> None:
        """Test that the payload is passed through and the catalog reloaded."""
        stored = sample_items[1].model_copy(update={"price": Decimal("7.00")})
        mock_catalog_service.upsert_item = AsyncMock(return_value=stored)

        response = client.put(
            "/admin/items",
            json={"id": "2", "name": "Truffle Fries", "price": "7.00"},
            auth=ADMIN,
        )

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("7.00")
        payload = mock_catalog_service.upsert_item.call_args.args[0]
        assert payload.id == "2"
        assert payload.category is None
        mock_catalog_service.fetch_catalog.assert_called_once()

    def test_upsert_item_with_blank_name(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        """Test that a whitespace-only name is reported as a bad request."""
        mock_catalog_service.upsert_item = AsyncMock(
            side_effect=ValueError("Item name must not be empty")
        )

        response = client.put("/admin/items", json={"name": "   ", "price": "1.00"}, auth=ADMIN)

        assert response.status_code == 400
        assert response.json()["detail"] == "Item name must not be empty"
        mock_catalog_service.fetch_catalog.assert_not_called()

    def test_upsert_item_rejects_sub_cent_price(self, client: TestClient) -> None:
        response = client.put(
            "/admin/items", json={"name": "Espresso", "price": "2.125"}, auth=ADMIN
        )

        assert response.status_code == 422

    def test_upsert_item_rejects_negative_price(self, client: TestClient) -> None:
        response = client.put(
            "/admin/items", json={"name": "Free Lunch", "price": "-1"}, auth=ADMIN
        )

        assert response.status_code == 422

    def test_delete_item(
        self, client: TestClient, mock_catalog_service: MagicMock, app_state: AppState
    ) -> None:
        """Test that the item disappears from the cached menu."""
        mock_catalog_service.delete_item = AsyncMock(return_value=None)

        response = client.delete("/admin/items/2", auth=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"notification": "Item deleted"}
        assert [item.id for item in app_state.menu] == ["1", "3"]

    def test_toggle_availability(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        sample_items: list[MenuItem],
    ) -> None:
        toggled = sample_items[2].model_copy(update={"available": True})
        mock_catalog_service.toggle_availability = AsyncMock(return_value=toggled)

        response = client.post("/admin/items/3/toggle-availability", auth=ADMIN)

        assert response.status_code == 200
        assert response.json()["available"] is True

    def test_toggle_unknown_item(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        mock_catalog_service.toggle_availability = AsyncMock(
            side_effect=LookupError("Menu item 'x' does not exist")
        )

        response = client.post("/admin/items/x/toggle-availability", auth=ADMIN)

        assert response.status_code == 404

    def test_store_failure_on_save(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        """Test that a failed write is reported as a notification."""
        mock_catalog_service.upsert_item = AsyncMock(
            side_effect=StoreError("Failed to save menu item 'abc'")
        )

        response = client.put("/admin/items", json={"name": "Soup", "price": "5"}, auth=ADMIN)

        assert response.status_code == 502
        assert response.json()["notification"] == "Failed to save menu item 'abc'"


@pytest.mark.unit
class TestAdminCategoryEndpoints:
    """Test suite for category administration."""

    def test_add_category(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        created = Category(id="cat_new", name="Desserts", sort_order=3)
        mock_catalog_service.add_category = AsyncMock(return_value=created)

        response = client.post("/admin/categories", json={"name": "Desserts"}, auth=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"id": "cat_new", "name": "Desserts", "sort_order": 3}
        mock_catalog_service.add_category.assert_called_once_with("Desserts")

    def test_add_duplicate_category(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        mock_catalog_service.add_category = AsyncMock(
            side_effect=ValueError("Category 'Mains' already exists")
        )

        response = client.post("/admin/categories", json={"name": "Mains"}, auth=ADMIN)

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_rename_category(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        """Test that the notification reports how many items moved."""
        mock_catalog_service.rename_category = AsyncMock(return_value=2)

        response = client.patch(
            "/admin/categories/Mains", json={"new_name": "Entrees"}, auth=ADMIN
        )

        assert response.status_code == 200
        assert response.json() == {"notification": "Renamed successfully (2 items updated)"}
        mock_catalog_service.rename_category.assert_called_once_with("Mains", "Entrees")

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (LookupError("Category 'Soups' does not exist"), 404),
            (ValueError("Category 'Sides' already exists"), 400),
        ],
    )
    def test_rename_category_errors(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        error: Exception,
        status_code: int,
    ) -> None:
        mock_catalog_service.rename_category = AsyncMock(side_effect=error)

        response = client.patch(
            "/admin/categories/Soups", json={"new_name": "Sides"}, auth=ADMIN
        )

        assert response.status_code == status_code

    def test_delete_category(
        self, client: TestClient, mock_catalog_service: MagicMock
    ) -> None:
        mock_catalog_service.delete_category = AsyncMock(return_value=2)

        response = client.delete("/admin/categories/Mains", auth=ADMIN)

        assert response.status_code == 200
        assert response.json() == {
            "notification": "Category deleted (2 items now Uncategorized)"
        }

    def test_reorder_categories(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        app_state: AppState,
    ) -> None:
        """Test that the cached order follows the stored order."""
        reordered = [
            Category(id="cat_3", name="Drinks", sort_order=0),
            Category(id="cat_1", name="Mains", sort_order=1),
            Category(id="cat_2", name="Sides", sort_order=2),
        ]
        mock_catalog_service.reorder_by_ids = AsyncMock(return_value=reordered)

        response = client.put(
            "/admin/categories/order",
            json={"category_ids": ["cat_3", "cat_1", "cat_2"]},
            auth=ADMIN,
        )

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == ["cat_3", "cat_1", "cat_2"]
        assert [c.name for c in app_state.categories] == ["Drinks", "Mains", "Sides"]

    def test_reorder_failure_restores_previous_order(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        app_state: AppState,
    ) -> None:
        """Test that a failed write rolls the cached order back."""
        mock_catalog_service.reorder_by_ids = AsyncMock(
            side_effect=StoreError("Failed to update category order")
        )

        response = client.put(
            "/admin/categories/order",
            json={"category_ids": ["cat_3", "cat_1", "cat_2"]},
            auth=ADMIN,
        )

        assert response.status_code == 502
        assert [c.name for c in app_state.categories] == ["Mains", "Sides", "Drinks"]

    def test_reorder_with_unknown_ids(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        app_state: AppState,
    ) -> None:
        mock_catalog_service.reorder_by_ids = AsyncMock(
            side_effect=ValueError("Category order must list every existing category exactly once")
        )

        response = client.put(
            "/admin/categories/order", json={"category_ids": ["cat_1"]}, auth=ADMIN
        )

        assert response.status_code == 400
        assert [c.id for c in app_state.categories] == ["cat_1", "cat_2", "cat_3"]

    def test_move_category(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        app_state: AppState,
    ) -> None:
        moved = [
            Category(id="cat_2", name="Sides", sort_order=0),
            Category(id="cat_1", name="Mains", sort_order=1),
            Category(id="cat_3", name="Drinks", sort_order=2),
        ]
        mock_catalog_service.move_category = AsyncMock(return_value=moved)

        response = client.post(
            "/admin/categories/cat_2/move", json={"direction": "up"}, auth=ADMIN
        )

        assert response.status_code == 200
        mock_catalog_service.move_category.assert_called_once_with("cat_2", "up")
        assert [c.id for c in app_state.categories] == ["cat_2", "cat_1", "cat_3"]

    def test_move_category_rejects_bad_direction(self, client: TestClient) -> None:
        response = client.post(
            "/admin/categories/cat_2/move", json={"direction": "left"}, auth=ADMIN
        )

        assert response.status_code == 422


@pytest.mark.unit
class TestAdminSettingsEndpoints:
    """Test suite for settings administration."""

    def test_get_settings(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        configured_settings: AppSettings,
    ) -> None:
        mock_catalog_service.get_settings = AsyncMock(return_value=configured_settings)

        response = client.get("/admin/settings", auth=ADMIN)

        assert response.status_code == 200
        assert response.json()["telegram_chat_id"] == "-100123456789"

    def test_save_settings(
        self,
        client: TestClient,
        mock_catalog_service: MagicMock,
        app_state: AppState,
    ) -> None:
        """Test that saved settings replace the cached ones."""
        updated = AppSettings(
            restaurant_name="Chez Nous",
            currency="€",
            telegram_bot_token="999:XYZ",
            telegram_chat_id="42",
        )
        mock_catalog_service.save_settings = AsyncMock(return_value=updated)

        response = client.put("/admin/settings", json=updated.model_dump(), auth=ADMIN)

        assert response.status_code == 200
        assert response.json()["restaurant_name"] == "Chez Nous"
        assert app_state.settings == updated
