"""FastAPI application for the waiter and admin endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, Field

from restaurant_ordering_service.auth.api_dependencies import get_admin_from_credentials
from restaurant_ordering_service.auth.credential_provider import CredentialProvider
from restaurant_ordering_service.exceptions import OrderingServiceError, StoreError
from restaurant_ordering_service.models.app_state import AppState, ViewState
from restaurant_ordering_service.models.cart_models import CartSummary
from restaurant_ordering_service.models.menu_models import (
    AppSettings,
    Category,
    MenuItem,
    MenuItemInput,
)
from restaurant_ordering_service.services.catalog_service import CatalogService
from restaurant_ordering_service.services.order_service import OrderService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class CatalogResponse(BaseModel):
    """Menu items, categories and settings as currently cached."""

    items: list[MenuItem]
    categories: list[Category]
    settings: AppSettings


class MenuResponse(BaseModel):
    """Menu items visible under the current filters."""

    category: str
    search: str
    items: list[MenuItem]


class AddToCartRequest(BaseModel):
    item_id: str


class AdjustQuantityRequest(BaseModel):
    delta: int


class PlaceOrderRequest(BaseModel):
    table_number: str = Field(..., min_length=1)


class OrderResponse(BaseModel):
    """Response model for a delivered order."""

    table_number: str
    item_count: int
    total: Decimal
    sent_at: datetime
    notification: str


class LoginRequest(BaseModel):
    username: str
    password: str


class ViewResponse(BaseModel):
    view: ViewState


class AddCategoryRequest(BaseModel):
    name: str


class RenameCategoryRequest(BaseModel):
    new_name: str


class ReorderCategoriesRequest(BaseModel):
    category_ids: list[str]


class MoveCategoryRequest(BaseModel):
    direction: Literal["up", "down"]


class NotificationResponse(BaseModel):
    """Short confirmation shown to the user after an action."""

    notification: str


def create_app(
    catalog_service: CatalogService,
    order_service: OrderService,
    credential_provider: CredentialProvider,
    state: AppState | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        catalog_service: Service for catalog and settings administration
        order_service: Service for placing orders
        credential_provider: Verifies admin credentials
        state: Initial application state (a fresh one is created if omitted)

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await refresh_catalog()
        except StoreError as e:
            logger.error(f"Failed to load restaurant data at startup: {e.message}")
        yield

    app = FastAPI(
        title="Restaurant Ordering Service",
        description="Waiter ordering and admin catalog management API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Store services and state in app state for access in route handlers
    app.state.catalog_service = catalog_service
    app.state.order_service = order_service
    app.state.credential_provider = credential_provider
    app.state.app_state = state or AppState()

    basic_auth = HTTPBasic(auto_error=False)

    @app.exception_handler(OrderingServiceError)
    async def ordering_error_handler(request: Request, exc: OrderingServiceError) -> JSONResponse:
        """Turn service errors into a notification the front-end can display."""
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": type(exc).__name__, "notification": exc.message},
        )

    def current_state() -> AppState:
        app_state: AppState = app.state.app_state
        return app_state

    def require_admin(credentials: HTTPBasicCredentials | None = Depends(basic_auth)) -> str:
        """Dependency to validate admin credentials."""
        return get_admin_from_credentials(credentials, app.state.credential_provider)

    async def refresh_catalog() -> AppState:
        snapshot = await app.state.catalog_service.fetch_catalog()
        app_state = current_state()
        app_state.apply_catalog(snapshot)
        return app_state

    async def ensure_loaded() -> AppState:
        app_state = current_state()
        if app_state.is_loading:
            await refresh_catalog()
        return app_state

    def catalog_response(app_state: AppState) -> CatalogResponse:
        return CatalogResponse(
            items=app_state.menu,
            categories=app_state.categories,
            settings=app_state.settings,
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    # --- Waiter ---

    @app.get("/catalog", response_model=CatalogResponse, tags=["Menu"])
    async def load_catalog() -> CatalogResponse:
        """Reload menu items, categories and settings from the store."""
        return catalog_response(await refresh_catalog())

    @app.get("/menu", response_model=MenuResponse, tags=["Menu"])
    async def get_menu(category: str | None = None, search: str | None = None) -> MenuResponse:
        """Return menu items filtered by category and name search.

        Args:
            category: Category to show, or "All"; keeps the previous filter if omitted
            search: Case-insensitive name search; keeps the previous search if omitted
        """
        app_state = await ensure_loaded()
        if category is not None:
            app_state.selected_category = category
        if search is not None:
            app_state.search_query = search

        return MenuResponse(
            category=app_state.selected_category,
            search=app_state.search_query,
            items=app_state.visible_items(),
        )

    @app.get("/cart", response_model=CartSummary, tags=["Cart"])
    async def get_cart() -> CartSummary:
        return current_state().cart.summary()

    @app.post("/cart/items", response_model=CartSummary, tags=["Cart"])
    async def add_to_cart(body: AddToCartRequest) -> CartSummary:
        """Add one portion of a menu item to the cart.

        Raises:
            HTTPException: 404 if the item is unknown, 409 if it is sold out
        """
        app_state = await ensure_loaded()
        item = app_state.find_item(body.item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Menu item '{body.item_id}' not found")
        if not item.available:
            raise HTTPException(status_code=409, detail=f"{item.name} is sold out")

        app_state.cart.add(item)
        logger.info(f"Added {item.name} to cart")
        return app_state.cart.summary()

    @app.patch("/cart/items/{item_id}", response_model=CartSummary, tags=["Cart"])
    async def adjust_cart_quantity(item_id: str, body: AdjustQuantityRequest) -> CartSummary:
        """Change the quantity of a cart entry; reaching zero removes it."""
        app_state = current_state()
        app_state.cart.adjust_quantity(item_id, body.delta)
        return app_state.cart.summary()

    @app.delete("/cart", response_model=CartSummary, tags=["Cart"])
    async def clear_cart() -> CartSummary:
        app_state = current_state()
        app_state.cart.clear()
        return app_state.cart.summary()

    @app.post("/orders", response_model=OrderResponse, tags=["Orders"])
    async def place_order(body: PlaceOrderRequest) -> OrderResponse:
        """Send the cart to the kitchen for a table.

        On failure the cart is kept so the waiter can retry.

        Raises:
            HTTPException: 400 if the cart is empty or the table number is blank
        """
        app_state = await ensure_loaded()
        try:
            receipt = await app.state.order_service.place_order(
                app_state.cart, body.table_number, app_state.settings
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return OrderResponse(
            table_number=receipt.table_number,
            item_count=receipt.item_count,
            total=receipt.total,
            sent_at=receipt.sent_at,
            notification="Order Sent to Kitchen!",
        )

    # --- Admin ---

    @app.post("/admin/login", response_model=ViewResponse, tags=["Admin"])
    async def admin_login(body: LoginRequest) -> ViewResponse:
        """Check admin credentials and switch to the dashboard.

        Raises:
            HTTPException: 401 if the credentials are wrong
        """
        app_state = current_state()
        if not app.state.credential_provider.verify(body.username, body.password):
            app_state.view = ViewState.ADMIN_LOGIN
            raise HTTPException(status_code=401, detail="Invalid credentials")

        app_state.view = ViewState.ADMIN_DASHBOARD
        return ViewResponse(view=app_state.view)

    @app.post("/admin/logout", response_model=ViewResponse, tags=["Admin"])
    async def admin_logout() -> ViewResponse:
        app_state = current_state()
        app_state.view = ViewState.ADMIN_LOGIN
        return ViewResponse(view=app_state.view)

    @app.put("/admin/items", response_model=MenuItem, tags=["Admin"])
    async def upsert_item(
        body: MenuItemInput,
        _admin: str = Depends(require_admin),
    ) -> MenuItem:
        """Create a menu item, or replace the one with the same id.

        Raises:
            HTTPException: 400 if the name is blank
        """
        try:
            stored: MenuItem = await app.state.catalog_service.upsert_item(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        await refresh_catalog()
        return stored

    @app.delete("/admin/items/{item_id}", response_model=NotificationResponse, tags=["Admin"])
    async def delete_item(
        item_id: str,
        _admin: str = Depends(require_admin),
    ) -> NotificationResponse:
        await app.state.catalog_service.delete_item(item_id)
        app_state = current_state()
        app_state.menu = [item for item in app_state.menu if item.id != item_id]
        return NotificationResponse(notification="Item deleted")

    @app.post(
        "/admin/items/{item_id}/toggle-availability", response_model=MenuItem, tags=["Admin"]
    )
    async def toggle_availability(
        item_id: str,
        _admin: str = Depends(require_admin),
    ) -> MenuItem:
        """Flip an item between available and sold out.

        Raises:
            HTTPException: 404 if the item does not exist
        """
        try:
            item: MenuItem = await app.state.catalog_service.toggle_availability(item_id)
        except LookupError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        await refresh_catalog()
        return item

    @app.post("/admin/categories", response_model=Category, tags=["Admin"])
    async def add_category(
        body: AddCategoryRequest,
        _admin: str = Depends(require_admin),
    ) -> Category:
        try:
            category: Category = await app.state.catalog_service.add_category(body.name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        await refresh_catalog()
        return category

    @app.patch("/admin/categories/{name}", response_model=NotificationResponse, tags=["Admin"])
    async def rename_category(
        name: str,
        body: RenameCategoryRequest,
        _admin: str = Depends(require_admin),
    ) -> NotificationResponse:
        """Rename a category; items in it follow the new name.

        Raises:
            HTTPException: 404 if the category does not exist, 400 if the new name is invalid
        """
        try:
            moved = await app.state.catalog_service.rename_category(name, body.new_name)
        except LookupError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        await refresh_catalog()
        return NotificationResponse(notification=f"Renamed successfully ({moved} items updated)")

    @app.delete("/admin/categories/{name}", response_model=NotificationResponse, tags=["Admin"])
    async def delete_category(
        name: str,
        _admin: str = Depends(require_admin),
    ) -> NotificationResponse:
        """Delete a category; its items become Uncategorized."""
        reassigned = await app.state.catalog_service.delete_category(name)
        await refresh_catalog()
        return NotificationResponse(
            notification=f"Category deleted ({reassigned} items now Uncategorized)"
        )

    @app.put("/admin/categories/order", response_model=list[Category], tags=["Admin"])
    async def reorder_categories(
        body: ReorderCategoriesRequest,
        _admin: str = Depends(require_admin),
    ) -> list[Category]:
        """Persist a new category display order given every category id in order.

        The cached order is updated before the store is written and restored
        if the write fails.

        Raises:
            HTTPException: 400 if the ids are not a permutation of the categories
        """
        app_state = await ensure_loaded()
        previous = app_state.categories
        by_id = {category.id: category for category in previous}
        if sorted(body.category_ids) == sorted(by_id):
            app_state.categories = [
                category.model_copy(update={"sort_order": index})
                for index, category in enumerate(by_id[cid] for cid in body.category_ids)
            ]

        try:
            reordered: list[Category] = await app.state.catalog_service.reorder_by_ids(
                body.category_ids
            )
        except ValueError as e:
            app_state.categories = previous
            raise HTTPException(status_code=400, detail=str(e)) from e
        except StoreError:
            app_state.categories = previous
            raise

        app_state.categories = reordered
        return reordered

    @app.post(
        "/admin/categories/{category_id}/move", response_model=list[Category], tags=["Admin"]
    )
    async def move_category(
        category_id: str,
        body: MoveCategoryRequest,
        _admin: str = Depends(require_admin),
    ) -> list[Category]:
        """Move a category one position up or down."""
        try:
            categories: list[Category] = await app.state.catalog_service.move_category(
                category_id, body.direction
            )
        except LookupError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        current_state().categories = categories
        return categories

    @app.get("/admin/settings", response_model=AppSettings, tags=["Admin"])
    async def get_settings(_admin: str = Depends(require_admin)) -> AppSettings:
        settings: AppSettings = await app.state.catalog_service.get_settings()
        current_state().settings = settings
        return settings

    @app.put("/admin/settings", response_model=AppSettings, tags=["Admin"])
    async def save_settings(
        body: AppSettings,
        _admin: str = Depends(require_admin),
    ) -> AppSettings:
        """Replace the restaurant settings as a whole."""
        saved: AppSettings = await app.state.catalog_service.save_settings(body)
        current_state().settings = saved
        return saved

    return app
