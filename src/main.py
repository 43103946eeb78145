"""Main application entry point for the restaurant ordering service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_ordering_service.adapters.telegram_adapter import (
    DEFAULT_API_BASE_URL,
    TelegramAdapter,
)
from restaurant_ordering_service.auth.credential_provider import (
    CredentialProvider,
    StaticCredentialProvider,
)
from restaurant_ordering_service.handlers.api_handler import create_app
from restaurant_ordering_service.observability import configure_logging, setup_observability
from restaurant_ordering_service.repositories.catalog_repositories import (
    CategoryRepository,
    MenuItemRepository,
    SettingsRepository,
)
from restaurant_ordering_service.services.catalog_service import CatalogService
from restaurant_ordering_service.services.order_service import OrderService

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB accepts any credentials
        access_key = os.getenv("AWS_ACCESS_KEY_ID", "dummy")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY", "dummy")
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        return boto3.resource("dynamodb", region_name=region)


def create_credential_provider() -> CredentialProvider:
    """Create the admin credential provider from environment variables.

    Returns:
        CredentialProvider for the admin dashboard
    """
    username = os.getenv("ADMIN_USERNAME")
    password = os.getenv("ADMIN_PASSWORD")

    if not username or not password:
        logger.warning(
            "ADMIN_USERNAME/ADMIN_PASSWORD not configured - using development credentials"
        )
        username, password = "admin", "1234"

    return StaticCredentialProvider(username=username, password=password)


def create_catalog_service(dynamodb_resource: Any) -> CatalogService:
    """Create the catalog service with its DynamoDB repositories.

    Args:
        dynamodb_resource: Boto3 DynamoDB resource

    Returns:
        CatalogService backed by the configured tables
    """
    items_table = os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "restaurant-menu-items")
    categories_table = os.getenv("DYNAMODB_CATEGORIES_TABLE", "restaurant-categories")
    settings_table = os.getenv("DYNAMODB_SETTINGS_TABLE", "restaurant-settings")

    menu_item_repository = MenuItemRepository(
        dynamodb_resource=dynamodb_resource, table_name=items_table
    )
    category_repository = CategoryRepository(
        dynamodb_resource=dynamodb_resource,
        table_name=categories_table,
        menu_item_repository=menu_item_repository,
    )
    settings_repository = SettingsRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings_table
    )

    logger.info(
        f"Repositories configured - items: {items_table}, "
        f"categories: {categories_table}, settings: {settings_table}"
    )

    return CatalogService(
        menu_item_repository=menu_item_repository,
        category_repository=category_repository,
        settings_repository=settings_repository,
    )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB resource and repositories
    3. Creates the catalog and order services
    4. Configures the admin credential provider
    5. Creates the FastAPI app
    6. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Initializing restaurant ordering service...")

    dynamodb_resource = get_dynamodb_resource()
    catalog_service = create_catalog_service(dynamodb_resource)

    telegram_url = os.getenv("TELEGRAM_API_BASE_URL", DEFAULT_API_BASE_URL)
    order_service = OrderService(notification_channel=TelegramAdapter(api_base_url=telegram_url))

    logger.info(f"Order notifications go to {telegram_url}")

    app = create_app(
        catalog_service=catalog_service,
        order_service=order_service,
        credential_provider=create_credential_provider(),
    )

    setup_observability(app)

    logger.info("Restaurant ordering service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
