"""Telegram notification channel.

This adapter formats orders as Markdown messages and delivers them to the
kitchen chat via the Telegram Bot API ``sendMessage`` method.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import httpx

from restaurant_ordering_service.adapters.base_adapter import NotificationChannel
from restaurant_ordering_service.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DeliveryError,
)
from restaurant_ordering_service.models.cart_models import CENTS, CartItem
from restaurant_ordering_service.models.menu_models import AppSettings

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.telegram.org"


def format_money(currency: str, amount: Decimal) -> str:
    return f"{currency}{amount.quantize(CENTS, rounding=ROUND_HALF_UP)}"


class TelegramAdapter(NotificationChannel):
    """Adapter for the Telegram Bot API.

    The bot token and chat id come from the restaurant settings at call time,
    so an admin can change them without restarting the service.
    """

    def __init__(self, api_base_url: str = DEFAULT_API_BASE_URL) -> None:
        """Initialize Telegram adapter.

        Args:
            api_base_url: Bot API base URL (overridable for a proxy or local stub)
        """
        super().__init__("telegram")
        self.api_base_url = api_base_url.rstrip("/")

    def format_order(
        self,
        items: list[CartItem],
        table_number: str,
        total: Decimal,
        settings: AppSettings,
        placed_at: datetime | None = None,
    ) -> str:
        """Render an order in Telegram Markdown.

        The message has a header, the timestamp, the table number, one line
        per cart entry with its line total, and the grand total.
        """
        timestamp = (placed_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

        item_lines = "\n".join(
            f"- {item.name} (x{item.quantity}) - {format_money(settings.currency, item.line_total)}"
            for item in items
        )

        return (
            "🔔 *NEW ORDER* 🔔\n"
            f"📅 {timestamp}\n"
            f"🍽 *Table No:* {table_number}\n"
            "\n"
            "*Order Details:*\n"
            f"{item_lines}\n"
            "\n"
            "-------------------------\n"
            f"💰 *Total:* {format_money(settings.currency, total)}"
        )

    async def send_order(
        self,
        items: list[CartItem],
        table_number: str,
        total: Decimal,
        settings: AppSettings,
    ) -> bool:
        """Post the order to the configured chat.

        Raises:
            ConfigurationError: If the bot token or chat id is missing
            DeliveryError: If Telegram answers with a non-success status
            ConnectivityError: If Telegram cannot be reached
        """
        if not settings.telegram_bot_token or not settings.telegram_chat_id:
            logger.warning("Telegram settings missing, order not sent")
            raise ConfigurationError("Admin has not configured Telegram Bot settings.")

        url = f"{self.api_base_url}/bot{settings.telegram_bot_token}/sendMessage"
        payload = {
            "chat_id": settings.telegram_chat_id,
            "text": self.format_order(items, table_number, total, settings),
            "parse_mode": "Markdown",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Telegram network error: {e}")
            raise ConnectivityError(
                "Connection failed. Note: the Telegram API may be blocked by cross-origin "
                "or network restrictions. Try using a proxy or checking your internet."
            ) from e

        if not response.is_success:
            description = self._error_description(response)
            logger.error(f"Telegram API error {response.status_code}: {description}")
            raise DeliveryError(f"Telegram Error: {description}")

        logger.info(f"Order for table {table_number} delivered to Telegram")
        return True

    @staticmethod
    def _error_description(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return "Unknown error"

        if isinstance(data, dict) and data.get("description"):
            return str(data["description"])
        return "Unknown error"
