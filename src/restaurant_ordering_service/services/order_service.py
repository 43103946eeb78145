"""Order service for submitting a table's cart to the kitchen."""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from restaurant_ordering_service.adapters.base_adapter import NotificationChannel
from restaurant_ordering_service.exceptions import OrderingServiceError
from restaurant_ordering_service.models.cart_models import Cart
from restaurant_ordering_service.models.menu_models import AppSettings
from restaurant_ordering_service.observability import traced
from restaurant_ordering_service.observability.metrics import (
    record_notification_duration,
    record_order_failure,
    record_order_sent,
)

logger = logging.getLogger(__name__)


@dataclass
class OrderReceipt:
    """Result of a successfully placed order.

    Attributes:
        table_number: Table the order was placed for
        item_count: Number of portions ordered
        total: Grand total of the order
        sent_at: When the kitchen acknowledged the order
    """

    table_number: str
    item_count: int
    total: Decimal
    sent_at: datetime


class OrderService:
    """Service for placing table orders.

    An order is sent through the notification channel exactly once. The sent
    portions leave the cart only after the channel acknowledges them, so a
    failed order can be retried without re-entering anything, and items added
    while the message is in flight stay for the next order.
    """

    def __init__(self, notification_channel: NotificationChannel) -> None:
        """Initialize the OrderService.

        Args:
            notification_channel: Channel that alerts kitchen staff
        """
        self.notification_channel = notification_channel

    @traced(
        "place_order",
        component="order",
        result_attributes=lambda receipt: {
            "order.table_number": receipt.table_number,
            "order.item_count": receipt.item_count,
        },
    )
    async def place_order(
        self, cart: Cart, table_number: str, settings: AppSettings
    ) -> OrderReceipt:
        """Send the cart to the kitchen and remove the sent portions on success.

        Args:
            cart: The waiter's cart
            table_number: Table the order is for
            settings: Current restaurant settings

        Returns:
            OrderReceipt describing the delivered order

        Raises:
            ValueError: If the cart is empty or no table number is given
            OrderingServiceError: If the notification could not be delivered
        """
        table_number = table_number.strip()
        if not table_number:
            raise ValueError("Table number is required")
        if cart.is_empty:
            raise ValueError("Cannot place an empty order")

        channel = self.notification_channel.channel_name
        items = cart.items
        total = cart.total_price
        item_count = cart.total_items

        started = time.perf_counter()
        try:
            await self.notification_channel.send_order(items, table_number, total, settings)
        except OrderingServiceError as e:
            record_order_failure(channel, type(e).__name__)
            logger.error(f"Order for table {table_number} failed: {e.message}")
            raise
        finally:
            record_notification_duration(channel, time.perf_counter() - started)

        cart.discard(items)
        record_order_sent(channel, item_count)
        logger.info(f"Order for table {table_number} sent: {item_count} items, total {total}")

        return OrderReceipt(
            table_number=table_number,
            item_count=item_count,
            total=total,
            sent_at=datetime.now(UTC),
        )
