"""Base adapter for kitchen notification channels.

This module defines the abstract base class that all notification channels
must implement. A channel reports failure by raising one of the ordering
service errors so the caller can tell a misconfiguration from a rejected
message or an unreachable endpoint.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal

from restaurant_ordering_service.models.cart_models import CartItem
from restaurant_ordering_service.models.menu_models import AppSettings


class NotificationChannel(ABC):
    """Abstract base class for channels that alert kitchen staff of new orders.

    The error contract is:
    - ConfigurationError when the channel is not configured (no request made)
    - DeliveryError when the remote endpoint rejects the message
    - ConnectivityError when the remote endpoint cannot be reached
    """

    def __init__(self, channel_name: str) -> None:
        """Initialize the notification channel.

        Args:
            channel_name: Name of the channel (e.g., 'telegram')
        """
        self.channel_name = channel_name

    @abstractmethod
    def format_order(
        self,
        items: list[CartItem],
        table_number: str,
        total: Decimal,
        settings: AppSettings,
        placed_at: datetime | None = None,
    ) -> str:
        """Render an order as a human-readable message.

        Args:
            items: Cart entries being ordered
            table_number: Table the order belongs to
            total: Grand total of the order
            settings: Restaurant settings (currency symbol)
            placed_at: Order timestamp; defaults to now

        Returns:
            str: Message body ready to send
        """

    @abstractmethod
    async def send_order(
        self,
        items: list[CartItem],
        table_number: str,
        total: Decimal,
        settings: AppSettings,
    ) -> bool:
        """Deliver an order to the kitchen in exactly one attempt.

        Args:
            items: Cart entries being ordered
            table_number: Table the order belongs to
            total: Grand total of the order
            settings: Restaurant settings holding the channel credentials

        Returns:
            bool: True once the remote endpoint acknowledged the message
        """
