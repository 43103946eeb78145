"""Custom metrics for the ordering service."""

from opentelemetry import metrics

meter = metrics.get_meter("ordering-svc")

orders_sent_counter = meter.create_counter(
    name="orders_sent_total",
    description="Total number of orders delivered to the kitchen by channel",
    unit="1",
)

order_items_counter = meter.create_counter(
    name="order_items_total",
    description="Total number of portions in delivered orders by channel",
    unit="1",
)

orders_failed_counter = meter.create_counter(
    name="orders_failed_total",
    description="Total number of orders that could not be delivered by error type",
    unit="1",
)

notification_duration_histogram = meter.create_histogram(
    name="notification_duration_seconds",
    description="Duration of kitchen notification calls by channel",
    unit="s",
)

catalog_mutations_counter = meter.create_counter(
    name="catalog_mutations_total",
    description="Total number of admin catalog changes by operation",
    unit="1",
)


def record_order_sent(channel: str, item_count: int) -> None:
    """Record a delivered order.

    Args:
        channel: The notification channel used (e.g., "telegram")
        item_count: Number of portions in the order
    """
    orders_sent_counter.add(1, {"channel": channel})
    order_items_counter.add(item_count, {"channel": channel})


def record_order_failure(channel: str, error_type: str) -> None:
    """Record an order that failed to reach the kitchen.

    Args:
        channel: The notification channel used
        error_type: Exception class name of the failure
    """
    orders_failed_counter.add(1, {"channel": channel, "error_type": error_type})


def record_notification_duration(channel: str, duration_seconds: float) -> None:
    notification_duration_histogram.record(duration_seconds, {"channel": channel})


def record_catalog_mutation(operation: str) -> None:
    """Record an admin change to items, categories or settings.

    Args:
        operation: Operation name (e.g., "upsert_item", "rename_category")
    """
    catalog_mutations_counter.add(1, {"operation": operation})
