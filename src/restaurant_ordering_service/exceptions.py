"""Error taxonomy for the ordering service.

Every error raised here is caught at the HTTP action boundary and turned into
a user-visible notification. None of them are fatal to the process.
"""


class OrderingServiceError(Exception):
    """Base class for errors surfaced to the waiter or admin as a notification."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreError(OrderingServiceError):
    """A catalog or settings operation against the backing store failed."""

    status_code = 502


class ConfigurationError(OrderingServiceError):
    """An order was submitted before the notification settings were configured."""

    status_code = 400


class DeliveryError(OrderingServiceError):
    """The notification endpoint rejected the order message."""

    status_code = 502


class ConnectivityError(OrderingServiceError):
    """The notification endpoint could not be reached at all."""

    status_code = 503
