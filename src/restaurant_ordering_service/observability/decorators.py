"""OpenTelemetry tracing decorators for service operations."""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, Literal, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from restaurant_ordering_service.observability.config import SERVICE_NAME

R = TypeVar("R")

Component = Literal["catalog", "order"]


def traced(
    span_name: str | None = None,
    component: Component = "catalog",
    result_attributes: Callable[[Any], dict[str, Any]] | None = None,
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """Decorator that runs an async service operation inside a span.

    Every span carries ``ordering.component`` and ``ordering.operation`` so
    catalog administration and order delivery can be told apart in traces.
    Failures mark the span as errored with the exception class, which for
    the ordering errors is the notification kind shown to the user.

    Args:
        span_name: Name for the span (defaults to the function name)
        component: Which side of the service the operation belongs to
        result_attributes: Builds extra span attributes from the return value

    Example:
        @traced("rename_category", result_attributes=lambda moved: {"catalog.items_changed": moved})
        async def rename_category(self, old_name: str, new_name: str) -> int:
            ...
    """

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        name = span_name or func.__name__
        tracer = trace.get_tracer(SERVICE_NAME)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                span.set_attribute("ordering.component", component)
                span.set_attribute("ordering.operation", func.__name__)

                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("error.type", type(e).__name__)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

                if result_attributes is not None:
                    span.set_attributes(result_attributes(result))
                return result

        return wrapper

    return decorator
