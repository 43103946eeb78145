"""OpenTelemetry and logging setup for the ordering service."""

import logging
import os
import re
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "ordering-svc"
DISTRIBUTION_NAME = "restaurant-ordering-service"

# Health checks and docs would otherwise dominate the request traces
EXCLUDED_URLS = "health,docs,openapi.json"

# Telegram puts the bot token in the request path
BOT_TOKEN_PATTERN = re.compile(r"/bot[^/]+/")


def redact_bot_token(url: str) -> str:
    """Hide the Telegram bot token in a Bot API URL."""
    return BOT_TOKEN_PATTERN.sub("/bot<redacted>/", url)


async def redact_telegram_request(span: Span, request: Any) -> None:
    """httpx request hook that keeps bot tokens out of exported spans."""
    if span is None or not span.is_recording():
        return

    url = redact_bot_token(str(request.url))
    span.set_attribute("url.full", url)
    span.set_attribute("http.url", url)


def service_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def get_service_resource() -> Resource:
    """Describe this deployment of the ordering service.

    Besides name, version and environment, the resource records the AWS
    region and the DynamoDB tables, so traces from several restaurants'
    deployments can be told apart.
    """
    attributes = {
        "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
        "service.version": service_version(),
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        "cloud.region": os.getenv("AWS_REGION", "us-east-1"),
        "ordering.tables.menu_items": os.getenv(
            "DYNAMODB_MENU_ITEMS_TABLE", "restaurant-menu-items"
        ),
        "ordering.tables.categories": os.getenv(
            "DYNAMODB_CATEGORIES_TABLE", "restaurant-categories"
        ),
        "ordering.tables.settings": os.getenv("DYNAMODB_SETTINGS_TABLE", "restaurant-settings"),
    }

    function_name = os.getenv("AWS_LAMBDA_FUNCTION_NAME")
    if function_name:
        attributes["faas.name"] = function_name

    return Resource.create(attributes)


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Initialize tracing, metrics and instrumentation.

    Outgoing Telegram calls are traced with the bot token removed from the
    URL; DynamoDB calls are traced through botocore.

    Args:
        app: Optional FastAPI application to instrument
        enable_exporters: Whether to export over OTLP (always off when ENVIRONMENT=test)
    """
    if os.getenv("ENVIRONMENT", "development") == "test":
        enable_exporters = False

    resource = get_service_resource()
    tracer_provider = TracerProvider(resource=resource)
    metric_readers = []

    if enable_exporters:
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318")
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
        )
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
                export_interval_millis=60000,
            )
        )
        logger.info(f"OpenTelemetry exporting to {endpoint}")

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))

    HTTPXClientInstrumentor().instrument(async_request_hook=redact_telegram_request)
    BotocoreInstrumentor().instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)

    logger.info("OpenTelemetry observability configured")


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_str = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_str, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level"},
        static_fields={"service": SERVICE_NAME},
        timestamp=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Full request URLs include the bot token
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    logger.info(f"Structured JSON logging configured at {level_str} level")
