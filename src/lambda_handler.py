"""AWS Lambda handler for API Gateway requests.

The FastAPI application is wrapped with the Mangum ASGI adapter. Both are
created once per Lambda container and reused across warm invocations.

The cart, filters and view live in the container's AppState, so the function
must run with reserved concurrency 1; a second warm container would hold a
different cart.
"""

import logging
import os
from typing import Any

from fastapi import FastAPI
from mangum import Mangum

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_fastapi_app: FastAPI | None = None
_mangum_handler: Mangum | None = None


def get_mangum_handler() -> Mangum:
    """Create or retrieve the cached Mangum adapter around the FastAPI app.

    Returns:
        Mangum handler for API Gateway events
    """
    global _fastapi_app, _mangum_handler

    if _mangum_handler is not None:
        return _mangum_handler

    from main import create_application

    _fastapi_app = create_application()
    # Lifespan is off, so the catalog is loaded on the first waiter request
    _mangum_handler = Mangum(_fastapi_app, lifespan="off")
    return _mangum_handler


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point for API Gateway requests.

    Args:
        event: The API Gateway event payload
        context: The Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {context.aws_request_id}")

    try:
        result: dict[str, Any] = get_mangum_handler()(event, context)
        return result
    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "body": f"Internal server error: {str(e)}",
        }


# Warm the container during cold start (skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    get_mangum_handler()
