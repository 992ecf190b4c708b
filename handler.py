#!/usr/bin/env python3
"""
AWS Lambda entrypoint for the booking API.
Uses Mangum to convert Lambda events to ASGI calls on the FastAPI app.
"""
import logging

from mangum import Mangum

from app.main import app

logger = logging.getLogger(__name__)

# Lifespan events are not delivered by Lambda; pooled connections die with the container
asgi_handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    """AWS Lambda handler that wraps the FastAPI application."""
    logger.info("Processing Lambda event: %s %s", event.get("httpMethod", "UNKNOWN"), event.get("path", "/"))
    response = asgi_handler(event, context)
    logger.info("Lambda response status: %s", response.get("statusCode", "unknown"))
    return response


# For local testing compatibility
if __name__ == "__main__":
    print("Lambda handler ready for deployment")
    print("Handler: handler.lambda_handler")
