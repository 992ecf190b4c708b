"""
Structured logging with correlation IDs.
"""
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import Request

# Request correlation context
request_id: ContextVar[str] = ContextVar('request_id', default="")
request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})

class TruncatingProcessor:
    """Processor to keep log fields short."""

    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def __call__(self, logger, method_name, event_dict):
        if 'message' in event_dict:
            event_dict['message'] = str(event_dict['message'])[:self.max_length]

        if 'error' in event_dict:
            event_dict['error'] = str(event_dict['error'])[:self.max_length]

        return event_dict

class CorrelationProcessor:
    """Add correlation ID and request context to all logs."""

    def __call__(self, logger, method_name, event_dict):
        correlation_id = request_id.get("")
        if correlation_id:
            event_dict['correlation_id'] = correlation_id

        context = request_context.get({})
        if context:
            for key, value in context.items():
                event_dict.setdefault(key, value)

        return event_dict

def setup_logging(debug: bool = False, max_log_length: int = 200, level: str = "INFO"):
    """Configure structured logging for the application."""

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        CorrelationProcessor(),
        TruncatingProcessor(max_length=max_log_length),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )

def get_logger(name: str = __name__):
    """Get a structured logger instance."""
    return structlog.get_logger(name)

def set_correlation_id(correlation_id: str):
    """Set correlation ID for current request context."""
    request_id.set(correlation_id)

def set_request_context(endpoint: Optional[str] = None, method: Optional[str] = None, **kwargs):
    """Set request context for the current task."""
    context = {}
    if endpoint:
        context['endpoint'] = endpoint
    if method:
        context['method'] = method
    context.update(kwargs)
    request_context.set(context)

def clear_context():
    """Clear correlation ID and request context."""
    request_id.set("")
    request_context.set({})

class LoggingMiddleware:
    """FastAPI middleware for request logging with correlation IDs."""

    def __init__(self, log_requests: bool = False, log_responses: bool = False,
                 slow_threshold: float = 2.0):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.slow_threshold = slow_threshold
        self.logger = get_logger("middleware")

    async def __call__(self, request: Request, call_next):
        correlation_id = str(uuid.uuid4())[:8]
        set_correlation_id(correlation_id)

        set_request_context(
            endpoint=request.url.path,
            method=request.method,
        )

        # Add to request state for downstream use
        request.state.correlation_id = correlation_id

        start_time = datetime.now(timezone.utc)

        if self.log_requests:
            self.logger.info(
                "request_start",
                path=request.url.path,
                method=request.method,
                query_params=dict(request.query_params)
            )

        try:
            response = await call_next(request)

            duration = (datetime.now(timezone.utc) - start_time).total_seconds()
            slow = duration > self.slow_threshold

            if self.log_responses or slow or response.status_code >= 400:
                self.logger.info(
                    "request_complete",
                    status_code=response.status_code,
                    duration=round(duration, 3),
                    slow=slow
                )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            duration = (datetime.now(timezone.utc) - start_time).total_seconds()
            self.logger.error(
                "request_error",
                error=str(e),
                duration=round(duration, 3),
                error_type=type(e).__name__
            )
            raise
        finally:
            clear_context()
