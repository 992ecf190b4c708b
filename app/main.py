# app/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it
from dotenv import load_dotenv
load_dotenv()

import sqlalchemy as sa
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import (
    OPAQUE_KINDS,
    BookingError,
    InvalidRequestError,
    error_aggregator,
    log_error,
)
from app.core.logging import setup_logging, LoggingMiddleware, get_logger

# Set up structured logging
setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)

from app.api.deps import get_session_factory
from app.api.routes.appointments import router as appointments_router
from app.api.routes.users import router as users_router
from app.db.session import engine

app = FastAPI(title="Appointment Booking Service", description="Users and conflict-free appointments")

app.middleware("http")(
    LoggingMiddleware(
        log_requests=settings.LOG_REQUESTS,
        log_responses=settings.LOG_RESPONSES,
        slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
    )
)

# -------- Error mapping --------
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.kind in OPAQUE_KINDS:
        log_error(exc, {"endpoint": request.url.path, "method": request.method})
    else:
        logger.info("request_rejected", kind=exc.kind.value, status_code=exc.status_code)
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = InvalidRequestError(details={"errors": jsonable_encoder(exc.errors())})
    logger.info("request_rejected", kind=error.kind.value, status_code=error.status_code)
    return JSONResponse({"error": error.to_dict()}, status_code=error.status_code)

# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}

@app.get("/readyz", include_in_schema=False)
async def readyz(session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    async with session_factory() as db:
        await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}

@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Internal error summary for monitoring."""
    return {"status": "healthy", "errors": error_aggregator.get_error_summary()}

# -------- Include routers --------
app.include_router(users_router, prefix=settings.API_PREFIX)
app.include_router(appointments_router, prefix=settings.API_PREFIX)

# -------- Application shutdown --------
@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled connections on shutdown"""
    logger.info("application_shutdown")
    await engine.dispose()
