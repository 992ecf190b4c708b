# app/utils/timeout_protection.py
"""
Timeout protection for storage-bound work.

A coroutine that overruns its budget is cancelled (so any open transaction
rolls back in its own cleanup) and the caller gets a ``StorageError``.
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from app.core.errors import StorageError
from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def with_timeout(coro: Awaitable[T], timeout_seconds: Optional[float], operation: str = "operation") -> T:
    """
    Await ``coro`` for at most ``timeout_seconds``.

    ``None`` or a non-positive timeout disables the limit.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.warning("operation_timeout", operation=operation, timeout_seconds=timeout_seconds)
        raise StorageError(f"{operation} timed out") from exc

