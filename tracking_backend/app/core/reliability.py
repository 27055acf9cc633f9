"""
Reliability Utilities.

Bounds every store call with a timeout and maps driver failures onto the
application's StoreError taxonomy.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tracking_backend.app.core.config import settings
from tracking_backend.app.core.exceptions import StoreError, StoreConflictError

logger = logging.getLogger("tracking.store")

T = TypeVar("T")


async def run_store_call(
    operation: str,
    func: Callable[..., Awaitable[T]],
    *args,
    timeout: Optional[float] = None,
    **kwargs
) -> T:
    """
    Await a store coroutine with a timeout.

    Args:
        operation: Name used in logs and in the raised StoreError
        func: Coroutine function performing the store I/O
        timeout: Seconds to wait, defaults to settings.store_timeout_seconds

    Raises:
        StoreConflictError: If a uniqueness constraint rejected the write
        StoreError: On timeout or any other SQLAlchemy failure
    """
    limit = timeout if timeout is not None else settings.store_timeout_seconds

    try:
        return await asyncio.wait_for(func(*args, **kwargs), timeout=limit)
    except asyncio.TimeoutError:
        logger.error("Store call timed out", extra={"operation": operation, "timeout_s": limit})
        raise StoreError(operation, f"timed out after {limit}s")
    except IntegrityError as e:
        logger.warning("Store constraint violation", extra={"operation": operation})
        raise StoreConflictError(operation) from e
    except SQLAlchemyError as e:
        logger.error("Store call failed", extra={"operation": operation, "error": type(e).__name__})
        raise StoreError(operation, type(e).__name__) from e
