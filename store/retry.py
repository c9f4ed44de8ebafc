"""
Bounded retry for store access.

Only network-classified failures are retried: dropped connections, timeouts,
"server closed the connection unexpectedly". Those surface from SQLAlchemy as
OperationalError / InterfaceError / DisconnectionError / pool TimeoutError.

Everything else (IntegrityError, ProgrammingError, ...) is an application-level
rejection. Retrying it would only repeat the same answer, so it is raised
immediately as StoreError.

Backoff is linear: STORE_RETRY_DELAY × attempt number. With the defaults
(2 retries, 0.4s) a dead database costs 0.4 + 0.8 = 1.2s before the caller
sees TransientStoreError.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)

from config.settings import settings
from lifecycle.errors import StoreError, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


def backoff_delay(attempt: int, base_delay: Optional[float] = None) -> float:
    """Seconds to wait before retry number `attempt` (1-based)."""
    base = settings.STORE_RETRY_DELAY if base_delay is None else base_delay
    return base * attempt


def run_with_retry(
    operation: Callable[[], T],
    description: str,
    max_retries: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run a synchronous store operation with bounded retries.

    `operation` must be safe to call again from scratch, which in practice
    means it opens its own session on every call.
    """
    retries = settings.STORE_MAX_RETRIES if max_retries is None else max_retries

    for attempt in range(retries + 1):
        try:
            return operation()
        except TRANSIENT_ERRORS as e:
            if attempt == retries:
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {e}")
                raise TransientStoreError() from e
            delay = backoff_delay(attempt + 1)
            logger.warning(
                f"{description} hit a transient store error "
                f"(attempt {attempt + 1}, retrying in {delay:.2f}s): {e}"
            )
            sleep(delay)
        except SQLAlchemyError as e:
            logger.error(f"{description} failed: {e}")
            raise StoreError() from e

    raise TransientStoreError()  # unreachable: the loop always returns or raises


async def run_with_retry_async(
    operation: Callable[[], Awaitable[T]],
    description: str,
    on_error: Optional[Callable[[], Awaitable[None]]] = None,
    max_retries: Optional[int] = None,
) -> T:
    """
    Async twin of run_with_retry().

    `on_error` runs after every failed attempt. The API store passes
    session.rollback so the request session is usable for the next attempt.
    """
    retries = settings.STORE_MAX_RETRIES if max_retries is None else max_retries

    for attempt in range(retries + 1):
        try:
            return await operation()
        except TRANSIENT_ERRORS as e:
            if on_error is not None:
                await on_error()
            if attempt == retries:
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {e}")
                raise TransientStoreError() from e
            delay = backoff_delay(attempt + 1)
            logger.warning(
                f"{description} hit a transient store error "
                f"(attempt {attempt + 1}, retrying in {delay:.2f}s): {e}"
            )
            await asyncio.sleep(delay)
        except SQLAlchemyError as e:
            if on_error is not None:
                await on_error()
            logger.error(f"{description} failed: {e}")
            raise StoreError() from e

    raise TransientStoreError()
