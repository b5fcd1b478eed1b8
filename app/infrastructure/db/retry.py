"""
Retries for transient database failures.

MySQL deadlocks and lock-wait timeouts, and SQLite's "database is locked",
roll back the whole transaction, so the unit of work is retried from the top.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"
SQLITE_LOCKED = "database is locked"

TRANSIENT_MARKERS = (MYSQL_DEADLOCK_ERROR, MYSQL_LOCK_WAIT_TIMEOUT, SQLITE_LOCKED)


def is_transient_error(error: Exception) -> bool:
    if isinstance(error, (OperationalError, DBAPIError)):
        message = str(error)
        return any(marker in message for marker in TRANSIENT_MARKERS)
    return False


async def retry_on_transient(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Runs `func`, retrying transient failures with exponential backoff
    (base_delay * 2 ** attempt). Other errors propagate immediately.
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except (OperationalError, DBAPIError) as exc:
            if not is_transient_error(exc) or attempt == max_attempts - 1:
                if is_transient_error(exc):
                    logger.error(
                        "Transient database error persists after max retries",
                        extra={"attempts": max_attempts, "error": str(exc)},
                    )
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Transient database error, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(exc),
                },
            )
            await asyncio.sleep(delay)
    raise RuntimeError("retry_on_transient called with max_attempts < 1")
