"""
Retry of a whole unit of work when the database aborts it for a transient lock problem.

MySQL resolves deadlocks by killing one of the transactions (1213) or
giving up on a lock wait (1205); SQLite reports "database is locked".
In all three cases nothing was committed and the unit of work can run again.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_LOCK_MARKERS = ("1213", "1205", "database is locked")


def is_deadlock_error(error: Exception) -> bool:
    """
    Check if an exception is a transient lock error worth retrying.

    Args:
        error: The exception to check

    Returns:
        True for deadlocks, lock wait timeouts and SQLite busy errors
    """
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return any(marker in error_str for marker in TRANSIENT_LOCK_MARKERS)
    return False


async def retry_on_deadlock(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Run `func`, retrying with exponential backoff (base_delay * 2**attempt) on lock errors.

    Domain errors (invalid transition, lost compare-and-set) propagate on the first attempt.

    Example:
        booking = await retry_on_deadlock(lambda: lifecycle.accept(booking_id, notes))
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except (OperationalError, DBAPIError) as exc:
            if not is_deadlock_error(exc) or attempt == max_attempts:
                if attempt > 1:
                    logger.error(
                        "Database deadlock persists after max retries",
                        extra={"attempts": attempt, "error": str(exc)},
                    )
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "Database deadlock detected, retrying",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                },
            )
            await asyncio.sleep(delay)
    raise RuntimeError("retry_on_deadlock called with max_attempts < 1")
