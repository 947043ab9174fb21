"""
Bounded retries of a transactional unit of work under lock contention.

Transaction managers raise ``LockContentionError`` when the storage reports a
deadlock, a lock wait timeout or a busy database. ``run_atomic`` retries the
whole unit with exponential backoff and gives up with
``TemporarilyUnavailableError`` once the attempts or the time budget run out.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.errors import TemporarilyUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LockContentionError(Exception):
    """Raised by transaction managers for retryable lock conflicts."""


async def run_atomic(
    transaction_manager: TransactionManager,
    work: Callable[[], Awaitable[T]],
    timeout_seconds: float = 3.0,
    max_attempts: int = 3,
    base_delay: float = 0.05,
) -> T:
    """
    Run ``work`` inside one transaction, retrying on lock contention.

    ``work`` must re-read everything it depends on, since a retry starts
    from a rolled back transaction.
    """
    deadline = time.monotonic() + timeout_seconds

    for attempt in range(max_attempts):
        try:
            async with transaction_manager.start():
                return await work()
        except LockContentionError as exc:
            delay = base_delay * (2 ** attempt)
            out_of_time = time.monotonic() + delay >= deadline
            if attempt == max_attempts - 1 or out_of_time:
                logger.error(
                    "Lock contention persists, giving up",
                    extra={"attempts": attempt + 1, "error": str(exc)},
                )
                raise TemporarilyUnavailableError() from exc

            logger.warning(
                "Lock contention detected, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(exc),
                },
            )
            await asyncio.sleep(delay)

    raise TemporarilyUnavailableError()
