import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.application.atomic import LockContentionError
from app.application.interfaces.transaction_manager import TransactionManager
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryTransactionManager(TransactionManager):
    """
    Serializes transactions on the store lock and rolls back on error.

    Re-entrant within one task, so nested ``start()`` calls join the outer
    transaction like the SQL manager does.
    """

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if self._db.lock_owner is not None and self._db.lock_owner is task:
            yield
            return

        try:
            await asyncio.wait_for(self._db.lock.acquire(), timeout=self._db.lock_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise LockContentionError("in-memory store lock wait timeout") from exc

        self._db.lock_owner = task
        self._db.begin()
        try:
            yield
        except BaseException:
            self._db.rollback()
            raise
        else:
            self._db.commit()
        finally:
            self._db.lock_owner = None
            self._db.lock.release()
