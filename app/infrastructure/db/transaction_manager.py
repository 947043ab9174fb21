from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.atomic import LockContentionError
from app.application.interfaces.transaction_manager import TransactionManager
from app.infrastructure.db.retry import is_lock_contention_error


class SQLAlchemyTransactionManager(TransactionManager):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._session.in_transaction():
            yield
            return
        try:
            async with self._session.begin():
                yield
        except DBAPIError as exc:
            if is_lock_contention_error(exc):
                raise LockContentionError(str(exc)) from exc
            raise
