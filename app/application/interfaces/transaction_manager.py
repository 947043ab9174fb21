from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """
    Unit of work boundary.

    Everything the repositories do inside ``start()`` commits together or not
    at all. Nested ``start()`` calls join the outer transaction.
    """

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
