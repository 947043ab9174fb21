import copy

from app.application.interfaces.idempotency_repo import IdempotencyRecord, IdempotencyRepo
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryIdempotencyRepo(IdempotencyRepo):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get(self, scope: str, idem_key: str) -> IdempotencyRecord | None:
        record = self._db.idempotency.get((scope, idem_key))
        return copy.deepcopy(record) if record else None

    async def save(self, record: IdempotencyRecord) -> None:
        key = (record.scope, record.idem_key)
        if key in self._db.idempotency:
            raise ValueError(f"Idempotency key already stored: {key}")
        self._db.before_write("idempotency", key)
        self._db.idempotency[key] = copy.deepcopy(record)
