from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.idempotency_repo import IdempotencyRecord, IdempotencyRepo
from app.infrastructure.db.tables import from_db_time, idempotency_keys, to_db_time


def _to_record(row) -> IdempotencyRecord:
    return IdempotencyRecord(
        scope=row["scope"],
        idem_key=row["idem_key"],
        request_hash=row["request_hash"],
        response_json=row["response_json"] or {},
        http_status=row["http_status"] or 201,
        reference_booking_id=row["reference_booking_id"],
        created_at=from_db_time(row["created_at"]),
    )


class IdempotencyRepoSQL(IdempotencyRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, scope: str, idem_key: str) -> IdempotencyRecord | None:
        result = await self._session.execute(
            select(idempotency_keys).where(
                idempotency_keys.c.scope == scope,
                idempotency_keys.c.idem_key == idem_key,
            )
        )
        row = result.mappings().first()
        return _to_record(row) if row else None

    async def save(self, record: IdempotencyRecord) -> None:
        # uq_idempotency_scope_key rejects a concurrent duplicate
        await self._session.execute(
            insert(idempotency_keys).values(
                scope=record.scope,
                idem_key=record.idem_key,
                request_hash=record.request_hash,
                response_json=record.response_json,
                http_status=record.http_status,
                reference_booking_id=record.reference_booking_id,
                created_at=to_db_time(record.created_at),
            )
        )
