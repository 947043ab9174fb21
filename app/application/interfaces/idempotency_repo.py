from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class IdempotencyRecord:
    """
    Outcome of a request stored under its ``Idempotency-Key``.

    A replay with the same ``request_hash`` returns the booking in
    ``reference_booking_id``; a different hash under the same key is a conflict.
    """

    scope: str
    idem_key: str
    request_hash: str
    response_json: dict[str, Any]
    http_status: int
    reference_booking_id: str | None = None
    created_at: datetime | None = None


class IdempotencyRepo:
    async def get(self, scope: str, idem_key: str) -> IdempotencyRecord | None:
        raise NotImplementedError

    async def save(self, record: IdempotencyRecord) -> None:
        """Store a new record. The (scope, key) pair must not exist yet."""
        raise NotImplementedError
