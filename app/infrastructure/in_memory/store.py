"""Process-local storage backing the in-memory repositories."""

import asyncio
import copy
from collections.abc import Callable
from typing import Any

from app.application.interfaces.idempotency_repo import IdempotencyRecord
from app.domain.entities.booking import Booking
from app.domain.entities.coupon import Coupon, CouponRedemption
from app.domain.entities.outbox_event import OutboxEvent
from app.domain.entities.payment_order import PaymentOrder
from app.domain.entities.resource import ReservableResource

_ABSENT = object()


class InMemoryDatabase:
    """
    Tables as dicts plus one lock serializing transactions.

    Holding the lock for a whole transaction gives the same guarantee as
    ``SELECT ... FOR UPDATE`` on the resource row, only coarser.

    Rollback uses an undo log: repositories call ``before_write`` or
    ``before_append`` ahead of every mutation, and only the rows a
    transaction touches are copied. Like an auto-increment column,
    ``next_outbox_id`` is not rolled back.
    """

    def __init__(self, lock_timeout_seconds: float = 3.0) -> None:
        self.resources: dict[str, ReservableResource] = {}
        self.bookings: dict[str, Booking] = {}
        self.payment_orders: dict[str, PaymentOrder] = {}
        self.coupons: dict[str, Coupon] = {}
        self.coupon_redemptions: list[CouponRedemption] = []
        self.idempotency: dict[tuple[str, str], IdempotencyRecord] = {}
        self.outbox: dict[int, OutboxEvent] = {}
        self.next_outbox_id = 1

        self.lock = asyncio.Lock()
        self.lock_owner: asyncio.Task | None = None
        self.lock_timeout_seconds = lock_timeout_seconds

        self._undo: list[Callable[[], None]] | None = None
        self._touched: set[tuple[str, Any]] = set()

    def begin(self) -> None:
        self._undo = []
        self._touched = set()

    def commit(self) -> None:
        self._undo = None
        self._touched = set()

    def rollback(self) -> None:
        for undo in reversed(self._undo or []):
            undo()
        self.commit()

    def before_write(self, table: str, key: Any) -> None:
        """Remember the current version of a row the first time it is written."""
        if self._undo is None or (table, key) in self._touched:
            return
        self._touched.add((table, key))
        rows = getattr(self, table)
        previous = rows.get(key, _ABSENT)
        if previous is _ABSENT:
            self._undo.append(lambda: rows.pop(key, None))
        else:
            saved = copy.deepcopy(previous)
            self._undo.append(lambda: rows.__setitem__(key, saved))

    def before_append(self, table: str) -> None:
        if self._undo is None or (table, None) in self._touched:
            return
        self._touched.add((table, None))
        rows = getattr(self, table)
        length = len(rows)

        def truncate() -> None:
            del rows[length:]

        self._undo.append(truncate)

    async def ping(self) -> None:
        return None

    async def dispose(self) -> None:
        return None
