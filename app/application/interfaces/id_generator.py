"""Interface IdGenerator - port for identifier generation."""

import secrets
import uuid
from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """
    Source of booking ids and worker ids.

    Injectable so tests get predictable identifiers.
    """

    @abstractmethod
    def booking_id(self) -> str:
        """
        New booking id.

        Returns:
            String of the form ``BK-<hex>``.
        """
        raise NotImplementedError

    @abstractmethod
    def worker_id(self) -> str:
        raise NotImplementedError


class RandomIdGenerator(IdGenerator):
    BOOKING_ID_BYTES = 6

    def booking_id(self) -> str:
        return f"BK-{secrets.token_hex(self.BOOKING_ID_BYTES).upper()}"

    def worker_id(self) -> str:
        return f"worker-{uuid.uuid4()}"


class SequentialIdGenerator(IdGenerator):
    """Counter based ids for tests."""

    def __init__(self, prefix: str = "TEST"):
        self._prefix = prefix
        self._booking_counter = 0
        self._worker_counter = 0

    def booking_id(self) -> str:
        self._booking_counter += 1
        return f"BK-{self._prefix}{self._booking_counter:04d}"

    def worker_id(self) -> str:
        self._worker_counter += 1
        return f"worker-{self._prefix.lower()}-{self._worker_counter}"
