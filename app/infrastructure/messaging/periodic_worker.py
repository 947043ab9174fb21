"""Background loop running a job on a fixed interval."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicWorker:
    """
    Runs ``job`` every ``interval_seconds`` until stopped.

    Used for the expiry sweeper and the outbox dispatcher. A failing run is
    logged and the loop carries on with the next tick.

    Features:
    - Configurable interval
    - Errors isolated per run
    - Graceful shutdown (the current run is cancelled)
    """

    def __init__(
        self,
        name: str,
        job: Callable[[], Awaitable[Any]],
        interval_seconds: float,
    ) -> None:
        self._name = name
        self._job = job
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Any:
        return await self._job()

    async def _loop(self) -> None:
        logger.info("Worker started", extra={"worker": self._name, "interval": self._interval})
        while self._running:
            try:
                await self._job()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Worker run failed", extra={"worker": self._name})
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"worker-{self._name}")

    async def stop(self) -> None:
        self._running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Worker stopped", extra={"worker": self._name})
