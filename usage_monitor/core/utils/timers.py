from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


class PeriodicTask:
    def __init__(
        self,
        name: str,
        interval_seconds: float,
        job: Job,
        *,
        run_immediately: bool = False,
    ) -> None:
        self._name = name
        self._interval_seconds = interval_seconds
        self._job = job
        self._run_immediately = run_immediately
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self._name)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def restart(self) -> None:
        await self.stop()
        self.start()

    async def run_once(self) -> None:
        try:
            await self._job()
        except Exception:
            logger.exception("Periodic job failed name=%s", self._name)

    async def _loop(self) -> None:
        if self._run_immediately:
            await self.run_once()
        while True:
            await asyncio.sleep(self._interval_seconds)
            await self.run_once()


class Debouncer:
    def __init__(self, delay_seconds: float) -> None:
        self._delay_seconds = delay_seconds
        self._pending: dict[Hashable, asyncio.Task[None]] = {}
        self._running: set[asyncio.Task[None]] = set()

    def schedule(self, key: Hashable, job: Job) -> None:
        self.cancel(key)
        self._pending[key] = asyncio.create_task(self._fire(key, job), name=f"debounce:{key}")

    def is_pending(self, key: Hashable) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    def cancel(self, key: Hashable) -> bool:
        task = self._pending.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> None:
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        # Jobs already past their delay run to completion.
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _fire(self, key: Hashable, job: Job) -> None:
        await asyncio.sleep(self._delay_seconds)
        # Detach first: a schedule() arriving mid-run must not cancel this job.
        task = asyncio.current_task()
        if self._pending.get(key) is task:
            del self._pending[key]
        if task is not None:
            self._running.add(task)
        try:
            await job()
        except Exception:
            logger.exception("Debounced job failed key=%s", key)
        finally:
            if task is not None:
                self._running.discard(task)
