from __future__ import annotations

import functools
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.core.config.settings import get_settings
from usage_monitor.core.realtime import RealtimeHub, get_realtime_hub
from usage_monitor.core.utils.time import utcnow
from usage_monitor.core.utils.timers import Debouncer, PeriodicTask
from usage_monitor.db.session import SessionLocal
from usage_monitor.modules.accounts.service import AccountsService
from usage_monitor.modules.auth.repository import UsersRepository
from usage_monitor.modules.history.service import HistoryService
from usage_monitor.modules.monitor.store import UsageStore

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


class MonitorScheduler:
    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        *,
        account_count: int,
        reset_check_interval_seconds: float,
        save_debounce_seconds: float,
        hub: RealtimeHub | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._account_count = account_count
        self._hub = hub or get_realtime_hub()
        self._reset_task = PeriodicTask(
            "usage-monitor-reset-check",
            reset_check_interval_seconds,
            self.run_reset_checks,
            run_immediately=True,
        )
        self._debouncer = Debouncer(save_debounce_seconds)

    @property
    def running(self) -> bool:
        return self._reset_task.running

    def start(self) -> None:
        self._reset_task.start()

    async def stop(self) -> None:
        await self._reset_task.stop()
        await self._debouncer.cancel_all()

    def schedule_history_snapshot(self, user_id: str) -> None:
        self._debouncer.schedule(user_id, functools.partial(self.record_history_snapshot, user_id))

    def has_pending_snapshot(self, user_id: str) -> bool:
        return self._debouncer.is_pending(user_id)

    async def record_history_snapshot(self, user_id: str) -> None:
        async with self._session_factory() as session:
            store = UsageStore(session, user_id, account_count=self._account_count, hub=self._hub)
            saved = await HistoryService(store).record_snapshot(now=utcnow())
        if saved is not None:
            logger.debug("Debounced history snapshot saved user_id=%s", user_id)

    async def run_reset_checks(self) -> dict[str, list[int]]:
        now = utcnow()
        async with self._session_factory() as session:
            user_ids = await UsersRepository(session).list_user_ids()
        fired: dict[str, list[int]] = {}
        for user_id in user_ids:
            try:
                async with self._session_factory() as session:
                    store = UsageStore(session, user_id, account_count=self._account_count, hub=self._hub)
                    accounts = await AccountsService(store).run_reset_check(now=now)
            except Exception:
                logger.exception("Reset check failed user_id=%s", user_id)
                continue
            if accounts:
                fired[user_id] = accounts
        if fired:
            logger.info("Reset check completed users=%s", len(fired))
        return fired


_monitor_scheduler: MonitorScheduler | None = None


def get_monitor_scheduler() -> MonitorScheduler:
    global _monitor_scheduler
    if _monitor_scheduler is None:
        settings = get_settings()
        _monitor_scheduler = MonitorScheduler(
            account_count=settings.account_count,
            reset_check_interval_seconds=settings.reset_check_interval_seconds,
            save_debounce_seconds=settings.save_debounce_seconds,
        )
    return _monitor_scheduler
