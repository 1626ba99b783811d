from __future__ import annotations

import logging
from datetime import datetime, timedelta

from usage_monitor.core.usage.history import has_usage_changed
from usage_monitor.core.usage.types import UsageSample
from usage_monitor.modules.monitor.ports import PersistenceStore

logger = logging.getLogger(__name__)


class HistoryService:
    def __init__(self, store: PersistenceStore) -> None:
        self._store = store

    async def list_history(
        self,
        *,
        now: datetime,
        days: int | None = None,
        limit: int | None = None,
    ) -> list[UsageSample]:
        since = now - timedelta(days=days) if days is not None else None
        return await self._store.get_history(since=since, limit=limit)

    async def record_snapshot(self, *, now: datetime) -> UsageSample | None:
        accounts = await self._store.get_accounts()
        if not accounts:
            return None
        usage = {account.account_number: account.usage_percent for account in accounts}
        latest = await self._store.get_latest_history_point()
        if not has_usage_changed(latest, usage, usage.keys()):
            logger.debug("History snapshot skipped user_id=%s reason=unchanged", self._store.user_id)
            return None
        return await self._store.save_history_point(UsageSample(timestamp=now, usage=usage))

    async def clear(self) -> bool:
        return await self._store.clear_history()
