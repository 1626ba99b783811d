from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.db.models import UsageHistory


class HistoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_points(
        self,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[UsageHistory]:
        stmt = select(UsageHistory).where(UsageHistory.user_id == user_id)
        if since is not None:
            stmt = stmt.where(UsageHistory.timestamp >= since)
        if limit:
            # Newest N, returned oldest first.
            stmt = stmt.order_by(UsageHistory.timestamp.desc(), UsageHistory.id.desc()).limit(limit)
            result = await self._session.execute(stmt)
            return list(reversed(result.scalars().all()))
        stmt = stmt.order_by(UsageHistory.timestamp, UsageHistory.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def latest(self, user_id: str) -> UsageHistory | None:
        result = await self._session.execute(
            select(UsageHistory)
            .where(UsageHistory.user_id == user_id)
            .order_by(UsageHistory.timestamp.desc(), UsageHistory.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def add(self, user_id: str, timestamp: datetime, values: dict[str, Any]) -> UsageHistory:
        row = UsageHistory(user_id=user_id, timestamp=timestamp, values=dict(values))
        self._session.add(row)
        await self._session.commit()
        await self._session.refresh(row)
        return row

    async def clear(self, user_id: str) -> int:
        result = await self._session.execute(delete(UsageHistory).where(UsageHistory.user_id == user_id))
        await self._session.commit()
        return int(result.rowcount or 0)
