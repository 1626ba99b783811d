from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.db.models import UserSettings


class SettingsRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> UserSettings | None:
        return await self._session.get(UserSettings, user_id)

    async def upsert(self, user_id: str, *, x2_mode: bool, account_names: dict[str, Any]) -> UserSettings:
        existing = await self.get(user_id)
        if existing is None:
            existing = UserSettings(user_id=user_id)
            self._session.add(existing)
        existing.x2_mode = x2_mode
        existing.account_names = dict(account_names)
        await self._session.commit()
        await self._session.refresh(existing)
        return existing
