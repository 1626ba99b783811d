from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.core.usage.types import AccountState
from usage_monitor.db.models import Account


class AccountsRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_accounts(self, user_id: str) -> list[Account]:
        result = await self._session.execute(
            select(Account).where(Account.user_id == user_id).order_by(Account.account_number)
        )
        return list(result.scalars().all())

    async def get(self, user_id: str, account_number: int) -> Account | None:
        return await self._session.get(Account, (user_id, account_number))

    async def upsert(self, user_id: str, state: AccountState) -> Account:
        row = await self._stage(user_id, state)
        await self._session.commit()
        await self._session.refresh(row)
        return row

    async def upsert_many(self, user_id: str, states: Iterable[AccountState]) -> list[Account]:
        rows = [await self._stage(user_id, state) for state in states]
        await self._session.commit()
        for row in rows:
            await self._session.refresh(row)
        return sorted(rows, key=lambda row: row.account_number)

    async def _stage(self, user_id: str, state: AccountState) -> Account:
        existing = await self.get(user_id, state.account_number)
        if existing is None:
            existing = Account(user_id=user_id, account_number=state.account_number)
            self._session.add(existing)
        existing.usage_percent = state.usage_percent
        existing.reset_date = state.reset_date
        existing.needs_update = state.needs_update
        return existing
