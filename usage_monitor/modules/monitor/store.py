from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.core.realtime import ChangeEvent, ChangeTable, ChangeType, RealtimeHub, get_realtime_hub
from usage_monitor.core.types import JsonObject
from usage_monitor.core.usage import (
    DEFAULT_ACCOUNT_COUNT,
    CapacityMode,
    account_key,
    account_numbers,
    default_account_name,
    parse_account_key,
)
from usage_monitor.core.usage.types import AccountPatch, AccountState, MonitorSettings, UsageSample
from usage_monitor.core.utils.time import isoformat_utc
from usage_monitor.db.models import Account, UsageHistory, UserSettings
from usage_monitor.modules.accounts.repository import AccountsRepository
from usage_monitor.modules.history.repository import HistoryRepository
from usage_monitor.modules.settings.repository import SettingsRepository

logger = logging.getLogger(__name__)


class UsageStore:
    def __init__(
        self,
        session: AsyncSession,
        user_id: str | None,
        *,
        account_count: int = DEFAULT_ACCOUNT_COUNT,
        hub: RealtimeHub | None = None,
    ) -> None:
        self._user_id = user_id
        self._account_count = account_count
        self._hub = hub or get_realtime_hub()
        self._accounts = AccountsRepository(session)
        self._settings = SettingsRepository(session)
        self._history = HistoryRepository(session)

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def account_count(self) -> int:
        return self._account_count

    async def get_accounts(self) -> list[AccountState]:
        if self._user_id is None:
            return []
        settings = await self.get_settings() or self._default_settings()
        rows = {row.account_number: row for row in await self._accounts.list_accounts(self._user_id)}
        accounts: list[AccountState] = []
        for number in account_numbers(self._account_count):
            row = rows.get(number)
            name = settings.name_for(number)
            accounts.append(_account_from_row(row, name) if row else AccountState.default(number, name))
        return accounts

    async def get_account(self, account_number: int) -> AccountState | None:
        if self._user_id is None or account_number not in account_numbers(self._account_count):
            return None
        row = await self._accounts.get(self._user_id, account_number)
        if row is None:
            return None
        settings = await self.get_settings() or self._default_settings()
        return _account_from_row(row, settings.name_for(account_number))

    async def save_account(self, account_number: int, patch: AccountPatch) -> AccountState | None:
        if self._user_id is None:
            return None
        current = await self.get_account(account_number) or AccountState.default(account_number)
        updated = patch.apply(current)
        await self._accounts.upsert(self._user_id, updated)
        await self._publish(self._user_id, ChangeTable.ACCOUNTS, ChangeType.UPDATE, _account_record(updated))
        return updated

    async def save_all_accounts(self, usages: Mapping[int, float]) -> list[AccountState]:
        if self._user_id is None:
            return []
        current = await self.get_accounts()
        updated = [
            replace(account, usage_percent=float(usages[account.account_number]))
            if account.account_number in usages
            else account
            for account in current
        ]
        await self._accounts.upsert_many(self._user_id, updated)
        for account in updated:
            await self._publish(self._user_id, ChangeTable.ACCOUNTS, ChangeType.UPDATE, _account_record(account))
        return updated

    async def get_settings(self) -> MonitorSettings | None:
        if self._user_id is None:
            return None
        row = await self._settings.get(self._user_id)
        if row is None:
            return None
        return _settings_from_row(row, self._account_count)

    async def save_settings(self, settings: MonitorSettings) -> MonitorSettings | None:
        if self._user_id is None:
            return None
        names = {account_key(number): name for number, name in settings.account_names.items()}
        row = await self._settings.upsert(self._user_id, x2_mode=settings.x2_mode, account_names=names)
        saved = _settings_from_row(row, self._account_count)
        await self._publish(
            self._user_id,
            ChangeTable.SETTINGS,
            ChangeType.UPDATE,
            {"x2_mode": row.x2_mode, "account_names": dict(row.account_names)},
        )
        return saved

    async def get_history(
        self,
        *,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[UsageSample]:
        if self._user_id is None:
            return []
        rows = await self._history.list_points(self._user_id, since=since, limit=limit)
        return [_sample_from_row(row) for row in rows]

    async def get_latest_history_point(self) -> UsageSample | None:
        if self._user_id is None:
            return None
        row = await self._history.latest(self._user_id)
        return _sample_from_row(row) if row else None

    async def save_history_point(self, sample: UsageSample) -> UsageSample | None:
        if self._user_id is None:
            return None
        values = {account_key(number): sample.value(number) for number in account_numbers(self._account_count)}
        row = await self._history.add(self._user_id, sample.timestamp, values)
        saved = _sample_from_row(row)
        await self._publish(self._user_id, ChangeTable.HISTORY, ChangeType.INSERT, _sample_record(row))
        return saved

    async def clear_history(self) -> bool:
        if self._user_id is None:
            return False
        removed = await self._history.clear(self._user_id)
        logger.info("Cleared usage history user_id=%s rows=%s", self._user_id, removed)
        await self._publish(self._user_id, ChangeTable.HISTORY, ChangeType.DELETE, None)
        return True

    async def initialize_defaults(self) -> MonitorSettings | None:
        if self._user_id is None:
            return None
        settings = await self.save_settings(self._default_settings())
        defaults = [AccountState.default(number) for number in account_numbers(self._account_count)]
        await self._accounts.upsert_many(self._user_id, defaults)
        for account in defaults:
            await self._publish(self._user_id, ChangeTable.ACCOUNTS, ChangeType.INSERT, _account_record(account))
        return settings

    def _default_settings(self) -> MonitorSettings:
        return MonitorSettings(
            capacity_mode=CapacityMode.NORMAL,
            account_names={number: default_account_name(number) for number in account_numbers(self._account_count)},
            account_count=self._account_count,
        )

    async def _publish(
        self,
        user_id: str,
        table: ChangeTable,
        change_type: ChangeType,
        record: JsonObject | None,
    ) -> None:
        await self._hub.publish(ChangeEvent(table=table, change_type=change_type, user_id=user_id, record=record))


def _account_from_row(row: Account, display_name: str) -> AccountState:
    return AccountState(
        account_number=row.account_number,
        usage_percent=float(row.usage_percent or 0.0),
        reset_date=row.reset_date,
        needs_update=bool(row.needs_update),
        display_name=display_name,
    )


def _settings_from_row(row: UserSettings, account_count: int) -> MonitorSettings:
    names: dict[int, str] = {}
    for key, value in (row.account_names or {}).items():
        number = parse_account_key(str(key))
        if number is None or not isinstance(value, str):
            continue
        names[number] = value
    return MonitorSettings(
        capacity_mode=CapacityMode.DOUBLED if row.x2_mode else CapacityMode.NORMAL,
        account_names=names,
        account_count=account_count,
    )


def _sample_from_row(row: UsageHistory) -> UsageSample:
    usage: dict[int, float] = {}
    for key, value in (row.values or {}).items():
        number = parse_account_key(str(key))
        if number is None:
            continue
        usage[number] = _as_float(value)
    return UsageSample(timestamp=row.timestamp, usage=usage)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _account_record(account: AccountState) -> JsonObject:
    return {
        "account_number": account.account_number,
        "usage_percent": account.usage_percent,
        "reset_date": isoformat_utc(account.reset_date),
        "needs_update": account.needs_update,
    }


def _sample_record(row: UsageHistory) -> JsonObject:
    return {"id": row.id, "timestamp": isoformat_utc(row.timestamp), **dict(row.values or {})}
