from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from usage_monitor.core.realtime import ChangeEvent, ChangeTable, ChangeType, RealtimeHub
from usage_monitor.core.usage import account_numbers
from usage_monitor.core.usage.types import AccountPatch, AccountState, MonitorSettings, UsageSample


class FakeUsageStore:
    def __init__(self, user_id: str | None = "user-1", *, account_count: int = 3, hub: RealtimeHub | None = None) -> None:
        self._user_id = user_id
        self._account_count = account_count
        self._hub = hub
        self.fail_reads = False
        self.accounts: dict[int, AccountState] = {
            number: AccountState.default(number) for number in account_numbers(account_count)
        }
        self.settings: MonitorSettings | None = MonitorSettings(account_count=account_count)
        self.history: list[UsageSample] = []
        self.events: list[ChangeEvent] = []

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def account_count(self) -> int:
        return self._account_count

    def _check(self) -> None:
        if self.fail_reads:
            raise OperationalError("SELECT 1", {}, Exception("store unreachable"))

    async def _publish(self, table: ChangeTable, change_type: ChangeType) -> None:
        assert self._user_id is not None
        event = ChangeEvent(table=table, change_type=change_type, user_id=self._user_id)
        self.events.append(event)
        if self._hub is not None:
            await self._hub.publish(event)

    async def get_accounts(self) -> list[AccountState]:
        if self._user_id is None:
            return []
        self._check()
        return [self.accounts[number] for number in sorted(self.accounts)]

    async def get_account(self, account_number: int) -> AccountState | None:
        if self._user_id is None:
            return None
        self._check()
        return self.accounts.get(account_number)

    async def save_account(self, account_number: int, patch: AccountPatch) -> AccountState | None:
        if self._user_id is None:
            return None
        current = self.accounts.get(account_number) or AccountState.default(account_number)
        self.accounts[account_number] = patch.apply(current)
        await self._publish(ChangeTable.ACCOUNTS, ChangeType.UPDATE)
        return self.accounts[account_number]

    async def save_all_accounts(self, usages: Mapping[int, float]) -> list[AccountState]:
        if self._user_id is None:
            return []
        for number, value in usages.items():
            self.accounts[number] = replace(self.accounts[number], usage_percent=value)
        await self._publish(ChangeTable.ACCOUNTS, ChangeType.UPDATE)
        return await self.get_accounts()

    async def get_settings(self) -> MonitorSettings | None:
        if self._user_id is None:
            return None
        self._check()
        return self.settings

    async def save_settings(self, settings: MonitorSettings) -> MonitorSettings | None:
        if self._user_id is None:
            return None
        self.settings = settings
        await self._publish(ChangeTable.SETTINGS, ChangeType.UPDATE)
        return settings

    async def get_history(self, *, since: datetime | None = None, limit: int | None = None) -> list[UsageSample]:
        if self._user_id is None:
            return []
        self._check()
        samples = [sample for sample in self.history if since is None or sample.timestamp >= since]
        return samples[-limit:] if limit else samples

    async def get_latest_history_point(self) -> UsageSample | None:
        return self.history[-1] if self.history else None

    async def save_history_point(self, sample: UsageSample) -> UsageSample | None:
        if self._user_id is None:
            return None
        self.history.append(sample)
        await self._publish(ChangeTable.HISTORY, ChangeType.INSERT)
        return sample

    async def clear_history(self) -> bool:
        if self._user_id is None:
            return False
        self.history.clear()
        await self._publish(ChangeTable.HISTORY, ChangeType.DELETE)
        return True

    async def initialize_defaults(self) -> MonitorSettings | None:
        return await self.save_settings(MonitorSettings(account_count=self._account_count))


@pytest.fixture
def fake_store() -> FakeUsageStore:
    return FakeUsageStore()


@pytest.fixture
def anonymous_store() -> FakeUsageStore:
    return FakeUsageStore(user_id=None)


@pytest.fixture
def realtime_hub() -> RealtimeHub:
    return RealtimeHub()


@pytest.fixture
def hub_store(realtime_hub: RealtimeHub) -> FakeUsageStore:
    return FakeUsageStore(hub=realtime_hub)
