from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Protocol

from usage_monitor.core.usage.types import AccountPatch, AccountState, MonitorSettings, UsageSample


class PersistenceStore(Protocol):
    @property
    def user_id(self) -> str | None: ...

    @property
    def account_count(self) -> int: ...

    async def get_accounts(self) -> list[AccountState]: ...

    async def get_account(self, account_number: int) -> AccountState | None: ...

    async def save_account(self, account_number: int, patch: AccountPatch) -> AccountState | None: ...

    async def save_all_accounts(self, usages: Mapping[int, float]) -> list[AccountState]: ...

    async def get_settings(self) -> MonitorSettings | None: ...

    async def save_settings(self, settings: MonitorSettings) -> MonitorSettings | None: ...

    async def get_history(
        self,
        *,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[UsageSample]: ...

    async def get_latest_history_point(self) -> UsageSample | None: ...

    async def save_history_point(self, sample: UsageSample) -> UsageSample | None: ...

    async def clear_history(self) -> bool: ...

    async def initialize_defaults(self) -> MonitorSettings | None: ...
