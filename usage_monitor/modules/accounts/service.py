from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from usage_monitor.core.usage import account_numbers
from usage_monitor.core.usage.reset import apply_reset_date, check_auto_resets, reset_to_defaults
from usage_monitor.core.usage.types import AccountPatch, AccountState, MonitorSettings, UsageSample
from usage_monitor.core.usage.validation import validate_usage
from usage_monitor.modules.history.service import HistoryService
from usage_monitor.modules.monitor.ports import PersistenceStore

logger = logging.getLogger(__name__)


class AccountNotFoundError(LookupError):
    pass


class NotSignedInError(PermissionError):
    pass


@dataclass(frozen=True, slots=True)
class SaveAllResult:
    accounts: list[AccountState]
    history_point: UsageSample | None


class AccountsService:
    def __init__(self, store: PersistenceStore) -> None:
        self._store = store
        self._history = HistoryService(store)

    async def list_accounts(self) -> list[AccountState]:
        return await self._store.get_accounts()

    async def get_settings(self) -> MonitorSettings:
        return await self._store.get_settings() or MonitorSettings(account_count=self._store.account_count)

    async def save_all(self, usages: Mapping[int, float], *, now: datetime) -> SaveAllResult:
        self._require_user()
        settings = await self.get_settings()
        validated: dict[int, float] = {}
        for number, value in usages.items():
            self._require_account(number)
            validated[number] = validate_usage(value, settings.capacity)
        accounts = await self._store.save_all_accounts(validated)
        history_point = await self._history.record_snapshot(now=now)
        return SaveAllResult(accounts=accounts, history_point=history_point)

    async def update_account(
        self,
        account_number: int,
        *,
        now: datetime,
        usage_percent: float | None = None,
        reset_date: datetime | None = None,
    ) -> AccountState:
        self._require_user()
        self._require_account(number=account_number)
        settings = await self.get_settings()
        current = await self._store.get_account(account_number) or AccountState.default(
            account_number, settings.name_for(account_number)
        )
        updated = current
        if usage_percent is not None:
            updated = AccountPatch(usage_percent=validate_usage(usage_percent, settings.capacity)).apply(updated)
        if reset_date is not None:
            updated = apply_reset_date(updated, reset_date, now=now)
        patch = AccountPatch(
            usage_percent=updated.usage_percent,
            reset_date=updated.reset_date,
            needs_update=updated.needs_update,
        )
        return self._saved(await self._store.save_account(account_number, patch))

    async def reset_account(self, account_number: int) -> AccountState:
        self._require_user()
        self._require_account(number=account_number)
        current = await self._store.get_account(account_number) or AccountState.default(account_number)
        cleared = reset_to_defaults(current)
        patch = AccountPatch(usage_percent=cleared.usage_percent, needs_update=cleared.needs_update, clear_reset_date=True)
        saved = self._saved(await self._store.save_account(account_number, patch))
        logger.info("Account reset to defaults user_id=%s account=%s", self._store.user_id, account_number)
        return saved

    async def run_reset_check(self, *, now: datetime) -> list[int]:
        if self._store.user_id is None:
            return []
        fired: list[int] = []
        for outcome in check_auto_resets(await self._store.get_accounts(), now=now):
            if not outcome.fired:
                continue
            account = outcome.account
            await self._store.save_account(
                account.account_number,
                AccountPatch(usage_percent=account.usage_percent, needs_update=account.needs_update),
            )
            fired.append(account.account_number)
        if fired:
            await self._history.record_snapshot(now=now)
        return fired

    def _require_user(self) -> None:
        if self._store.user_id is None:
            raise NotSignedInError("Sign in required")

    def _require_account(self, number: int) -> None:
        if number not in account_numbers(self._store.account_count):
            raise AccountNotFoundError(f"Account {number} not found")

    @staticmethod
    def _saved(account: AccountState | None) -> AccountState:
        # The store only declines writes when no user is bound.
        if account is None:
            raise NotSignedInError("Sign in required")
        return account
