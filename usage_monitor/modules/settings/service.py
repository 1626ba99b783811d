from __future__ import annotations

from collections.abc import Mapping

from usage_monitor.core.usage import CapacityMode, account_numbers
from usage_monitor.core.usage.types import MonitorSettings
from usage_monitor.modules.accounts.service import NotSignedInError
from usage_monitor.modules.monitor.ports import PersistenceStore

MAX_DISPLAY_NAME_LENGTH = 50


class SettingsValidationError(ValueError):
    pass


class SettingsService:
    def __init__(self, store: PersistenceStore) -> None:
        self._store = store

    async def get_settings(self) -> MonitorSettings:
        return await self._store.get_settings() or MonitorSettings(account_count=self._store.account_count)

    async def update_settings(
        self,
        *,
        capacity_mode: CapacityMode | None = None,
        account_names: Mapping[int, str] | None = None,
    ) -> MonitorSettings:
        if self._store.user_id is None:
            raise NotSignedInError("Sign in required")
        current = await self.get_settings()
        names = dict(current.account_names)
        if account_names is not None:
            names.update(normalize_account_names(account_names, self._store.account_count))
        updated = MonitorSettings(
            capacity_mode=capacity_mode or current.capacity_mode,
            account_names=names,
            account_count=self._store.account_count,
        )
        saved = await self._store.save_settings(updated)
        if saved is None:
            raise NotSignedInError("Sign in required")
        return saved


def normalize_account_names(names: Mapping[int, str], account_count: int) -> dict[int, str]:
    valid = account_numbers(account_count)
    normalized: dict[int, str] = {}
    for number, raw in names.items():
        if number not in valid:
            raise SettingsValidationError(f"Unknown account {number}")
        name = raw.strip()
        if len(name) > MAX_DISPLAY_NAME_LENGTH:
            raise SettingsValidationError(f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters")
        # Blank names fall back to the default label.
        normalized[number] = name
    return normalized
