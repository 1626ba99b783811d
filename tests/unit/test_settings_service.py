from __future__ import annotations

import pytest

from usage_monitor.core.usage import CapacityMode
from usage_monitor.modules.accounts.service import NotSignedInError
from usage_monitor.modules.settings.service import SettingsService, SettingsValidationError, normalize_account_names

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_update_settings_merges_names_and_mode(fake_store):
    service = SettingsService(fake_store)

    await service.update_settings(account_names={1: "  Work  "})
    updated = await service.update_settings(capacity_mode=CapacityMode.DOUBLED, account_names={2: "Personal"})

    assert updated.capacity == 200
    assert updated.name_for(1) == "Work"
    assert updated.name_for(2) == "Personal"
    assert updated.name_for(3) == "Account 3"


def test_normalize_account_names_rejects_unknown_accounts_and_long_names():
    with pytest.raises(SettingsValidationError):
        normalize_account_names({4: "Extra"}, 3)
    with pytest.raises(SettingsValidationError):
        normalize_account_names({1: "x" * 51}, 3)
    assert normalize_account_names({1: "  "}, 3) == {1: ""}


@pytest.mark.asyncio
async def test_update_settings_requires_user(anonymous_store):
    with pytest.raises(NotSignedInError):
        await SettingsService(anonymous_store).update_settings(capacity_mode=CapacityMode.DOUBLED)
