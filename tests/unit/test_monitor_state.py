from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from usage_monitor.core.realtime import ChangeEvent, ChangeTable, ChangeType
from usage_monitor.core.usage import CapacityMode
from usage_monitor.core.usage.types import AccountState, MonitorSettings, UsageSample
from usage_monitor.modules.monitor.state import SyncStatus, apply_change, load_state, recompute

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.mark.asyncio
async def test_load_state_without_user_is_offline_placeholder(anonymous_store):
    state = await load_state(anonymous_store, now=NOW)
    assert state.sync_status == SyncStatus.OFFLINE
    assert state.accounts == ()
    assert state.snapshot.recommendation is None
    assert state.snapshot.alerts == []


@pytest.mark.asyncio
async def test_load_state_marks_persistence_failures(fake_store):
    fake_store.fail_reads = True
    state = await load_state(fake_store, now=NOW)
    assert state.sync_status == SyncStatus.ERROR
    assert state.accounts == ()


@pytest.mark.asyncio
async def test_history_change_reloads_before_recompute(fake_store):
    fake_store.accounts[1] = AccountState(account_number=1, usage_percent=40)
    state = await load_state(fake_store, now=NOW)
    assert state.snapshot.accounts[0].daily_rate == 0

    fake_store.history.extend(
        [
            UsageSample(timestamp=NOW - timedelta(days=2), usage={1: 20}),
            UsageSample(timestamp=NOW, usage={1: 40}),
        ]
    )
    event = ChangeEvent(table=ChangeTable.HISTORY, change_type=ChangeType.INSERT, user_id="user-1")
    updated = await apply_change(state, event, fake_store, now=NOW)

    assert len(updated.history) == 2
    assert updated.snapshot.accounts[0].daily_rate == pytest.approx(10.0)
    assert updated.sync_status == SyncStatus.SYNCED


@pytest.mark.asyncio
async def test_settings_change_updates_capacity(fake_store):
    state = await load_state(fake_store, now=NOW)
    fake_store.settings = MonitorSettings(capacity_mode=CapacityMode.DOUBLED)
    event = ChangeEvent(table=ChangeTable.SETTINGS, change_type=ChangeType.UPDATE, user_id="user-1")

    updated = await apply_change(state, event, fake_store, now=NOW)

    assert updated.snapshot.capacity == 200


@pytest.mark.asyncio
async def test_change_for_other_user_is_ignored(fake_store):
    state = await load_state(fake_store, now=NOW)
    event = ChangeEvent(table=ChangeTable.ACCOUNTS, change_type=ChangeType.UPDATE, user_id="someone-else")
    assert await apply_change(state, event, fake_store, now=NOW) is state


@pytest.mark.asyncio
async def test_failed_reload_keeps_last_good_data(fake_store):
    fake_store.accounts[1] = AccountState(account_number=1, usage_percent=40)
    state = await load_state(fake_store, now=NOW)
    fake_store.fail_reads = True
    event = ChangeEvent(table=ChangeTable.ACCOUNTS, change_type=ChangeType.UPDATE, user_id="user-1")

    updated = await apply_change(state, event, fake_store, now=NOW)

    assert updated.sync_status == SyncStatus.ERROR
    assert updated.accounts == state.accounts


@pytest.mark.asyncio
async def test_recompute_refreshes_time_dependent_metrics(fake_store):
    reset_date = NOW + timedelta(days=3.5)
    fake_store.accounts[1] = AccountState(account_number=1, usage_percent=50, reset_date=reset_date)
    state = await load_state(fake_store, now=NOW)

    later = recompute(state, now=NOW + timedelta(days=1))

    assert state.snapshot.accounts[0].days_to_reset == pytest.approx(3.5)
    assert later.snapshot.accounts[0].days_to_reset == pytest.approx(2.5)
