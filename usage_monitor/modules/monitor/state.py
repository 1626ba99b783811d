from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from usage_monitor.core.realtime import ChangeEvent, ChangeTable
from usage_monitor.core.usage.snapshot import UsageSnapshot, compute_snapshot
from usage_monitor.core.usage.types import AccountState, MonitorSettings, UsageSample
from usage_monitor.modules.monitor.ports import PersistenceStore

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SYNCED = "synced"
    OFFLINE = "offline"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class MonitorState:
    user_id: str | None
    accounts: tuple[AccountState, ...]
    settings: MonitorSettings
    history: tuple[UsageSample, ...]
    sync_status: SyncStatus
    snapshot: UsageSnapshot


def recompute(state: MonitorState, *, now: datetime) -> MonitorState:
    snapshot = compute_snapshot(state.accounts, state.history, now=now, capacity=state.settings.capacity)
    return replace(state, snapshot=snapshot)


def _build(
    store: PersistenceStore,
    accounts: list[AccountState],
    settings: MonitorSettings | None,
    history: list[UsageSample],
    *,
    sync_status: SyncStatus,
    now: datetime,
) -> MonitorState:
    resolved = settings or MonitorSettings(account_count=store.account_count)
    snapshot = compute_snapshot(accounts, history, now=now, capacity=resolved.capacity)
    return MonitorState(
        user_id=store.user_id,
        accounts=tuple(accounts),
        settings=resolved,
        history=tuple(history),
        sync_status=sync_status,
        snapshot=snapshot,
    )


async def load_state(store: PersistenceStore, *, now: datetime) -> MonitorState:
    if store.user_id is None:
        return _build(store, [], None, [], sync_status=SyncStatus.OFFLINE, now=now)
    try:
        settings = await store.get_settings()
        accounts = await store.get_accounts()
        history = await store.get_history()
    except SQLAlchemyError:
        logger.warning("Failed to load monitor state user_id=%s", store.user_id, exc_info=True)
        return _build(store, [], None, [], sync_status=SyncStatus.ERROR, now=now)
    return _build(store, accounts, settings, history, sync_status=SyncStatus.SYNCED, now=now)


async def apply_change(
    state: MonitorState,
    event: ChangeEvent,
    store: PersistenceStore,
    *,
    now: datetime,
) -> MonitorState:
    if state.user_id is None or event.user_id != state.user_id:
        return state
    try:
        if event.table == ChangeTable.HISTORY:
            state = replace(state, history=tuple(await store.get_history()))
        elif event.table == ChangeTable.SETTINGS:
            settings = await store.get_settings() or state.settings
            # Display names live on the account records as well.
            state = replace(state, settings=settings, accounts=tuple(await store.get_accounts()))
        else:
            state = replace(state, accounts=tuple(await store.get_accounts()))
    except SQLAlchemyError:
        logger.warning(
            "Failed to reload after change table=%s user_id=%s",
            event.table.value,
            event.user_id,
            exc_info=True,
        )
        return replace(state, sync_status=SyncStatus.ERROR)
    return recompute(replace(state, sync_status=SyncStatus.SYNCED), now=now)
