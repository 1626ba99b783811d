from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager

from usage_monitor.core.realtime import RealtimeHub
from usage_monitor.core.types import JsonObject
from usage_monitor.core.utils.sse import format_sse_event
from usage_monitor.core.utils.time import utcnow
from usage_monitor.modules.monitor.ports import PersistenceStore
from usage_monitor.modules.monitor.state import MonitorState, apply_change, load_state, recompute
from usage_monitor.modules.reports.mappers import build_snapshot

logger = logging.getLogger(__name__)

StoreFactory = Callable[[], AbstractAsyncContextManager[PersistenceStore]]


def snapshot_payload(state: MonitorState, reason: str) -> JsonObject:
    return {
        "type": "snapshot",
        "reason": reason,
        "syncStatus": state.sync_status.value,
        "snapshot": build_snapshot(state.snapshot).model_dump(mode="json", by_alias=True),
    }


async def snapshot_stream(
    user_id: str,
    store_factory: StoreFactory,
    hub: RealtimeHub,
    *,
    refresh_interval_seconds: float,
) -> AsyncIterator[str]:
    async with hub.listen(user_id) as queue:
        async with store_factory() as store:
            state = await load_state(store, now=utcnow())
        yield format_sse_event(snapshot_payload(state, "initial"))
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=refresh_interval_seconds)
            except asyncio.TimeoutError:
                state = recompute(state, now=utcnow())
                yield format_sse_event(snapshot_payload(state, "refresh"))
                continue
            yield format_sse_event(event.to_payload())
            # Reload the whole aggregate before recomputing.
            async with store_factory() as store:
                state = await apply_change(state, event, store, now=utcnow())
            logger.debug("Realtime snapshot recomputed user_id=%s table=%s", user_id, event.table.value)
            yield format_sse_event(snapshot_payload(state, "change"))
