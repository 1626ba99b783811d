from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from usage_monitor.core.types import JsonObject
from usage_monitor.core.utils.time import utcnow

logger = logging.getLogger(__name__)


class ChangeTable(str, Enum):
    ACCOUNTS = "accounts"
    SETTINGS = "user_settings"
    HISTORY = "usage_history"


class ChangeType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    table: ChangeTable
    change_type: ChangeType
    user_id: str
    record: JsonObject | None = None
    committed_at: datetime = field(default_factory=utcnow)

    def to_payload(self) -> JsonObject:
        return {
            "type": "change",
            "table": self.table.value,
            "changeType": self.change_type.value,
            "record": self.record,
            "committedAt": self.committed_at.isoformat(),
        }


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


@dataclass(eq=False, slots=True)
class Subscription:
    table: ChangeTable | None
    callback: ChangeCallback
    user_id: str | None = None

    def matches(self, event: ChangeEvent) -> bool:
        if self.table is not None and self.table != event.table:
            return False
        return self.user_id is None or self.user_id == event.user_id


class RealtimeHub:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: ChangeTable | None,
        callback: ChangeCallback,
        *,
        user_id: str | None = None,
    ) -> Subscription:
        subscription = Subscription(table=table, callback=callback, user_id=user_id)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription | None) -> None:
        if subscription is None:
            return
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return

    async def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.matches(event):
                continue
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning(
                    "Realtime subscriber failed table=%s user_id=%s",
                    event.table.value,
                    event.user_id,
                    exc_info=True,
                )

    @asynccontextmanager
    async def listen(self, user_id: str, table: ChangeTable | None = None) -> AsyncIterator[asyncio.Queue[ChangeEvent]]:
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        subscription = self.subscribe(table, queue.put_nowait, user_id=user_id)
        try:
            yield queue
        finally:
            self.unsubscribe(subscription)


_realtime_hub = RealtimeHub()


def get_realtime_hub() -> RealtimeHub:
    return _realtime_hub
