from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from usage_monitor.core.usage import days_between
from usage_monitor.core.usage.history import ordered, samples_between
from usage_monitor.core.usage.types import UsageSample

DEFAULT_RATE_WINDOW_DAYS = 7.0
RECENT_TREND_WINDOW_DAYS = 3.0
TREND_CHANGE_THRESHOLD = 20.0


class TrendDirection(str, Enum):
    ACCELERATING = "accelerating"
    SLOWING = "slowing"
    STABLE = "stable"


@dataclass(frozen=True, slots=True)
class ConsumptionTrend:
    recent_rate: float
    previous_rate: float
    change_percent: float | None
    direction: TrendDirection


def estimate_daily_rate(
    samples: Sequence[UsageSample],
    account_number: int,
    *,
    now: datetime,
    window_days: float = DEFAULT_RATE_WINDOW_DAYS,
    offset_days: float = 0.0,
) -> float:
    start = now - timedelta(days=window_days + offset_days)
    end = now - timedelta(days=offset_days)
    window = samples_between(ordered(samples), start, end)
    if len(window) < 2:
        return 0.0

    first = window[0]
    last = window[-1]
    elapsed_days = days_between(first.timestamp, last.timestamp)
    if elapsed_days <= 0:
        return 0.0
    # A reset inside the window understates the rate; it is never negative.
    return max(0.0, (last.value(account_number) - first.value(account_number)) / elapsed_days)


def average_daily_consumption(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> float:
    if len(samples) < 2 or not accounts:
        return 0.0
    history = ordered(samples)
    first = history[0]
    last = history[-1]
    days = max(1.0, days_between(first.timestamp, last.timestamp))
    total_change = sum(max(0.0, last.value(number) - first.value(number)) for number in accounts)
    return total_change / days / len(accounts)


def consumption_trend(samples: Sequence[UsageSample], account_number: int, *, now: datetime) -> ConsumptionTrend:
    recent = estimate_daily_rate(samples, account_number, now=now, window_days=RECENT_TREND_WINDOW_DAYS)
    previous = estimate_daily_rate(
        samples,
        account_number,
        now=now,
        window_days=DEFAULT_RATE_WINDOW_DAYS,
        offset_days=RECENT_TREND_WINDOW_DAYS,
    )
    if previous <= 0:
        return ConsumptionTrend(recent, previous, None, TrendDirection.STABLE)

    change = (recent - previous) / previous * 100
    direction = TrendDirection.STABLE
    if change > TREND_CHANGE_THRESHOLD:
        direction = TrendDirection.ACCELERATING
    elif change < -TREND_CHANGE_THRESHOLD:
        direction = TrendDirection.SLOWING
    return ConsumptionTrend(recent, previous, change, direction)
