from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from enum import Enum

from usage_monitor.core.usage import PERIOD_DAYS, days_between
from usage_monitor.core.usage.history import consecutive_pairs, ordered, samples_between, total_delta
from usage_monitor.core.usage.types import UsageSample

WEEK_DAYS = 7
MONTH_DAYS = 30
STREAK_THRESHOLD = 10.0
TOP_RESULTS = 5
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"


@dataclass(frozen=True, slots=True)
class HistorySummary:
    total_records: int
    first_record: datetime | None
    last_record: datetime | None
    most_used_account: int | None
    most_used_average: float | None


@dataclass(frozen=True, slots=True)
class PeriodComparison:
    period_days: int
    previous_total: float
    current_total: float
    difference: float
    direction: Direction


@dataclass(frozen=True, slots=True)
class AccountWeekComparison:
    account_number: int
    current_average: float | None
    previous_average: float | None
    difference: float | None
    difference_percent: float | None
    direction: Direction


@dataclass(frozen=True, slots=True)
class ActivityBucket:
    key: int
    label: str
    average_change: float
    samples: int


@dataclass(frozen=True, slots=True)
class RotationCount:
    from_account: int
    to_account: int
    count: int


@dataclass(frozen=True, slots=True)
class UsageStreak:
    timestamp: datetime
    change: float
    account_changes: dict[int, float]


@dataclass(frozen=True, slots=True)
class DailyPeak:
    day: date
    peaks: dict[int, float]


@dataclass(frozen=True, slots=True)
class CycleStats:
    average_usage: float
    max_usage: float
    min_usage: float
    cycles: int


def _direction(difference: float) -> Direction:
    if difference > 0:
        return Direction.UP
    if difference < 0:
        return Direction.DOWN
    return Direction.SAME


def _localize(timestamp: datetime, tz: tzinfo | None) -> datetime:
    if tz is None:
        return timestamp
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(tz)


def account_averages(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> dict[int, float]:
    if not samples:
        return {number: 0.0 for number in accounts}
    return {number: sum(sample.value(number) for sample in samples) / len(samples) for number in accounts}


def history_summary(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> HistorySummary:
    if not samples:
        return HistorySummary(0, None, None, None, None)
    history = ordered(samples)
    averages = account_averages(history, accounts)
    most_used: int | None = None
    most_used_average: float | None = None
    for number in accounts:
        if most_used_average is None or averages[number] > most_used_average:
            most_used = number
            most_used_average = averages[number]
    return HistorySummary(
        total_records=len(history),
        first_record=history[0].timestamp,
        last_record=history[-1].timestamp,
        most_used_account=most_used,
        most_used_average=most_used_average,
    )


def total_usage_change(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> float:
    if len(samples) < 2:
        return 0.0
    first = samples[0]
    last = samples[-1]
    return sum(max(0.0, last.value(number) - first.value(number)) for number in accounts)


def compare_periods(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    now: datetime,
    period_days: int = WEEK_DAYS,
) -> PeriodComparison:
    history = ordered(samples)
    current_start = now - timedelta(days=period_days)
    previous_start = now - timedelta(days=period_days * 2)
    current = samples_between(history, current_start, None)
    previous = samples_between(history, previous_start, current_start, include_end=False)
    current_total = total_usage_change(current, accounts)
    previous_total = total_usage_change(previous, accounts)
    difference = current_total - previous_total
    return PeriodComparison(
        period_days=period_days,
        previous_total=previous_total,
        current_total=current_total,
        difference=difference,
        direction=_direction(difference),
    )


def week_average_comparison(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    now: datetime,
    scale: float = 1.0,
) -> list[AccountWeekComparison]:
    history = ordered(samples)
    current_start = now - timedelta(days=WEEK_DAYS)
    previous_start = now - timedelta(days=WEEK_DAYS * 2)
    current = samples_between(history, current_start, now)
    previous = samples_between(history, previous_start, current_start, include_end=False)
    if not current and not previous:
        return []

    current_averages = account_averages(current, accounts)
    previous_averages = account_averages(previous, accounts)
    comparisons: list[AccountWeekComparison] = []
    for number in accounts:
        current_average = current_averages[number] * scale if current else None
        previous_average = previous_averages[number] * scale if previous else None
        if current_average is None or previous_average is None:
            comparisons.append(AccountWeekComparison(number, current_average, previous_average, None, None, Direction.SAME))
            continue
        difference = current_average - previous_average
        difference_percent = difference / previous_average * 100 if previous_average > 0 else 0.0
        comparisons.append(
            AccountWeekComparison(
                account_number=number,
                current_average=current_average,
                previous_average=previous_average,
                difference=difference,
                difference_percent=difference_percent,
                direction=_direction(difference),
            )
        )
    return comparisons


def _activity_histogram(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    size: int,
    bucket_of: Callable[[datetime], int],
    tz: tzinfo | None,
) -> tuple[list[float], list[int]]:
    totals = [0.0] * size
    counts = [0] * size
    for previous, current in consecutive_pairs(ordered(samples)):
        change = total_delta(previous, current, accounts)
        if change <= 0:
            continue
        bucket = bucket_of(_localize(current.timestamp, tz))
        totals[bucket] += change
        counts[bucket] += 1
    return totals, counts


def hourly_activity(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    tz: tzinfo | None = None,
) -> list[ActivityBucket]:
    totals, counts = _activity_histogram(samples, accounts, size=24, bucket_of=lambda moment: moment.hour, tz=tz)
    return [
        ActivityBucket(hour, f"{hour}:00", totals[hour] / counts[hour] if counts[hour] else 0.0, counts[hour])
        for hour in range(24)
    ]


def weekday_activity(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    tz: tzinfo | None = None,
) -> list[ActivityBucket]:
    totals, counts = _activity_histogram(samples, accounts, size=7, bucket_of=lambda moment: moment.weekday(), tz=tz)
    return [
        ActivityBucket(day, WEEKDAY_LABELS[day], totals[day] / counts[day] if counts[day] else 0.0, counts[day])
        for day in range(7)
    ]


def attribute_changes(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> list[int]:
    attributed: list[int] = []
    for previous, current in consecutive_pairs(ordered(samples)):
        leader: int | None = None
        leader_change = 0.0
        for number in accounts:
            change = current.value(number) - previous.value(number)
            # Equal increases go to the later account.
            if change > 0 and (leader is None or change >= leader_change):
                leader = number
                leader_change = change
        if leader is not None:
            attributed.append(leader)
    return attributed


def detect_rotations(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    limit: int = TOP_RESULTS,
) -> list[RotationCount]:
    attributed = attribute_changes(samples, accounts)
    counts: Counter[tuple[int, int]] = Counter()
    for index in range(1, len(attributed)):
        source = attributed[index - 1]
        target = attributed[index]
        if source != target:
            counts[(source, target)] += 1
    return [RotationCount(source, target, count) for (source, target), count in counts.most_common(limit)]


def detect_streaks(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    threshold: float = STREAK_THRESHOLD,
    limit: int = TOP_RESULTS,
) -> list[UsageStreak]:
    streaks: list[UsageStreak] = []
    for previous, current in consecutive_pairs(ordered(samples)):
        change = total_delta(previous, current, accounts)
        if change >= threshold:
            streaks.append(
                UsageStreak(
                    timestamp=current.timestamp,
                    change=change,
                    account_changes={number: current.value(number) - previous.value(number) for number in accounts},
                )
            )
    streaks.sort(key=lambda streak: streak.change, reverse=True)
    return streaks[:limit]


def daily_peaks(
    samples: Sequence[UsageSample],
    accounts: tuple[int, ...],
    *,
    now: datetime,
    days: int = MONTH_DAYS,
    tz: tzinfo | None = None,
) -> list[DailyPeak]:
    recent = samples_between(ordered(samples), now - timedelta(days=days), None)
    peaks: dict[date, dict[int, float]] = {}
    for sample in recent:
        day = _localize(sample.timestamp, tz).date()
        day_peaks = peaks.setdefault(day, {number: 0.0 for number in accounts})
        for number in accounts:
            day_peaks[number] = max(day_peaks[number], sample.value(number))
    return [DailyPeak(day=day, peaks=values) for day, values in peaks.items()]


def cycle_stats(samples: Sequence[UsageSample], accounts: tuple[int, ...]) -> CycleStats:
    usages: list[float] = []
    cycle_start: UsageSample | None = None
    for sample in ordered(samples):
        if cycle_start is None:
            cycle_start = sample
            continue
        if days_between(cycle_start.timestamp, sample.timestamp) >= PERIOD_DAYS:
            usages.append(sample.total(accounts) - cycle_start.total(accounts))
            cycle_start = sample
    if not usages:
        return CycleStats(0.0, 0.0, 0.0, 0)
    return CycleStats(
        average_usage=sum(usages) / len(usages),
        max_usage=max(usages),
        min_usage=min(usages),
        cycles=len(usages),
    )
