from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from usage_monitor.core.usage.types import UsageSample


def has_usage_changed(
    previous: UsageSample | None,
    usage: Mapping[int, float],
    accounts: Iterable[int],
) -> bool:
    if previous is None:
        return True
    return any(previous.value(number) != float(usage.get(number, 0.0)) for number in accounts)


def ordered(samples: Iterable[UsageSample]) -> list[UsageSample]:
    # sorted() is stable, so samples sharing a timestamp keep insertion order.
    return sorted(samples, key=lambda sample: sample.timestamp)


def samples_between(
    samples: Sequence[UsageSample],
    start: datetime | None,
    end: datetime | None,
    *,
    include_end: bool = True,
) -> list[UsageSample]:
    selected: list[UsageSample] = []
    for sample in samples:
        if start is not None and sample.timestamp < start:
            continue
        if end is not None:
            if include_end and sample.timestamp > end:
                continue
            if not include_end and sample.timestamp >= end:
                continue
        selected.append(sample)
    return selected


def filter_by_range(samples: Sequence[UsageSample], days: float | None, *, now: datetime) -> list[UsageSample]:
    if days is None:
        return list(samples)
    return samples_between(samples, now - timedelta(days=days), None)


def total_delta(previous: UsageSample, current: UsageSample, accounts: tuple[int, ...]) -> float:
    return sum(current.value(number) - previous.value(number) for number in accounts)


def consecutive_pairs(samples: Sequence[UsageSample]) -> Iterable[tuple[UsageSample, UsageSample]]:
    for index in range(1, len(samples)):
        yield samples[index - 1], samples[index]
