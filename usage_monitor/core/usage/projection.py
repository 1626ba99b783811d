from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from usage_monitor.core.usage import NORMAL_CAPACITY, PERIOD_DAYS, clamp, days_between
from usage_monitor.core.usage.types import Severity

BALANCE_CAUTION_THRESHOLD = 10.0
BALANCE_CRITICAL_THRESHOLD = 20.0


class DepletionStatus(str, Enum):
    DEPLETING = "depleting"
    NEVER = "never"
    DEPLETED = "depleted"


@dataclass(frozen=True, slots=True)
class DepletionProjection:
    status: DepletionStatus
    days_remaining: float
    depletion_date: datetime | None

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.days_remaining)


@dataclass(frozen=True, slots=True)
class TimeBalance:
    cycle_start: datetime
    reset_date: datetime
    percent_time_elapsed: float
    balance: float
    severity: Severity

    @property
    def overconsuming(self) -> bool:
        return self.balance > 0


def days_to_reset(reset_date: datetime | None, *, now: datetime) -> float | None:
    if reset_date is None:
        return None
    return days_between(now, reset_date)


def project_depletion(
    usage: float,
    rate: float,
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> DepletionProjection:
    if usage >= capacity:
        return DepletionProjection(DepletionStatus.DEPLETED, 0.0, now)
    if rate <= 0:
        return DepletionProjection(DepletionStatus.NEVER, math.inf, None)
    days = (capacity - usage) / rate
    return DepletionProjection(DepletionStatus.DEPLETING, days, now + timedelta(days=days))


def depletion_severity(projection: DepletionProjection) -> Severity:
    if projection.status == DepletionStatus.DEPLETED:
        return Severity.CRITICAL
    if projection.status == DepletionStatus.NEVER:
        return Severity.NOMINAL
    if projection.days_remaining < 2:
        return Severity.CRITICAL
    if projection.days_remaining < 4:
        return Severity.CAUTION
    return Severity.NOMINAL


def rate_severity(rate: float) -> Severity:
    if rate > 15:
        return Severity.CRITICAL
    if rate > 10:
        return Severity.CAUTION
    return Severity.NOMINAL


def balance_severity(balance: float) -> Severity:
    magnitude = abs(balance)
    if magnitude <= BALANCE_CAUTION_THRESHOLD:
        return Severity.NOMINAL
    if magnitude <= BALANCE_CRITICAL_THRESHOLD:
        return Severity.CAUTION
    return Severity.CRITICAL


def compute_time_balance(
    usage: float,
    reset_date: datetime,
    *,
    now: datetime,
    period_days: int = PERIOD_DAYS,
) -> TimeBalance:
    cycle_start = reset_date - timedelta(days=period_days)
    cycle_seconds = (reset_date - cycle_start).total_seconds()
    elapsed_seconds = (now - cycle_start).total_seconds()
    percent_elapsed = clamp(elapsed_seconds / cycle_seconds * 100, 0.0, 100.0)
    balance = usage - percent_elapsed
    return TimeBalance(
        cycle_start=cycle_start,
        reset_date=reset_date,
        percent_time_elapsed=percent_elapsed,
        balance=balance,
        severity=balance_severity(balance),
    )


def will_deplete_before_reset(days_to_deplete: float | None, days_until_reset: float | None) -> bool:
    if days_to_deplete is None or days_until_reset is None:
        return False
    return 0 < days_to_deplete < days_until_reset


def projected_waste(
    usage: float,
    rate: float,
    reset_date: datetime | None,
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> float:
    if reset_date is None:
        return 0.0
    remaining = capacity - usage
    if rate <= 0:
        return remaining
    days = max(0.0, days_between(now, reset_date))
    return max(0.0, remaining - rate * days)


def waste_severity(waste: float) -> Severity:
    if waste > 30:
        return Severity.CRITICAL
    if waste > 15:
        return Severity.CAUTION
    return Severity.NOMINAL
