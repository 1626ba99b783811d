from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from usage_monitor.core.usage import NORMAL_CAPACITY
from usage_monitor.core.usage.alerts import Alert, build_alerts
from usage_monitor.core.usage.display import AccountDisplay, UsageOverview, account_display, overview
from usage_monitor.core.usage.history import ordered
from usage_monitor.core.usage.projection import (
    DepletionProjection,
    TimeBalance,
    compute_time_balance,
    days_to_reset,
    project_depletion,
    projected_waste,
    will_deplete_before_reset,
)
from usage_monitor.core.usage.rates import ConsumptionTrend, consumption_trend, estimate_daily_rate
from usage_monitor.core.usage.reset import ResetState, reset_state
from usage_monitor.core.usage.scoring import EfficiencyScore, Recommendation, efficiency_score, recommend_account
from usage_monitor.core.usage.types import AccountState, UsageSample


@dataclass(frozen=True, slots=True)
class AccountMetrics:
    display: AccountDisplay
    reset_state: ResetState
    daily_rate: float
    projection: DepletionProjection
    days_to_reset: float | None
    time_balance: TimeBalance | None
    depletes_before_reset: bool
    projected_waste: float
    trend: ConsumptionTrend


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    computed_at: datetime
    capacity: float
    accounts: list[AccountMetrics]
    overview: UsageOverview
    efficiency: EfficiencyScore
    recommendation: Recommendation | None
    alerts: list[Alert]


def account_metrics(
    account: AccountState,
    samples: Sequence[UsageSample],
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> AccountMetrics:
    rate = estimate_daily_rate(samples, account.account_number, now=now)
    projection = project_depletion(account.usage_percent, rate, now=now, capacity=capacity)
    remaining_days = days_to_reset(account.reset_date, now=now)
    balance = (
        compute_time_balance(account.usage_percent, account.reset_date, now=now)
        if account.reset_date is not None
        else None
    )
    days_to_deplete = None if projection.is_unbounded else projection.days_remaining
    return AccountMetrics(
        display=account_display(account, capacity),
        reset_state=reset_state(account),
        daily_rate=rate,
        projection=projection,
        days_to_reset=remaining_days,
        time_balance=balance,
        depletes_before_reset=will_deplete_before_reset(days_to_deplete, remaining_days),
        projected_waste=projected_waste(account.usage_percent, rate, account.reset_date, now=now, capacity=capacity),
        trend=consumption_trend(samples, account.account_number, now=now),
    )


def compute_snapshot(
    accounts: Sequence[AccountState],
    samples: Sequence[UsageSample],
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> UsageSnapshot:
    history = ordered(samples)
    return UsageSnapshot(
        computed_at=now,
        capacity=capacity,
        accounts=[account_metrics(account, history, now=now, capacity=capacity) for account in accounts],
        overview=overview(accounts, capacity),
        efficiency=efficiency_score(accounts, now=now),
        recommendation=recommend_account(accounts, now=now, capacity=capacity),
        alerts=build_alerts(accounts, history, now=now, capacity=capacity),
    )
