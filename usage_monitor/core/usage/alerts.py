from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from usage_monitor.core.usage import NORMAL_CAPACITY
from usage_monitor.core.usage.display import normalize_for_display
from usage_monitor.core.usage.projection import days_to_reset, project_depletion, will_deplete_before_reset
from usage_monitor.core.usage.rates import estimate_daily_rate
from usage_monitor.core.usage.types import AccountState, UsageSample

NEARLY_DEPLETED_SHARE = 90.0
HIGH_USAGE_SHARE = 75.0
ALL_ACCOUNTS_HIGH_SHARE = 70.0
RESET_SOON_HOURS = 24.0


class AlertKind(str, Enum):
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Alert:
    kind: AlertKind
    code: str
    title: str
    description: str
    account_number: int | None = None


def build_alerts(
    accounts: Sequence[AccountState],
    samples: Sequence[UsageSample],
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> list[Alert]:
    alerts: list[Alert] = []
    for account in accounts:
        alerts.extend(_account_alerts(account, samples, now=now, capacity=capacity))

    if accounts and all(
        normalize_for_display(account.usage_percent, capacity) >= ALL_ACCOUNTS_HIGH_SHARE for account in accounts
    ):
        alerts.append(
            Alert(
                kind=AlertKind.DANGER,
                code="all_accounts_high",
                title="All accounts have high usage",
                description="Consider reducing consumption or waiting for the resets.",
            )
        )
    return alerts


def _account_alerts(
    account: AccountState,
    samples: Sequence[UsageSample],
    *,
    now: datetime,
    capacity: float,
) -> list[Alert]:
    alerts: list[Alert] = []
    name = account.name
    usage = account.usage_percent
    share = normalize_for_display(usage, capacity)

    if account.needs_update:
        alerts.append(
            Alert(
                kind=AlertKind.WARNING,
                code="reset_date_required",
                title=f"{name} was reset automatically",
                description="Set the next reset date to resume projections.",
                account_number=account.account_number,
            )
        )

    if share >= NEARLY_DEPLETED_SHARE:
        alerts.append(
            Alert(
                kind=AlertKind.DANGER,
                code="nearly_depleted",
                title=f"{name} is almost depleted",
                description=f"Current usage: {usage:g}%. Consider switching to another account.",
                account_number=account.account_number,
            )
        )
    elif share >= HIGH_USAGE_SHARE:
        alerts.append(
            Alert(
                kind=AlertKind.WARNING,
                code="high_usage",
                title=f"{name} is in the critical zone",
                description=f"Current usage: {usage:g}%. {capacity - usage:g}% of capacity left.",
                account_number=account.account_number,
            )
        )

    remaining_days = days_to_reset(account.reset_date, now=now)
    if remaining_days is not None and usage < capacity:
        rate = estimate_daily_rate(samples, account.account_number, now=now)
        projection = project_depletion(usage, rate, now=now, capacity=capacity)
        days_to_deplete = None if projection.is_unbounded else projection.days_remaining
        if will_deplete_before_reset(days_to_deplete, remaining_days):
            alerts.append(
                Alert(
                    kind=AlertKind.WARNING,
                    code="depletes_before_reset",
                    title=f"{name} will run out before the reset",
                    description=(
                        f"At the current pace it runs out in {math.ceil(projection.days_remaining)} days. "
                        f"Reset in {math.ceil(remaining_days)} days."
                    ),
                    account_number=account.account_number,
                )
            )

    if remaining_days is not None:
        hours = remaining_days * 24
        if 0 < hours < RESET_SOON_HOURS:
            alerts.append(
                Alert(
                    kind=AlertKind.INFO,
                    code="reset_soon",
                    title=f"{name} resets soon",
                    description=f"Reset in {math.ceil(hours)} hours. Current usage: {usage:g}%.",
                    account_number=account.account_number,
                )
            )
    return alerts
