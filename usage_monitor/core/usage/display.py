from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from usage_monitor.core.usage import NORMAL_CAPACITY
from usage_monitor.core.usage.types import AccountState


class Availability(str, Enum):
    AVAILABLE = "available"
    MODERATE = "moderate"
    CRITICAL = "critical"


class LoadBand(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class AccountDisplay:
    account_number: int
    display_name: str
    used: float
    remaining: float
    normalized_percent: float
    availability: Availability
    load: LoadBand
    needs_update: bool


@dataclass(frozen=True, slots=True)
class UsageOverview:
    total_remaining: float
    best_account: int | None
    best_remaining: float | None
    average_remaining: float


def normalize_for_display(value: float, capacity: float = NORMAL_CAPACITY) -> float:
    if capacity <= 0:
        return 0.0
    return value / capacity * NORMAL_CAPACITY


def availability_for(remaining_percent: float) -> Availability:
    if remaining_percent > 50:
        return Availability.AVAILABLE
    if remaining_percent > 20:
        return Availability.MODERATE
    return Availability.CRITICAL


def load_band_for(used_percent: float) -> LoadBand:
    if used_percent < 50:
        return LoadBand.LOW
    if used_percent < 80:
        return LoadBand.MEDIUM
    return LoadBand.HIGH


def account_display(account: AccountState, capacity: float = NORMAL_CAPACITY) -> AccountDisplay:
    normalized = normalize_for_display(account.usage_percent, capacity)
    return AccountDisplay(
        account_number=account.account_number,
        display_name=account.name,
        used=account.usage_percent,
        remaining=capacity - account.usage_percent,
        normalized_percent=normalized,
        availability=availability_for(NORMAL_CAPACITY - normalized),
        load=load_band_for(normalized),
        needs_update=account.needs_update,
    )


def overview(accounts: Sequence[AccountState], capacity: float = NORMAL_CAPACITY) -> UsageOverview:
    if not accounts:
        return UsageOverview(0.0, None, None, 0.0)
    remaining = [(account.account_number, capacity - account.usage_percent) for account in accounts]
    best_account, best_remaining = remaining[0]
    for number, value in remaining[1:]:
        if value > best_remaining:
            best_account, best_remaining = number, value
    total = sum(value for _, value in remaining)
    return UsageOverview(
        total_remaining=total,
        best_account=best_account,
        best_remaining=best_remaining,
        average_remaining=total / len(remaining),
    )
