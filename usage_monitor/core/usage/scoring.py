from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from usage_monitor.core.usage import NORMAL_CAPACITY, PERIOD_DAYS, clamp, round_half_up
from usage_monitor.core.usage.projection import days_to_reset
from usage_monitor.core.usage.types import AccountState

TIMING_BASE_SCORE = 50
RESET_SOON_BONUS = 50.0
NEARLY_DEPLETED_PENALTY = 100.0
NEARLY_DEPLETED_USAGE = 95.0
MAX_REASONS = 4


@dataclass(frozen=True, slots=True)
class EfficiencyScore:
    score: int
    label: str
    utilization: int
    balance: int
    timing: int


@dataclass(frozen=True, slots=True)
class Recommendation:
    account_number: int
    display_name: str
    score: float
    available: float
    reasons: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SuggestedShare:
    account_number: int
    usage_percent: float
    days_to_reset: float
    suggested_percent: int


def utilization_score(accounts: Sequence[AccountState]) -> int:
    if not accounts:
        return 0
    total = sum(account.usage_percent for account in accounts)
    return min(100, round_half_up(total / len(accounts)))


def balance_score(accounts: Sequence[AccountState]) -> int:
    if not accounts:
        return 100
    usages = [account.usage_percent for account in accounts]
    mean = sum(usages) / len(usages)
    variance = sum((usage - mean) ** 2 for usage in usages) / len(usages)
    return max(0, round_half_up(100 - math.sqrt(variance)))


def timing_score(accounts: Sequence[AccountState], *, now: datetime) -> int:
    score = TIMING_BASE_SCORE
    for account in accounts:
        remaining_days = days_to_reset(account.reset_date, now=now)
        if remaining_days is None:
            continue
        usage = account.usage_percent
        if remaining_days < 2 and usage > 80:
            score += 15
        elif remaining_days > 5 and usage > 80:
            score -= 15
        elif remaining_days < 2 and usage < 50:
            score -= 10
    return int(clamp(score, 0, 100))


def efficiency_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Average"
    return "Low"


def efficiency_score(accounts: Sequence[AccountState], *, now: datetime) -> EfficiencyScore:
    utilization = utilization_score(accounts)
    balance = balance_score(accounts)
    timing = timing_score(accounts, now=now)
    score = round_half_up((utilization + balance + timing) / 3)
    return EfficiencyScore(
        score=score,
        label=efficiency_label(score),
        utilization=utilization,
        balance=balance,
        timing=timing,
    )


def recommendation_score(account: AccountState, *, now: datetime, capacity: float = NORMAL_CAPACITY) -> float:
    score = capacity - account.usage_percent
    remaining_days = days_to_reset(account.reset_date, now=now)
    if remaining_days is not None and 0 < remaining_days < 3:
        score += RESET_SOON_BONUS
    if account.usage_percent >= NEARLY_DEPLETED_USAGE:
        score -= NEARLY_DEPLETED_PENALTY
    return score


def recommend_account(
    accounts: Sequence[AccountState],
    *,
    now: datetime,
    capacity: float = NORMAL_CAPACITY,
) -> Recommendation | None:
    best: AccountState | None = None
    best_score = -math.inf
    for account in sorted(accounts, key=lambda item: item.account_number):
        score = recommendation_score(account, now=now, capacity=capacity)
        if score > best_score:
            best = account
            best_score = score
    if best is None:
        return None
    return Recommendation(
        account_number=best.account_number,
        display_name=best.name,
        score=best_score,
        available=capacity - best.usage_percent,
        reasons=recommendation_reasons(best, accounts, now=now),
    )


def recommendation_reasons(
    chosen: AccountState,
    accounts: Sequence[AccountState],
    *,
    now: datetime,
) -> tuple[str, ...]:
    usage = chosen.usage_percent
    reasons: list[str] = []
    if usage < 50:
        reasons.append("More than 50% of capacity is still available")
    if usage < 30:
        reasons.append("Very low usage, ideal to make the most of it")
    remaining_days = days_to_reset(chosen.reset_date, now=now)
    if remaining_days is not None:
        if remaining_days < 3:
            reasons.append(f"Resets soon, in {math.ceil(remaining_days)} days")
        if remaining_days > 5:
            reasons.append("Plenty of time left before the reset")
    for other in accounts:
        if other.account_number == chosen.account_number:
            continue
        if other.usage_percent > usage + 20:
            reasons.append(f"{other.name} has higher usage ({other.usage_percent:g}%)")
    if not reasons:
        reasons.append("Optimal balance between usage and remaining time")
    return tuple(reasons[:MAX_REASONS])


def suggested_distribution(accounts: Sequence[AccountState], *, now: datetime) -> list[SuggestedShare]:
    days: list[float] = []
    for account in accounts:
        remaining_days = days_to_reset(account.reset_date, now=now)
        days.append(float(PERIOD_DAYS) if remaining_days is None else max(0.0, remaining_days))
    total_days = sum(days)

    shares: list[SuggestedShare] = []
    for account, account_days in zip(accounts, days):
        if total_days > 0:
            suggested = round_half_up((total_days - account_days) / (total_days * 2) * 100)
        else:
            suggested = 33
        shares.append(
            SuggestedShare(
                account_number=account.account_number,
                usage_percent=account.usage_percent,
                days_to_reset=account_days,
                suggested_percent=suggested,
            )
        )
    return shares
