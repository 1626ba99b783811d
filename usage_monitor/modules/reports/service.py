from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from usage_monitor.core.usage import DOUBLED_CAPACITY, NORMAL_CAPACITY
from usage_monitor.core.usage.history import filter_by_range
from usage_monitor.core.usage.rates import average_daily_consumption
from usage_monitor.core.usage.reports import (
    MONTH_DAYS,
    WEEK_DAYS,
    AccountWeekComparison,
    ActivityBucket,
    CycleStats,
    DailyPeak,
    HistorySummary,
    PeriodComparison,
    RotationCount,
    UsageStreak,
    account_averages,
    compare_periods,
    cycle_stats,
    daily_peaks,
    detect_rotations,
    detect_streaks,
    history_summary,
    hourly_activity,
    total_usage_change,
    week_average_comparison,
    weekday_activity,
)
from usage_monitor.core.usage.scoring import SuggestedShare, suggested_distribution
from usage_monitor.core.usage.snapshot import UsageSnapshot, compute_snapshot
from usage_monitor.core.usage.types import MonitorSettings, UsageSample
from usage_monitor.modules.monitor.ports import PersistenceStore


@dataclass(frozen=True, slots=True)
class UsageReport:
    generated_at: datetime
    summary: HistorySummary
    averages: dict[int, float]
    total_change: float
    average_daily_consumption: float
    weekly: PeriodComparison
    monthly: PeriodComparison
    week_averages: list[AccountWeekComparison]
    hourly: list[ActivityBucket]
    weekday: list[ActivityBucket]
    rotations: list[RotationCount]
    streaks: list[UsageStreak]
    daily_peaks: list[DailyPeak]
    cycles: CycleStats


@dataclass(frozen=True, slots=True)
class DashboardOverview:
    settings: MonitorSettings
    snapshot: UsageSnapshot
    distribution: list[SuggestedShare]
    summary: HistorySummary
    history: list[UsageSample]


class ReportsService:
    def __init__(self, store: PersistenceStore, *, tz: tzinfo | None = None) -> None:
        self._store = store
        self._tz = tz

    async def _settings(self) -> MonitorSettings:
        return await self._store.get_settings() or MonitorSettings(account_count=self._store.account_count)

    async def build_report(self, *, now: datetime) -> UsageReport:
        settings = await self._settings()
        accounts = settings.accounts
        history = await self._store.get_history()
        # Week averages are shown on the 0..100 display scale.
        scale = NORMAL_CAPACITY / DOUBLED_CAPACITY if settings.x2_mode else 1.0
        return UsageReport(
            generated_at=now,
            summary=history_summary(history, accounts),
            averages=account_averages(history, accounts),
            total_change=total_usage_change(history, accounts),
            average_daily_consumption=average_daily_consumption(history, accounts),
            weekly=compare_periods(history, accounts, now=now, period_days=WEEK_DAYS),
            monthly=compare_periods(history, accounts, now=now, period_days=MONTH_DAYS),
            week_averages=week_average_comparison(history, accounts, now=now, scale=scale),
            hourly=hourly_activity(history, accounts, tz=self._tz),
            weekday=weekday_activity(history, accounts, tz=self._tz),
            rotations=detect_rotations(history, accounts),
            streaks=detect_streaks(history, accounts),
            daily_peaks=daily_peaks(history, accounts, now=now, tz=self._tz),
            cycles=cycle_stats(history, accounts),
        )

    async def build_overview(self, *, now: datetime, days: int | None = None) -> DashboardOverview:
        settings = await self._settings()
        accounts = await self._store.get_accounts()
        history = await self._store.get_history()
        snapshot = compute_snapshot(accounts, history, now=now, capacity=settings.capacity)
        return DashboardOverview(
            settings=settings,
            snapshot=snapshot,
            distribution=suggested_distribution(accounts, now=now),
            summary=history_summary(history, settings.accounts),
            history=filter_by_range(history, days, now=now),
        )
