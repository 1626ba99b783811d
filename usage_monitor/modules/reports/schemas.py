from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from usage_monitor.modules.shared.schemas import DashboardModel


class AccountDisplaySchema(DashboardModel):
    account_number: int
    display_name: str
    used: float
    remaining: float
    normalized_percent: float
    availability: str
    load: str
    needs_update: bool


class DepletionSchema(DashboardModel):
    status: str
    days_remaining: float | None = None
    depletion_date: datetime | None = None
    severity: str


class TimeBalanceSchema(DashboardModel):
    cycle_start: datetime
    reset_date: datetime
    percent_time_elapsed: float
    balance: float
    severity: str


class TrendSchema(DashboardModel):
    recent_rate: float
    previous_rate: float
    change_percent: float | None = None
    direction: str


class AccountMetricsSchema(DashboardModel):
    display: AccountDisplaySchema
    reset_state: str
    daily_rate: float
    rate_severity: str
    depletion: DepletionSchema
    days_to_reset: float | None = None
    time_balance: TimeBalanceSchema | None = None
    depletes_before_reset: bool
    projected_waste: float
    waste_severity: str
    trend: TrendSchema


class OverviewSchema(DashboardModel):
    total_remaining: float
    best_account: int | None = None
    best_remaining: float | None = None
    average_remaining: float


class EfficiencySchema(DashboardModel):
    score: int
    label: str
    utilization: int
    balance: int
    timing: int


class RecommendationSchema(DashboardModel):
    account_number: int
    display_name: str
    score: float
    available: float
    reasons: list[str] = Field(default_factory=list)


class AlertSchema(DashboardModel):
    kind: str
    code: str
    title: str
    description: str
    account_number: int | None = None


class SnapshotSchema(DashboardModel):
    computed_at: datetime
    capacity: float
    accounts: list[AccountMetricsSchema] = Field(default_factory=list)
    overview: OverviewSchema
    efficiency: EfficiencySchema
    recommendation: RecommendationSchema | None = None
    alerts: list[AlertSchema] = Field(default_factory=list)


class SuggestedShareSchema(DashboardModel):
    account_number: int
    usage_percent: float
    days_to_reset: float
    suggested_percent: int


class HistorySummarySchema(DashboardModel):
    total_records: int
    first_record: datetime | None = None
    last_record: datetime | None = None
    most_used_account: int | None = None
    most_used_average: float | None = None


class HistoryPointSchema(DashboardModel):
    timestamp: datetime
    usage: dict[int, float] = Field(default_factory=dict)


class PeriodComparisonSchema(DashboardModel):
    period_days: int
    previous_total: float
    current_total: float
    difference: float
    direction: str


class WeekAverageSchema(DashboardModel):
    account_number: int
    current_average: float | None = None
    previous_average: float | None = None
    difference: float | None = None
    difference_percent: float | None = None
    direction: str


class ActivityBucketSchema(DashboardModel):
    key: int
    label: str
    average_change: float
    samples: int


class RotationSchema(DashboardModel):
    from_account: int
    to_account: int
    count: int


class StreakSchema(DashboardModel):
    timestamp: datetime
    change: float
    account_changes: dict[int, float] = Field(default_factory=dict)


class DailyPeakSchema(DashboardModel):
    day: date
    peaks: dict[int, float] = Field(default_factory=dict)


class CycleStatsSchema(DashboardModel):
    average_usage: float
    max_usage: float
    min_usage: float
    cycles: int


class ReportResponse(DashboardModel):
    generated_at: datetime
    summary: HistorySummarySchema
    averages: dict[int, float] = Field(default_factory=dict)
    total_change: float
    average_daily_consumption: float
    weekly: PeriodComparisonSchema
    monthly: PeriodComparisonSchema
    week_averages: list[WeekAverageSchema] = Field(default_factory=list)
    hourly: list[ActivityBucketSchema] = Field(default_factory=list)
    weekday: list[ActivityBucketSchema] = Field(default_factory=list)
    rotations: list[RotationSchema] = Field(default_factory=list)
    streaks: list[StreakSchema] = Field(default_factory=list)
    daily_peaks: list[DailyPeakSchema] = Field(default_factory=list)
    cycles: CycleStatsSchema


class OverviewResponse(DashboardModel):
    capacity_mode: str
    snapshot: SnapshotSchema
    distribution: list[SuggestedShareSchema] = Field(default_factory=list)
    summary: HistorySummarySchema
    history: list[HistoryPointSchema] = Field(default_factory=list)
