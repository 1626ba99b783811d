from __future__ import annotations

from usage_monitor.core.usage.alerts import Alert
from usage_monitor.core.usage.display import AccountDisplay
from usage_monitor.core.usage.projection import depletion_severity, rate_severity, waste_severity
from usage_monitor.core.usage.reports import HistorySummary, PeriodComparison
from usage_monitor.core.usage.snapshot import AccountMetrics, UsageSnapshot
from usage_monitor.core.usage.types import UsageSample
from usage_monitor.modules.reports.schemas import (
    AccountDisplaySchema,
    AccountMetricsSchema,
    ActivityBucketSchema,
    AlertSchema,
    CycleStatsSchema,
    DailyPeakSchema,
    DepletionSchema,
    EfficiencySchema,
    HistoryPointSchema,
    HistorySummarySchema,
    OverviewResponse,
    OverviewSchema,
    PeriodComparisonSchema,
    RecommendationSchema,
    ReportResponse,
    RotationSchema,
    SnapshotSchema,
    StreakSchema,
    SuggestedShareSchema,
    TimeBalanceSchema,
    TrendSchema,
    WeekAverageSchema,
)
from usage_monitor.modules.reports.service import DashboardOverview, UsageReport


def build_display(display: AccountDisplay) -> AccountDisplaySchema:
    return AccountDisplaySchema(
        account_number=display.account_number,
        display_name=display.display_name,
        used=display.used,
        remaining=display.remaining,
        normalized_percent=display.normalized_percent,
        availability=display.availability.value,
        load=display.load.value,
        needs_update=display.needs_update,
    )


def build_account_metrics(metrics: AccountMetrics) -> AccountMetricsSchema:
    projection = metrics.projection
    balance = metrics.time_balance
    return AccountMetricsSchema(
        display=build_display(metrics.display),
        reset_state=metrics.reset_state.value,
        daily_rate=metrics.daily_rate,
        rate_severity=rate_severity(metrics.daily_rate).value,
        depletion=DepletionSchema(
            status=projection.status.value,
            days_remaining=None if projection.is_unbounded else projection.days_remaining,
            depletion_date=projection.depletion_date,
            severity=depletion_severity(projection).value,
        ),
        days_to_reset=metrics.days_to_reset,
        time_balance=(
            TimeBalanceSchema(
                cycle_start=balance.cycle_start,
                reset_date=balance.reset_date,
                percent_time_elapsed=balance.percent_time_elapsed,
                balance=balance.balance,
                severity=balance.severity.value,
            )
            if balance is not None
            else None
        ),
        depletes_before_reset=metrics.depletes_before_reset,
        projected_waste=metrics.projected_waste,
        waste_severity=waste_severity(metrics.projected_waste).value,
        trend=TrendSchema(
            recent_rate=metrics.trend.recent_rate,
            previous_rate=metrics.trend.previous_rate,
            change_percent=metrics.trend.change_percent,
            direction=metrics.trend.direction.value,
        ),
    )


def build_alert(alert: Alert) -> AlertSchema:
    return AlertSchema(
        kind=alert.kind.value,
        code=alert.code,
        title=alert.title,
        description=alert.description,
        account_number=alert.account_number,
    )


def build_snapshot(snapshot: UsageSnapshot) -> SnapshotSchema:
    recommendation = snapshot.recommendation
    return SnapshotSchema(
        computed_at=snapshot.computed_at,
        capacity=snapshot.capacity,
        accounts=[build_account_metrics(metrics) for metrics in snapshot.accounts],
        overview=OverviewSchema(
            total_remaining=snapshot.overview.total_remaining,
            best_account=snapshot.overview.best_account,
            best_remaining=snapshot.overview.best_remaining,
            average_remaining=snapshot.overview.average_remaining,
        ),
        efficiency=EfficiencySchema(
            score=snapshot.efficiency.score,
            label=snapshot.efficiency.label,
            utilization=snapshot.efficiency.utilization,
            balance=snapshot.efficiency.balance,
            timing=snapshot.efficiency.timing,
        ),
        recommendation=(
            RecommendationSchema(
                account_number=recommendation.account_number,
                display_name=recommendation.display_name,
                score=recommendation.score,
                available=recommendation.available,
                reasons=list(recommendation.reasons),
            )
            if recommendation is not None
            else None
        ),
        alerts=[build_alert(alert) for alert in snapshot.alerts],
    )


def build_history_point(sample: UsageSample) -> HistoryPointSchema:
    return HistoryPointSchema(timestamp=sample.timestamp, usage=dict(sample.usage))


def build_summary(summary: HistorySummary) -> HistorySummarySchema:
    return HistorySummarySchema(
        total_records=summary.total_records,
        first_record=summary.first_record,
        last_record=summary.last_record,
        most_used_account=summary.most_used_account,
        most_used_average=summary.most_used_average,
    )


def _build_period(comparison: PeriodComparison) -> PeriodComparisonSchema:
    return PeriodComparisonSchema(
        period_days=comparison.period_days,
        previous_total=comparison.previous_total,
        current_total=comparison.current_total,
        difference=comparison.difference,
        direction=comparison.direction.value,
    )


def build_report(report: UsageReport) -> ReportResponse:
    return ReportResponse(
        generated_at=report.generated_at,
        summary=build_summary(report.summary),
        averages=report.averages,
        total_change=report.total_change,
        average_daily_consumption=report.average_daily_consumption,
        weekly=_build_period(report.weekly),
        monthly=_build_period(report.monthly),
        week_averages=[
            WeekAverageSchema(
                account_number=item.account_number,
                current_average=item.current_average,
                previous_average=item.previous_average,
                difference=item.difference,
                difference_percent=item.difference_percent,
                direction=item.direction.value,
            )
            for item in report.week_averages
        ],
        hourly=[
            ActivityBucketSchema(key=item.key, label=item.label, average_change=item.average_change, samples=item.samples)
            for item in report.hourly
        ],
        weekday=[
            ActivityBucketSchema(key=item.key, label=item.label, average_change=item.average_change, samples=item.samples)
            for item in report.weekday
        ],
        rotations=[
            RotationSchema(from_account=item.from_account, to_account=item.to_account, count=item.count)
            for item in report.rotations
        ],
        streaks=[
            StreakSchema(timestamp=item.timestamp, change=item.change, account_changes=dict(item.account_changes))
            for item in report.streaks
        ],
        daily_peaks=[DailyPeakSchema(day=item.day, peaks=dict(item.peaks)) for item in report.daily_peaks],
        cycles=CycleStatsSchema(
            average_usage=report.cycles.average_usage,
            max_usage=report.cycles.max_usage,
            min_usage=report.cycles.min_usage,
            cycles=report.cycles.cycles,
        ),
    )


def build_overview(overview: DashboardOverview) -> OverviewResponse:
    return OverviewResponse(
        capacity_mode=overview.settings.capacity_mode.value,
        snapshot=build_snapshot(overview.snapshot),
        distribution=[
            SuggestedShareSchema(
                account_number=share.account_number,
                usage_percent=share.usage_percent,
                days_to_reset=share.days_to_reset,
                suggested_percent=share.suggested_percent,
            )
            for share in overview.distribution
        ],
        summary=build_summary(overview.summary),
        history=[build_history_point(sample) for sample in overview.history],
    )
