"""KPI derivation for the weekly performance dashboard."""

import math
from typing import Optional, Sequence

import structlog

from grid_dashboard.models.domain_models import (
    KPISummary,
    StabilityStatus,
    StatusMetric,
    TrendMetric,
    WeeklyRecord,
)

logger = structlog.get_logger()

# (stable floor, moderate floor) in percent
GRID_STABILITY_THRESHOLDS = (80.0, 60.0)
SYSTEM_AVAILABILITY_THRESHOLDS = (99.0, 95.0)


def percent_change(latest: float, previous: float) -> float:
    """Percentage change from previous to latest.

    A zero previous value gives +inf/-inf for a non-zero delta and nan when
    both values are zero.
    """
    delta = latest - previous
    if previous == 0:
        if delta == 0:
            return math.nan
        return math.copysign(math.inf, delta)
    return delta / previous * 100


def classify(value: float, thresholds: tuple[float, float]) -> StabilityStatus:
    stable_floor, moderate_floor = thresholds
    if value >= stable_floor:
        return "stable"
    if value >= moderate_floor:
        return "moderate"
    return "critical"


def _trend(latest: float, previous: float) -> TrendMetric:
    return TrendMetric(
        value=latest,
        percent_change=percent_change(latest, previous),
        trend_direction="up" if latest > previous else "down",
    )


def summarize(records: Sequence[WeeklyRecord]) -> Optional[KPISummary]:
    """Derive top-line KPIs for the most recent week.

    The latest record is compared with the one before it; with a single record
    it is compared with itself, giving a 0% change and a "down" trend. Grid
    stability and system availability are averaged over every record.

    Args:
        records: Weekly records in chronological order

    Returns:
        KPISummary, or None when there are no records
    """
    if not records:
        return None

    latest = records[-1]
    previous = records[-2] if len(records) > 1 else latest

    avg_frequency_within_range = sum(r.frequency_within_range for r in records) / len(records)
    avg_system_availability = sum(
        r.mean_transmission_availability for r in records
    ) / len(records)

    summary = KPISummary(
        peak_demand=_trend(latest.max_ghana_demand, previous.max_ghana_demand),
        total_generation=_trend(latest.total_energy_generated, previous.total_energy_generated),
        grid_stability=StatusMetric(
            value=avg_frequency_within_range,
            status=classify(avg_frequency_within_range, GRID_STABILITY_THRESHOLDS),
        ),
        system_availability=StatusMetric(
            value=avg_system_availability,
            status=classify(avg_system_availability, SYSTEM_AVAILABILITY_THRESHOLDS),
        ),
    )

    logger.debug(
        "kpis_calculated",
        weeks=len(records),
        peak_demand=summary.peak_demand.value,
        grid_stability_status=summary.grid_stability.status,
        system_availability_status=summary.system_availability.status,
    )

    return summary
