"""
Utilization Analyzer

Buckets a range into day / week / month periods and reruns the Aggregator on
each one, ranks equipment by utilization, and labels multi-month trends.
"""

from __future__ import annotations

from datetime import date, timedelta
from statistics import mean
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from distillery_capacity.capacity.capacity_domain import require_valid_range
from distillery_capacity.capacity.capacity_models import (
    EquipmentUtilization,
    MonthlyUtilization,
    UtilizationBreakdown,
    UtilizationReport,
    UtilizationTrend,
)
from distillery_capacity.capacity.capacity_usecase import (
    get_capacity_overview,
    get_equipment_capacity,
)
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import TrendDirection
from distillery_capacity.utils.config import CapacitySettings, resolve_settings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)

GROUP_BY_OPTIONS = ("day", "week", "month")


def _add_months(d: date, months: int) -> date:
    return (pd.Timestamp(d) + pd.DateOffset(months=months)).date()


def _advance(cursor: date, group_by: str) -> date:
    key = (group_by or "week").lower()
    if key == "day":
        return cursor + timedelta(days=1)
    if key == "month":
        return _add_months(cursor, 1)
    return cursor + timedelta(days=7)


def period_boundaries(start: date, end: date, group_by: str = "week") -> List[Tuple[date, date]]:
    """
    Contiguous sub-ranges covering [start, end]; each period starts where the
    previous one ended and the last one is clipped to end. A shared edge day
    belongs to the later period.
    """
    require_valid_range(start, end)
    periods: List[Tuple[date, date]] = []
    cursor = start
    while cursor < end:
        period_end = min(_advance(cursor, group_by), end)
        periods.append((cursor, period_end))
        cursor = period_end
    return periods


def calculate_utilization(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
    group_by: str = "week",
    settings: Optional[CapacitySettings] = None,
) -> UtilizationReport:
    overview = get_capacity_overview(source, company_id, start, end, settings)
    logger.info("Utilization breakdown | company=%s | group_by=%s", company_id, group_by)

    breakdowns = []
    for period_start, period_end in period_boundaries(start, end, group_by):
        # interior edges are shared with the next period; only the last one closes on end
        period = get_capacity_overview(
            source, company_id, period_start, period_end, settings, closed_end=period_end == end
        )
        breakdowns.append(
            UtilizationBreakdown(
                period_start=period_start,
                period_end=period_end,
                utilization_percent=period.utilization_percent,
                capacity_hours=period.total_capacity_hours,
                allocated_hours=period.allocated_hours,
            )
        )

    return UtilizationReport(
        period_start=start,
        period_end=end,
        utilization_percent=overview.utilization_percent,
        capacity_hours=overview.total_capacity_hours,
        allocated_hours=overview.allocated_hours,
        breakdowns=tuple(breakdowns),
    )


def get_equipment_utilization(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
) -> List[EquipmentUtilization]:
    """Active equipment ranked by utilization, highest first."""
    require_valid_range(start, end)
    rows = []
    for eq in source.list_equipment(company_id, active_only=True):
        detail = get_equipment_capacity(source, eq.id, start, end, settings)
        rows.append(
            EquipmentUtilization(
                equipment_id=eq.id,
                equipment_name=eq.name,
                equipment_type=eq.equipment_type.value,
                utilization_percent=detail.utilization_percent,
                capacity_hours=detail.total_capacity_hours,
                allocated_hours=detail.allocated_hours,
                available_hours=detail.available_hours,
                maintenance_hours=detail.maintenance_hours,
            )
        )
    return sorted(rows, key=lambda u: u.utilization_percent, reverse=True)


# ----------------------------
# Trend
# ----------------------------

def trend_direction(
    samples: Sequence[float],
    threshold: float = 5.0,
) -> Tuple[float, TrendDirection]:
    """
    Second-half mean minus first-half mean. With an odd count the extra
    sample belongs to the second half. Fewer than 2 samples is Stable.
    """
    if len(samples) < 2:
        return 0.0, TrendDirection.STABLE

    half = len(samples) // 2
    change = mean(samples[half:]) - mean(samples[:half])

    if change > threshold:
        return change, TrendDirection.INCREASING
    if change < -threshold:
        return change, TrendDirection.DECREASING
    return change, TrendDirection.STABLE


def get_utilization_trend(
    source: CapacityDataSource,
    company_id: int,
    period_months: int = 6,
    as_of: Optional[date] = None,
    settings: Optional[CapacitySettings] = None,
) -> UtilizationTrend:
    cfg = resolve_settings(settings)
    end = as_of or date.today()
    start = _add_months(end, -period_months)

    monthly: List[MonthlyUtilization] = []
    month = start.replace(day=1)
    while month < end:
        month_end = min(_add_months(month, 1) - timedelta(days=1), end)
        overview = get_capacity_overview(source, company_id, month, month_end, cfg)
        monthly.append(
            MonthlyUtilization(
                year=month.year,
                month=month.month,
                utilization_percent=overview.utilization_percent,
                capacity_hours=overview.total_capacity_hours,
                allocated_hours=overview.allocated_hours,
            )
        )
        month = _add_months(month, 1)

    change, direction = trend_direction(
        [m.utilization_percent for m in monthly], cfg.trend_change_threshold
    )

    return UtilizationTrend(
        period_start=start,
        period_end=end,
        monthly=tuple(monthly),
        trend_change=round(change, 2),
        direction=direction,
    )
