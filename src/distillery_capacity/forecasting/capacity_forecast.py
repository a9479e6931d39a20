"""
Forecast Engine Use Cases

Purpose:
- Turn historical snapshots into weekly utilization forecasts
- Project weekly order demand from recent orders
- Compare the two week by week (capacity gap)

Important:
- Forecast weeks start on Sunday (the Sunday on or before as_of)
- Sparse history falls back to a synthetic series only when
  settings.synthetic_fallback is on; the result is then flagged
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

import pandas as pd

from distillery_capacity.capacity.capacity_domain import require_valid_range
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import ForecastMethod, parse_enum
from distillery_capacity.errors import InsufficientData, InvalidArgument
from distillery_capacity.forecasting.forecast_algorithm import predict
from distillery_capacity.forecasting.forecast_models import (
    CapacityForecast,
    DemandForecast,
    GapAnalysis,
    WeeklyDemandForecast,
    WeeklyForecast,
    WeeklyGap,
)
from distillery_capacity.forecasting.historical import (
    synthetic_samples,
    weekly_order_totals,
    weekly_utilization_samples,
)
from distillery_capacity.utils.config import CapacitySettings, resolve_settings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)

BASE_ASSUMPTIONS = (
    "Based on historical utilization patterns",
    "Assumes current equipment configuration",
    "Does not account for planned maintenance",
)
SYNTHETIC_ASSUMPTION = "Insufficient history: forecast uses a synthetic utilization pattern"


def week_start_for(d: date) -> date:
    """Sunday on or before d."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def _require_weeks(weeks_ahead: int) -> None:
    if weeks_ahead < 1:
        raise InvalidArgument("weeks_ahead must be at least 1", weeks_ahead)


# ----------------------------
# History
# ----------------------------

def historical_utilization(
    source: CapacityDataSource,
    company_id: int,
    as_of: date,
    settings: Optional[CapacitySettings] = None,
) -> List[float]:
    cfg = resolve_settings(settings)
    start = as_of - timedelta(weeks=cfg.forecast_lookback_weeks)
    snapshots = source.list_historical_snapshots(company_id, start, as_of)
    return weekly_utilization_samples(snapshots)


# ----------------------------
# Capacity forecast
# ----------------------------

def forecast_capacity(
    source: CapacityDataSource,
    company_id: int,
    weeks_ahead: int,
    method: object = ForecastMethod.MOVING_AVERAGE,
    as_of: Optional[date] = None,
    settings: Optional[CapacitySettings] = None,
) -> CapacityForecast:
    cfg = resolve_settings(settings)
    _require_weeks(weeks_ahead)
    method = parse_enum(ForecastMethod, method).unwrap()
    today = as_of or date.today()

    logger.info(
        "Forecast capacity | company=%s | weeks=%s | method=%s",
        company_id, weeks_ahead, method.value,
    )

    samples = historical_utilization(source, company_id, today, cfg)
    assumptions = list(BASE_ASSUMPTIONS)
    used_synthetic = False

    if len(samples) < cfg.min_forecast_samples:
        if not cfg.synthetic_fallback:
            raise InsufficientData(len(samples), cfg.min_forecast_samples)
        logger.warning(
            "Only %s historical period(s) for company=%s; using synthetic utilization pattern",
            len(samples), company_id,
        )
        samples = synthetic_samples(cfg)
        assumptions.append(SYNTHETIC_ASSUMPTION)
        used_synthetic = True

    equipment_count = len(source.list_equipment(company_id, active_only=True))
    weekly_capacity = equipment_count * cfg.default_daily_hours * 7
    first_week = week_start_for(today)

    forecasts = []
    for i in range(weeks_ahead):
        week_start = first_week + timedelta(days=7 * i)
        prediction = predict(method, samples, i, week_start, cfg)
        interval = cfg.confidence_interval_base + cfg.confidence_interval_step * i

        forecasts.append(
            WeeklyForecast(
                week_start=week_start,
                week_end=week_start + timedelta(days=6),
                predicted_utilization=round(prediction, 2),
                lower_bound=max(0.0, round(prediction - interval, 2)),
                upper_bound=min(100.0, round(prediction + interval, 2)),
                predicted_hours_used=round(weekly_capacity * prediction / 100, 2),
                available_hours=weekly_capacity,
            )
        )

    return CapacityForecast(
        method=method,
        weekly_forecasts=tuple(forecasts),
        confidence_level=round(
            cfg.base_confidence_level - cfg.confidence_decay_per_week * weeks_ahead, 4
        ),
        assumptions=tuple(assumptions),
        used_synthetic_data=used_synthetic,
    )


# ----------------------------
# Demand forecast
# ----------------------------

def forecast_demand(
    source: CapacityDataSource,
    company_id: int,
    weeks_ahead: int,
    as_of: Optional[date] = None,
    settings: Optional[CapacitySettings] = None,
) -> DemandForecast:
    """
    Weekly order quantity projected from the average of the last 12 months'
    weekly totals, growing 2% per week ahead. No orders -> configured defaults.
    """
    cfg = resolve_settings(settings)
    _require_weeks(weeks_ahead)
    today = as_of or date.today()

    since = (pd.Timestamp(today) - pd.DateOffset(months=cfg.demand_lookback_months)).date()
    weekly = weekly_order_totals(source.list_orders(company_id, datetime.combine(since, time.min)))

    if weekly.empty:
        avg_quantity = cfg.default_weekly_demand_quantity
        avg_batches = cfg.default_weekly_batches
    else:
        avg_quantity = float(weekly["total_quantity"].mean())
        avg_batches = int(weekly["order_count"].mean())

    logger.info(
        "Forecast demand | company=%s | weeks=%s | history_weeks=%s",
        company_id, weeks_ahead, len(weekly),
    )

    first_week = week_start_for(today)
    forecasts = tuple(
        WeeklyDemandForecast(
            week_start=first_week + timedelta(days=7 * i),
            week_end=first_week + timedelta(days=7 * i + 6),
            predicted_orders=round(avg_quantity * (1 + i * cfg.demand_growth_per_week), 2),
            predicted_batches=avg_batches,
            lower_bound=round(avg_quantity * 0.8, 2),
            upper_bound=round(avg_quantity * 1.2, 2),
        )
        for i in range(weeks_ahead)
    )

    return DemandForecast(
        weekly_forecasts=forecasts,
        confidence_level=cfg.demand_confidence_level,
        based_on="Historical order patterns",
    )


# ----------------------------
# Capacity vs demand
# ----------------------------

def analyze_capacity_gap(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
    as_of: Optional[date] = None,
    settings: Optional[CapacitySettings] = None,
) -> GapAnalysis:
    """Forecast weeks begin at the week holding as_of (default: start)."""
    cfg = resolve_settings(settings)
    require_valid_range(start, end)
    anchor = as_of or start
    weeks = (end - start).days // 7 + 1

    capacity = forecast_capacity(
        source, company_id, weeks, ForecastMethod.MOVING_AVERAGE, anchor, cfg
    )
    demand = forecast_demand(source, company_id, weeks, anchor, cfg)
    demand_by_week = {d.week_start: d for d in demand.weekly_forecasts}

    gaps = []
    for week in capacity.weekly_forecasts:
        week_demand = demand_by_week.get(week.week_start)
        if week_demand is None:
            continue
        demand_hours = week_demand.predicted_batches * cfg.hours_per_batch
        gap = week.available_hours - demand_hours
        gaps.append(
            WeeklyGap(
                week_start=week.week_start,
                available_capacity=week.available_hours,
                demand_hours=demand_hours,
                gap=gap,
                gap_percent=round(gap / week.available_hours * 100, 2) if week.available_hours > 0 else 0.0,
            )
        )

    total_capacity = sum(g.available_capacity for g in gaps)
    total_demand = sum(g.demand_hours for g in gaps)
    total_gap = total_capacity - total_demand
    has_shortfall = total_gap < 0

    recommendations = ()
    if has_shortfall:
        recommendations = (
            "Consider adding equipment or extending operating hours",
            "Review production schedule for optimization opportunities",
        )
    elif total_gap > total_capacity * 0.3:
        recommendations = (
            "Significant excess capacity available",
            "Consider taking on additional orders or scheduling maintenance",
        )

    logger.info(
        "Capacity gap | company=%s | capacity=%.1f | demand=%.1f | shortfall=%s",
        company_id, total_capacity, total_demand, has_shortfall,
    )

    return GapAnalysis(
        period_start=start,
        period_end=end,
        weekly_gaps=tuple(gaps),
        total_capacity=total_capacity,
        total_demand=total_demand,
        gap_hours=total_gap,
        gap_percent=round(total_gap / total_capacity * 100, 2) if total_capacity > 0 else 0.0,
        has_shortfall=has_shortfall,
        recommendations=recommendations,
    )
