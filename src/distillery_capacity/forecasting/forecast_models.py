"""
Forecast Models

Enterprise rules:
- No logic
- No DB
- Pure data containers
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Tuple

import pandas as pd

from distillery_capacity.enums import ForecastMethod


@dataclass(frozen=True)
class WeeklyForecast:
    week_start: date
    week_end: date
    predicted_utilization: float
    lower_bound: float
    upper_bound: float
    predicted_hours_used: float
    available_hours: float


@dataclass(frozen=True)
class CapacityForecast:
    method: ForecastMethod
    weekly_forecasts: Tuple[WeeklyForecast, ...]
    confidence_level: float
    assumptions: Tuple[str, ...]
    used_synthetic_data: bool = False

    def to_frame(self) -> pd.DataFrame:
        columns = [
            "week_start", "week_end", "predicted_utilization",
            "lower_bound", "upper_bound", "predicted_hours_used", "available_hours",
        ]
        return pd.DataFrame(
            [[getattr(w, c) for c in columns] for w in self.weekly_forecasts],
            columns=columns,
        )


# -------------------------------------------------
# Demand
# -------------------------------------------------

@dataclass(frozen=True)
class WeeklyDemandForecast:
    week_start: date
    week_end: date
    predicted_orders: float
    predicted_batches: float
    lower_bound: float
    upper_bound: float


@dataclass(frozen=True)
class DemandForecast:
    weekly_forecasts: Tuple[WeeklyDemandForecast, ...]
    confidence_level: float
    based_on: str


# -------------------------------------------------
# Capacity vs demand
# -------------------------------------------------

@dataclass(frozen=True)
class WeeklyGap:
    week_start: date
    available_capacity: float
    demand_hours: float
    gap: float
    gap_percent: float


@dataclass(frozen=True)
class GapAnalysis:
    period_start: date
    period_end: date
    weekly_gaps: Tuple[WeeklyGap, ...]
    total_capacity: float
    total_demand: float
    gap_hours: float
    gap_percent: float
    has_shortfall: bool
    recommendations: Tuple[str, ...]
