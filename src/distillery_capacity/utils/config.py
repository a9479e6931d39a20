# src/distillery_capacity/utils/config.py
"""
Engine configuration.

Every tunable number the capacity engine uses lives here so it can be
overridden from the environment / .env or injected directly in tests:

    CAPACITY_DEFAULT_DAILY_HOURS=20
    CAPACITY_SYNTHETIC_FALLBACK=false
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
BASE_DIR = Path(__file__).resolve().parents[3]
load_dotenv(BASE_DIR / ".env")


def _default_seasonal_factors() -> Dict[int, float]:
    factors: Dict[int, float] = {}
    for month in range(1, 13):
        if month <= 2:
            factors[month] = 0.9    # slow start to year
        elif month <= 5:
            factors[month] = 1.1    # spring pickup
        elif month <= 8:
            factors[month] = 1.0    # summer baseline
        elif month <= 11:
            factors[month] = 1.15   # fall busy season
        else:
            factors[month] = 0.85   # holiday slowdown
    return factors


class CapacitySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CAPACITY_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Capacity
    default_daily_hours: float = 16.0

    # Utilization thresholds (percent)
    warning_utilization: float = 85.0
    high_utilization: float = 90.0
    critical_utilization: float = 95.0
    plan_high_utilization: float = 90.0
    trend_change_threshold: float = 5.0

    # Forecasting
    min_forecast_samples: int = 4
    forecast_lookback_weeks: int = 12
    moving_average_window: int = 4
    smoothing_alpha: float = 0.3
    base_confidence_level: float = 0.85
    confidence_decay_per_week: float = 0.01
    confidence_interval_base: float = 10.0
    confidence_interval_step: float = 2.0
    seasonal_factors: Dict[int, float] = Field(default_factory=_default_seasonal_factors)
    synthetic_fallback: bool = True
    synthetic_base: float = 65.0
    synthetic_step: float = 5.0
    synthetic_cycle: int = 4
    synthetic_periods: int = 12

    # Demand forecasting / gap analysis
    demand_lookback_months: int = 12
    default_weekly_demand_quantity: float = 100.0
    default_weekly_batches: int = 5
    demand_growth_per_week: float = 0.02
    demand_confidence_level: float = 0.75
    hours_per_batch: float = 8.0

    # Bottleneck resolutions (estimated cost)
    add_equipment_cost: float = 50000.0
    extend_hours_cost: float = 8000.0
    optimize_schedule_cost: float = 0.0
    reduce_maintenance_cost: float = 5000.0
    estimated_run_delay_hours: float = 2.0

    # What-if scenarios
    scenario_equipment_cost: float = 50000.0
    scenario_hours_increase_cost: float = 8000.0
    scenario_hours_decrease_rebate: float = 2000.0


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    database_url: str = "sqlite:///./distillery_capacity.db"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    sql_echo: bool = False


# Singletons
settings = CapacitySettings()
config = AppConfig()


def resolve_settings(override: Optional[CapacitySettings] = None) -> CapacitySettings:
    """Return the injected settings, falling back to the process-wide ones."""
    return override if override is not None else settings


__all__: List[str] = [
    "AppConfig",
    "CapacitySettings",
    "config",
    "resolve_settings",
    "settings",
]
