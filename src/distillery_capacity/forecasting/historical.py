"""
Historical series for the forecast engine.

Snapshots and orders are bucketed into weeks keyed by
(calendar year, day-of-year // 7) and reduced with pandas.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import pandas as pd

from distillery_capacity.data.records import CapacitySnapshot, Order
from distillery_capacity.utils.config import CapacitySettings, resolve_settings


def _week_keys(dates: pd.Series) -> Tuple[pd.Series, pd.Series]:
    dates = pd.to_datetime(dates)
    return dates.dt.year, dates.dt.dayofyear // 7


def weekly_utilization_samples(snapshots: Sequence[CapacitySnapshot]) -> List[float]:
    """Average snapshot utilization per week, oldest week first."""
    if not snapshots:
        return []

    df = pd.DataFrame(
        {
            "snapshot_date": [s.snapshot_date for s in snapshots],
            "utilization_percent": [s.utilization_percent for s in snapshots],
        }
    )
    df["year"], df["week"] = _week_keys(df["snapshot_date"])

    weekly = (
        df.groupby(["year", "week"], sort=True)["utilization_percent"]
        .mean()
        .reset_index()
    )
    return [float(v) for v in weekly["utilization_percent"]]


def weekly_order_totals(orders: Sequence[Order]) -> pd.DataFrame:
    """Columns: year, week, order_count, total_quantity."""
    columns = ["year", "week", "order_count", "total_quantity"]
    if not orders:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        {
            "created_at": [o.created_at for o in orders],
            "quantity": [o.quantity for o in orders],
        }
    )
    df["year"], df["week"] = _week_keys(df["created_at"])

    weekly = (
        df.groupby(["year", "week"], sort=True)
        .agg(order_count=("quantity", "size"), total_quantity=("quantity", "sum"))
        .reset_index()
    )
    return weekly[columns]


def synthetic_samples(settings: Optional[CapacitySettings] = None) -> List[float]:
    """Fixed repeating pattern: 65, 70, 75, 80, 65, ... (12 periods by default)."""
    cfg = resolve_settings(settings)
    return [
        cfg.synthetic_base + (i % cfg.synthetic_cycle) * cfg.synthetic_step
        for i in range(cfg.synthetic_periods)
    ]
