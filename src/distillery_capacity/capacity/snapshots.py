"""
Capacity snapshots.

A snapshot is one day of capacity figures per active equipment. The engine
computes them; the storage layer appends them. The forecast engine reads them
back as its history.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from distillery_capacity.capacity.capacity_domain import require_valid_range
from distillery_capacity.capacity.capacity_usecase import get_equipment_capacity
from distillery_capacity.data.records import CapacitySnapshot
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.utils.config import CapacitySettings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def capture_capacity_snapshots(
    source: CapacityDataSource,
    company_id: int,
    snapshot_date: date,
    settings: Optional[CapacitySettings] = None,
) -> List[CapacitySnapshot]:
    next_day = snapshot_date + timedelta(days=1)
    snapshots = []
    for eq in source.list_equipment(company_id, active_only=True):
        detail = get_equipment_capacity(
            source, eq.id, snapshot_date, next_day, settings, closed_end=False
        )
        snapshots.append(
            CapacitySnapshot(
                company_id=company_id,
                equipment_id=eq.id,
                snapshot_date=snapshot_date,
                total_capacity_hours=detail.total_capacity_hours,
                allocated_hours=detail.allocated_hours,
                maintenance_hours=detail.maintenance_hours,
                utilization_percent=detail.utilization_percent,
            )
        )

    logger.info(
        "Captured capacity snapshots | company=%s | date=%s | count=%s",
        company_id, snapshot_date, len(snapshots),
    )
    return snapshots


def get_historical_snapshots(
    source: CapacityDataSource, company_id: int, start: date, end: date
) -> List[CapacitySnapshot]:
    require_valid_range(start, end)
    rows = source.list_historical_snapshots(company_id, start, end)
    return sorted(rows, key=lambda s: (s.snapshot_date, s.equipment_id))
