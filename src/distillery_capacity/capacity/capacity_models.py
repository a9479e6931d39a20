"""
Capacity Domain Models

Enterprise rules:
- No logic
- No DB
- No formatting
- Pure data containers
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import pandas as pd

from distillery_capacity.enums import (
    AlertSeverity,
    BottleneckSeverity,
    ResolutionType,
    TrendDirection,
)


# -------------------------------------------------
# Overview
# -------------------------------------------------

@dataclass(frozen=True)
class EquipmentCapacitySummary:
    equipment_id: int
    equipment_name: str
    equipment_type: str
    total_capacity_hours: float
    allocated_hours: float
    available_hours: float
    utilization_percent: float


@dataclass(frozen=True)
class CapacityAlert:
    severity: AlertSeverity
    title: str
    description: str
    equipment_id: Optional[int] = None
    equipment_name: Optional[str] = None


@dataclass(frozen=True)
class CapacityOverview:
    equipment_count: int
    total_capacity_hours: float
    allocated_hours: float
    available_hours: float
    utilization_percent: float
    equipment_summaries: Tuple[EquipmentCapacitySummary, ...] = ()
    alerts: Tuple[CapacityAlert, ...] = ()


# -------------------------------------------------
# Per-equipment detail
# -------------------------------------------------

@dataclass(frozen=True)
class AllocationSummary:
    allocation_id: Optional[int]
    allocation_type: str
    start_date: date
    end_date: date
    hours_allocated: float
    production_type: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ConstraintSummary:
    constraint_id: Optional[int]
    constraint_type: str
    constraint_value: float
    effective_from: date
    effective_to: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class EquipmentCapacityDetail:
    equipment_id: int
    equipment_name: str
    equipment_type: str
    total_capacity_hours: float
    allocated_hours: float
    production_hours: float
    maintenance_hours: float
    buffer_hours: float
    available_hours: float
    utilization_percent: float
    allocations: Tuple[AllocationSummary, ...] = ()
    active_constraints: Tuple[ConstraintSummary, ...] = ()


@dataclass(frozen=True)
class CapacityByProductionType:
    production_type: str
    allocated_hours: float
    percent_of_total: float
    allocation_count: int


# -------------------------------------------------
# Utilization
# -------------------------------------------------

@dataclass(frozen=True)
class UtilizationBreakdown:
    period_start: date
    period_end: date
    utilization_percent: float
    capacity_hours: float
    allocated_hours: float


@dataclass(frozen=True)
class UtilizationReport:
    period_start: date
    period_end: date
    utilization_percent: float
    capacity_hours: float
    allocated_hours: float
    breakdowns: Tuple[UtilizationBreakdown, ...] = ()

    def to_frame(self) -> pd.DataFrame:
        columns = ["period_start", "period_end", "utilization_percent", "capacity_hours", "allocated_hours"]
        return pd.DataFrame(
            [[getattr(b, c) for c in columns] for b in self.breakdowns],
            columns=columns,
        )


@dataclass(frozen=True)
class EquipmentUtilization:
    equipment_id: int
    equipment_name: str
    equipment_type: str
    utilization_percent: float
    capacity_hours: float
    allocated_hours: float
    available_hours: float
    maintenance_hours: float


@dataclass(frozen=True)
class MonthlyUtilization:
    year: int
    month: int
    utilization_percent: float
    capacity_hours: float
    allocated_hours: float


@dataclass(frozen=True)
class UtilizationTrend:
    period_start: date
    period_end: date
    monthly: Tuple[MonthlyUtilization, ...]
    trend_change: float
    direction: TrendDirection


# -------------------------------------------------
# Bottlenecks
# -------------------------------------------------

@dataclass(frozen=True)
class Bottleneck:
    equipment_id: int
    equipment_name: str
    equipment_type: str
    severity: BottleneckSeverity
    utilization_percent: float
    affected_production_runs: int
    average_wait_hours: float
    estimated_lost_capacity: float
    description: str


@dataclass(frozen=True)
class AffectedRunSummary:
    production_run_id: int
    production_run_name: str
    scheduled_start: date
    delay_hours: float
    impact_description: str


@dataclass(frozen=True)
class BottleneckAnalysis:
    equipment_id: int
    equipment_name: str
    severity: BottleneckSeverity
    utilization_percent: float
    affected_runs: Tuple[AffectedRunSummary, ...]
    average_wait_hours: float
    max_wait_hours: float
    estimated_lost_capacity: float
    contributing_factors: Tuple[str, ...]


@dataclass(frozen=True)
class BottleneckResolution:
    resolution_type: ResolutionType
    description: str
    estimated_cost: float
    estimated_capacity_gain: float
    implementation_days: int
    prerequisites: Tuple[str, ...]
    effectiveness_score: int
