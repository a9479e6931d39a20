"""
Capacity Domain Logic

Enterprise rules:
- Pure functions only
- No database access
- No printing
- No side effects
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from distillery_capacity.capacity.capacity_models import (
    AllocationSummary,
    CapacityAlert,
    CapacityByProductionType,
    CapacityOverview,
    ConstraintSummary,
    EquipmentCapacityDetail,
    EquipmentCapacitySummary,
)
from distillery_capacity.capacity.constraints import daily_hours_for_equipment
from distillery_capacity.data.records import CapacityAllocation, CapacityConstraint, Equipment
from distillery_capacity.enums import AlertSeverity, AllocationType, ProductionType
from distillery_capacity.errors import InvalidRange
from distillery_capacity.utils.config import CapacitySettings, resolve_settings


# ----------------------------
# Date ranges
# ----------------------------

def require_valid_range(start: date, end: date) -> None:
    if end <= start:
        raise InvalidRange(start, end)


def total_days(start: date, end: date) -> int:
    """Inclusive day count of [start, end]."""
    return (end - start).days + 1


# ----------------------------
# Proration
# ----------------------------

def hours_in_range(
    allocation: CapacityAllocation, start: date, end: date, closed_end: bool = True
) -> float:
    """
    Portion of an allocation's hours that falls inside [start, end].

    Hours are spread linearly over the allocation's span measured in day
    boundaries crossed, so ranges that share an edge split an allocation
    without double counting. A zero-length allocation counts in full when its
    day lies in [start, end]; with closed_end=False the end day is left to the
    following range.
    """
    span = allocation.span_days
    if span <= 0:
        day = allocation.start_date
        inside = start <= day <= end if closed_end else start <= day < end
        return allocation.hours_allocated if inside else 0.0

    overlap_start = max(allocation.start_date, start)
    overlap_end = min(allocation.end_date, end)
    if overlap_start >= overlap_end:
        return 0.0

    overlap_days = (overlap_end - overlap_start).days
    return allocation.hours_allocated * (overlap_days / span)


def allocated_hours(
    allocations: Iterable[CapacityAllocation], start: date, end: date, closed_end: bool = True
) -> float:
    return sum(hours_in_range(a, start, end, closed_end) for a in allocations)


# ----------------------------
# Capacity / Utilization
# ----------------------------

def utilization_percent(allocated: float, capacity: float) -> float:
    return (allocated / capacity) * 100 if capacity > 0 else 0.0


def available_hours(capacity: float, allocated: float) -> float:
    return max(0.0, capacity - allocated)


def build_alert(
    equipment: Equipment,
    utilization: float,
    settings: Optional[CapacitySettings] = None,
) -> Optional[CapacityAlert]:
    """
    At most one alert per equipment:
    - Critical >= 95%
    - Warning  >= 85%
    """
    cfg = resolve_settings(settings)
    if utilization >= cfg.critical_utilization:
        return CapacityAlert(
            severity=AlertSeverity.CRITICAL,
            title="Critical Utilization",
            description=f"{equipment.name} is at {utilization:.1f}% utilization",
            equipment_id=equipment.id,
            equipment_name=equipment.name,
        )
    if utilization >= cfg.warning_utilization:
        return CapacityAlert(
            severity=AlertSeverity.WARNING,
            title="High Utilization",
            description=f"{equipment.name} is at {utilization:.1f}% utilization",
            equipment_id=equipment.id,
            equipment_name=equipment.name,
        )
    return None


# ----------------------------
# Equipment Summaries
# ----------------------------

def summarize_equipment(
    equipment: Equipment,
    allocations: Sequence[CapacityAllocation],
    constraints: Sequence[CapacityConstraint],
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
    closed_end: bool = True,
) -> EquipmentCapacitySummary:
    capacity = daily_hours_for_equipment(equipment.id, constraints, settings) * total_days(start, end)
    own = (a for a in allocations if a.equipment_id == equipment.id)
    allocated = allocated_hours(own, start, end, closed_end)

    return EquipmentCapacitySummary(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        equipment_type=equipment.equipment_type.value,
        total_capacity_hours=capacity,
        allocated_hours=allocated,
        available_hours=available_hours(capacity, allocated),
        utilization_percent=utilization_percent(allocated, capacity),
    )


def build_overview(
    equipment: Sequence[Equipment],
    allocations: Sequence[CapacityAllocation],
    constraints: Sequence[CapacityConstraint],
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
    closed_end: bool = True,
) -> CapacityOverview:
    """
    Company overview: per-equipment figures, summed (not recomputed) into the
    totals. Utilization is rounded to 2 places for display; alerts use the
    unrounded value.
    """
    require_valid_range(start, end)

    summaries: List[EquipmentCapacitySummary] = []
    alerts: List[CapacityAlert] = []
    for eq in equipment:
        summary = summarize_equipment(eq, allocations, constraints, start, end, settings, closed_end)
        alert = build_alert(eq, summary.utilization_percent, settings)
        if alert is not None:
            alerts.append(alert)
        summaries.append(
            EquipmentCapacitySummary(
                equipment_id=summary.equipment_id,
                equipment_name=summary.equipment_name,
                equipment_type=summary.equipment_type,
                total_capacity_hours=summary.total_capacity_hours,
                allocated_hours=summary.allocated_hours,
                available_hours=summary.available_hours,
                utilization_percent=round(summary.utilization_percent, 2),
            )
        )

    total_capacity = sum(s.total_capacity_hours for s in summaries)
    total_allocated = sum(s.allocated_hours for s in summaries)

    return CapacityOverview(
        equipment_count=len(equipment),
        total_capacity_hours=total_capacity,
        allocated_hours=total_allocated,
        available_hours=available_hours(total_capacity, total_allocated),
        utilization_percent=round(utilization_percent(total_allocated, total_capacity), 2),
        equipment_summaries=tuple(summaries),
        alerts=tuple(alerts),
    )


# ----------------------------
# Equipment Detail
# ----------------------------

def _allocation_summary(a: CapacityAllocation) -> AllocationSummary:
    return AllocationSummary(
        allocation_id=a.id,
        allocation_type=a.allocation_type.value,
        start_date=a.start_date,
        end_date=a.end_date,
        hours_allocated=a.hours_allocated,
        production_type=a.production_type.value if a.production_type else None,
        notes=a.notes,
    )


def _constraint_summary(c: CapacityConstraint) -> ConstraintSummary:
    return ConstraintSummary(
        constraint_id=c.id,
        constraint_type=c.constraint_type.value,
        constraint_value=c.constraint_value,
        effective_from=c.effective_from,
        effective_to=c.effective_to,
        reason=c.reason,
    )


def build_equipment_detail(
    equipment: Equipment,
    allocations: Sequence[CapacityAllocation],
    constraints: Sequence[CapacityConstraint],
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
    closed_end: bool = True,
) -> EquipmentCapacityDetail:
    require_valid_range(start, end)

    own = [a for a in allocations if a.equipment_id == equipment.id]
    capacity = daily_hours_for_equipment(equipment.id, constraints, settings) * total_days(start, end)

    by_type: Dict[AllocationType, float] = defaultdict(float)
    for a in own:
        by_type[a.allocation_type] += hours_in_range(a, start, end, closed_end)

    production = by_type[AllocationType.PRODUCTION]
    maintenance = by_type[AllocationType.MAINTENANCE]
    buffer = by_type[AllocationType.BUFFER]
    allocated = production + maintenance + buffer

    return EquipmentCapacityDetail(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        equipment_type=equipment.equipment_type.value,
        total_capacity_hours=capacity,
        allocated_hours=allocated,
        production_hours=production,
        maintenance_hours=maintenance,
        buffer_hours=buffer,
        available_hours=available_hours(capacity, allocated),
        utilization_percent=round(utilization_percent(allocated, capacity), 2),
        allocations=tuple(_allocation_summary(a) for a in own),
        active_constraints=tuple(_constraint_summary(c) for c in constraints),
    )


# ----------------------------
# Production Type Mix
# ----------------------------

def capacity_by_production_type(
    allocations: Iterable[CapacityAllocation], start: date, end: date
) -> List[CapacityByProductionType]:
    hours: Dict[ProductionType, float] = defaultdict(float)
    counts: Dict[ProductionType, int] = defaultdict(int)

    for a in allocations:
        if a.allocation_type != AllocationType.PRODUCTION:
            continue
        key = a.production_type or ProductionType.OTHER
        hours[key] += hours_in_range(a, start, end)
        counts[key] += 1

    total = sum(hours.values())
    rows = [
        CapacityByProductionType(
            production_type=key.value,
            allocated_hours=h,
            percent_of_total=round(h / total * 100, 2) if total > 0 else 0.0,
            allocation_count=counts[key],
        )
        for key, h in hours.items()
    ]
    return sorted(rows, key=lambda r: r.allocated_hours, reverse=True)
