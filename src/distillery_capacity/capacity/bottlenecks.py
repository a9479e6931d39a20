"""
Bottleneck Detector

Enterprise rules:
- Severity bands are inclusive on their lower bound
- Results are built once and returned as tuples
- Never writes to the data source
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple

from distillery_capacity.capacity.capacity_domain import require_valid_range
from distillery_capacity.capacity.capacity_models import (
    AffectedRunSummary,
    Bottleneck,
    BottleneckAnalysis,
    BottleneckResolution,
    EquipmentCapacityDetail,
)
from distillery_capacity.capacity.capacity_usecase import (
    get_equipment_capacity,
    require_equipment,
)
from distillery_capacity.data.records import Equipment
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import BottleneckSeverity, ResolutionType, TERMINAL_RUN_STATUSES
from distillery_capacity.utils.config import CapacitySettings, resolve_settings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def classify_severity(
    utilization: float, settings: Optional[CapacitySettings] = None
) -> BottleneckSeverity:
    cfg = resolve_settings(settings)
    if utilization >= cfg.critical_utilization:
        return BottleneckSeverity.CRITICAL
    if utilization >= cfg.high_utilization:
        return BottleneckSeverity.HIGH
    if utilization >= cfg.warning_utilization:
        return BottleneckSeverity.MEDIUM
    return BottleneckSeverity.LOW


def estimated_lost_capacity(detail: EquipmentCapacityDetail) -> float:
    return max(0.0, detail.allocated_hours - detail.available_hours)


def _describe(equipment: Equipment, utilization: float, run_count: int) -> str:
    text = f"{equipment.name} is at {utilization:.1f}% utilization"
    if run_count:
        text += f" with {run_count} production run(s) competing for time"
    return text


def _build_bottleneck(
    source: CapacityDataSource,
    equipment: Equipment,
    detail: EquipmentCapacityDetail,
    severity: BottleneckSeverity,
    start: date,
    end: date,
) -> Bottleneck:
    runs = source.list_production_runs(
        equipment.id, start, end, exclude_statuses=TERMINAL_RUN_STATUSES
    )
    lost = estimated_lost_capacity(detail)

    return Bottleneck(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        equipment_type=equipment.equipment_type.value,
        severity=severity,
        utilization_percent=detail.utilization_percent,
        affected_production_runs=len(runs),
        average_wait_hours=lost / max(1, len(runs)),
        estimated_lost_capacity=lost,
        description=_describe(equipment, detail.utilization_percent, len(runs)),
    )


# ----------------------------
# Identification
# ----------------------------

def identify_bottlenecks(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
    min_severity: Optional[BottleneckSeverity] = None,
    settings: Optional[CapacitySettings] = None,
) -> Tuple[Bottleneck, ...]:
    """
    Equipment at or above the warning threshold, narrowed to min_severity
    and up when one is given. Sorted by severity, then utilization, descending.
    """
    cfg = resolve_settings(settings)
    require_valid_range(start, end)
    logger.info(
        "Identify bottlenecks | company=%s | %s -> %s | min_severity=%s",
        company_id, start, end, min_severity.label if min_severity is not None else None,
    )

    found = []
    for eq in source.list_equipment(company_id, active_only=True):
        detail = get_equipment_capacity(source, eq.id, start, end, cfg)
        severity = classify_severity(detail.utilization_percent, cfg)

        if detail.utilization_percent < cfg.warning_utilization:
            continue
        if min_severity is not None and severity < min_severity:
            continue

        found.append(_build_bottleneck(source, eq, detail, severity, start, end))

    return tuple(
        sorted(found, key=lambda b: (b.severity, b.utilization_percent), reverse=True)
    )


# ----------------------------
# Single-equipment analysis
# ----------------------------

def _contributing_factors(
    detail: EquipmentCapacityDetail, run_count: int, cfg: CapacitySettings
) -> Tuple[str, ...]:
    factors = []
    if detail.utilization_percent > cfg.high_utilization:
        factors.append("Very high demand on this equipment")
    if detail.maintenance_hours > detail.total_capacity_hours * 0.1:
        factors.append("Significant maintenance overhead")
    if run_count > 5:
        factors.append("Multiple production runs competing for time slots")
    return tuple(factors)


def analyze_bottleneck(
    source: CapacityDataSource,
    equipment_id: int,
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
) -> BottleneckAnalysis:
    cfg = resolve_settings(settings)
    detail = get_equipment_capacity(source, equipment_id, start, end, cfg)
    runs = source.list_production_runs(
        equipment_id, start, end, exclude_statuses=TERMINAL_RUN_STATUSES
    )
    logger.info("Analyze bottleneck | equipment=%s | runs=%s", equipment_id, len(runs))

    delay = cfg.estimated_run_delay_hours
    affected = tuple(
        AffectedRunSummary(
            production_run_id=run.id,
            production_run_name=run.name,
            scheduled_start=run.scheduled_start,
            delay_hours=delay,
            impact_description="Potential delay due to equipment availability",
        )
        for run in runs
    )
    wait = delay if affected else 0.0

    return BottleneckAnalysis(
        equipment_id=detail.equipment_id,
        equipment_name=detail.equipment_name,
        severity=classify_severity(detail.utilization_percent, cfg),
        utilization_percent=detail.utilization_percent,
        affected_runs=affected,
        average_wait_hours=wait,
        max_wait_hours=wait,
        estimated_lost_capacity=max(0.0, detail.allocated_hours - detail.total_capacity_hours),
        contributing_factors=_contributing_factors(detail, len(runs), cfg),
    )


# ----------------------------
# Resolutions
# ----------------------------

def suggest_resolutions(
    bottleneck: Bottleneck, settings: Optional[CapacitySettings] = None
) -> Tuple[BottleneckResolution, ...]:
    """
    Fixed catalog, filtered by severity:
    - AddEquipment only for High / Critical
    - ReduceMaintenanceTime for Medium and above
    Capacity gain is a fraction of the bottleneck's lost capacity.
    """
    cfg = resolve_settings(settings)
    lost = bottleneck.estimated_lost_capacity
    severity = bottleneck.severity

    catalog = []
    if severity >= BottleneckSeverity.HIGH:
        catalog.append(
            BottleneckResolution(
                resolution_type=ResolutionType.ADD_EQUIPMENT,
                description=f"Add another {bottleneck.equipment_type} to increase capacity",
                estimated_cost=cfg.add_equipment_cost,
                estimated_capacity_gain=lost * 0.5,
                implementation_days=90,
                prerequisites=("Budget approval", "Space availability", "Staff training"),
                effectiveness_score=90,
            )
        )

    catalog.append(
        BottleneckResolution(
            resolution_type=ResolutionType.EXTEND_HOURS,
            description="Extend operating hours by adding a second shift",
            estimated_cost=cfg.extend_hours_cost,
            estimated_capacity_gain=lost * 0.3,
            implementation_days=14,
            prerequisites=("Staff availability", "Safety approval"),
            effectiveness_score=75,
        )
    )
    catalog.append(
        BottleneckResolution(
            resolution_type=ResolutionType.OPTIMIZE_SCHEDULE,
            description="Optimize production schedule to reduce gaps and conflicts",
            estimated_cost=cfg.optimize_schedule_cost,
            estimated_capacity_gain=lost * 0.15,
            implementation_days=7,
            prerequisites=(),
            effectiveness_score=60,
        )
    )

    if severity >= BottleneckSeverity.MEDIUM:
        catalog.append(
            BottleneckResolution(
                resolution_type=ResolutionType.REDUCE_MAINTENANCE_TIME,
                description="Implement predictive maintenance to reduce downtime",
                estimated_cost=cfg.reduce_maintenance_cost,
                estimated_capacity_gain=lost * 0.1,
                implementation_days=30,
                prerequisites=("Maintenance team buy-in", "Sensor installation"),
                effectiveness_score=50,
            )
        )

    return tuple(sorted(catalog, key=lambda r: r.effectiveness_score, reverse=True))


def get_bottleneck_resolutions(
    source: CapacityDataSource,
    equipment_id: int,
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
) -> Tuple[BottleneckResolution, ...]:
    """Resolution catalog for one piece of equipment over [start, end]."""
    cfg = resolve_settings(settings)
    equipment = require_equipment(source, equipment_id)
    detail = get_equipment_capacity(source, equipment_id, start, end, cfg)
    severity = classify_severity(detail.utilization_percent, cfg)
    bottleneck = _build_bottleneck(source, equipment, detail, severity, start, end)
    return suggest_resolutions(bottleneck, cfg)
