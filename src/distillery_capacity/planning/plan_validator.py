"""
Capacity Plan Validator

Issues block activation, warnings do not:
- DATE_INVALID         (issue)   period_end on or before period_start
- OVERLAP              (issue)   two allocations on one equipment overlap
- EXCEEDS_DAILY_HOURS  (warning) average hours/day above a MaxHoursPerDay ceiling
- HIGH_UTILIZATION     (warning) company utilization over the plan period > 90%
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence

from distillery_capacity.capacity.capacity_usecase import get_capacity_overview
from distillery_capacity.capacity.constraints import active_constraints, max_hours_constraints
from distillery_capacity.data.records import CapacityAllocation, CapacityConstraint, CapacityPlan
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.planning.plan_models import (
    CapacityValidation,
    ValidationIssue,
    ValidationWarning,
)
from distillery_capacity.utils.config import CapacitySettings, resolve_settings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def _equipment_label(equipment_id: int, names: Mapping[int, str]) -> str:
    return names.get(equipment_id, f"Equipment {equipment_id}")


def find_overlaps(
    allocations: Sequence[CapacityAllocation], names: Mapping[int, str]
) -> List[ValidationIssue]:
    by_equipment: Dict[int, List[CapacityAllocation]] = defaultdict(list)
    for a in allocations:
        by_equipment[a.equipment_id].append(a)

    issues = []
    for equipment_id, group in by_equipment.items():
        ordered = sorted(group, key=lambda a: a.start_date)
        for current, following in zip(ordered, ordered[1:]):
            if current.end_date > following.start_date:
                name = _equipment_label(equipment_id, names)
                issues.append(
                    ValidationIssue(
                        code="OVERLAP",
                        description=f"Overlapping allocations for {name}",
                        equipment_id=equipment_id,
                        equipment_name=name,
                    )
                )
    return issues


def find_daily_hour_breaches(
    allocations: Sequence[CapacityAllocation],
    constraints: Sequence[CapacityConstraint],
    names: Mapping[int, str],
) -> List[ValidationWarning]:
    warnings = []
    for a in allocations:
        avg_per_day = a.hours_allocated / max(1, a.span_days)
        for c in max_hours_constraints(constraints, a.equipment_id):
            if avg_per_day > c.constraint_value:
                warnings.append(
                    ValidationWarning(
                        code="EXCEEDS_DAILY_HOURS",
                        description=(
                            f"Allocation exceeds max daily hours "
                            f"({avg_per_day:.1f}h > {c.constraint_value:g}h)"
                        ),
                        equipment_id=a.equipment_id,
                        equipment_name=_equipment_label(a.equipment_id, names),
                    )
                )
    return warnings


def validate_plan(
    plan: CapacityPlan,
    constraints: Sequence[CapacityConstraint] = (),
    equipment_names: Optional[Mapping[int, str]] = None,
    overall_utilization: Optional[float] = None,
    settings: Optional[CapacitySettings] = None,
) -> CapacityValidation:
    """Pure validation of a plan against already fetched constraints and utilization."""
    cfg = resolve_settings(settings)
    names = equipment_names or {}

    issues: List[ValidationIssue] = []
    if plan.period_end <= plan.period_start:
        issues.append(
            ValidationIssue(code="DATE_INVALID", description="Plan end date must be after start date")
        )

    issues.extend(find_overlaps(plan.allocations, names))
    warnings = find_daily_hour_breaches(plan.allocations, constraints, names)

    if overall_utilization is not None and overall_utilization > cfg.plan_high_utilization:
        warnings.append(
            ValidationWarning(
                code="HIGH_UTILIZATION",
                description=f"Overall utilization is very high ({overall_utilization:.1f}%)",
            )
        )

    return CapacityValidation(is_valid=not issues, issues=tuple(issues), warnings=tuple(warnings))


def validate_capacity_plan(
    source: CapacityDataSource,
    plan: CapacityPlan,
    settings: Optional[CapacitySettings] = None,
) -> CapacityValidation:
    """
    Fetch what the validator needs (constraints active in the plan period,
    equipment names, the company overview) and validate. An invalid period
    skips the overview step.
    """
    cfg = resolve_settings(settings)
    logger.info("Validate plan | plan=%s | company=%s", plan.id, plan.company_id)

    names = {e.id: e.name for e in source.list_equipment(plan.company_id, active_only=False)}

    period_ok = plan.period_end > plan.period_start
    constraints: List[CapacityConstraint] = []
    utilization: Optional[float] = None
    if period_ok:
        constraints = active_constraints(
            source.list_constraints(
                plan.company_id, active_only=True, start=plan.period_start, end=plan.period_end
            ),
            plan.company_id,
            plan.period_start,
            plan.period_end,
        )
        overview = get_capacity_overview(
            source, plan.company_id, plan.period_start, plan.period_end, cfg
        )
        utilization = overview.utilization_percent

    validation = validate_plan(plan, constraints, names, utilization, cfg)
    if not validation.is_valid:
        logger.warning(
            "Plan %s has %s blocking issue(s)", plan.id, len(validation.issues)
        )
    return validation
