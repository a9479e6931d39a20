"""
Capacity plan lifecycle.

    Draft --activate--> Active --retire--> Archived
    Draft --retire----> (deleted)

Only Draft plans accept edits. Every operation returns a new CapacityPlan;
persisting it is the storage layer's job.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from distillery_capacity.capacity.capacity_domain import require_valid_range
from distillery_capacity.data.records import CapacityAllocation, CapacityPlan
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import (
    AllocationType,
    PlanStatus,
    PlanType,
    ProductionType,
    parse_enum,
    parse_optional_enum,
)
from distillery_capacity.errors import InvalidArgument, InvalidState, NotFound, ValidationFailed
from distillery_capacity.planning.plan_models import (
    AllocationRequest,
    CreatePlanRequest,
    PlanChanges,
)
from distillery_capacity.planning.plan_validator import validate_capacity_plan
from distillery_capacity.utils.config import CapacitySettings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


# ----------------------------
# Parsing
# ----------------------------

def build_allocation(request: AllocationRequest, plan_id: Optional[int] = None) -> CapacityAllocation:
    if request.end_date < request.start_date:
        raise InvalidArgument(
            f"Allocation end {request.end_date} is before its start {request.start_date}"
        )
    if request.hours_allocated < 0:
        raise InvalidArgument("Allocated hours cannot be negative", request.hours_allocated)

    return CapacityAllocation(
        equipment_id=request.equipment_id,
        allocation_type=parse_enum(AllocationType, request.allocation_type).unwrap(),
        start_date=request.start_date,
        end_date=request.end_date,
        hours_allocated=request.hours_allocated,
        plan_id=plan_id,
        production_type=parse_optional_enum(ProductionType, request.production_type).unwrap(),
        notes=request.notes,
    )


def _build_allocations(
    requests: Sequence[AllocationRequest], plan_id: Optional[int]
) -> tuple:
    return tuple(build_allocation(r, plan_id) for r in requests)


def _require_draft(plan: CapacityPlan, action: str) -> None:
    if plan.status != PlanStatus.DRAFT:
        raise InvalidState(f"Cannot {action} a plan in status {plan.status.value}")


# ----------------------------
# Create / Edit
# ----------------------------

def create_capacity_plan(
    request: CreatePlanRequest,
    company_id: int,
    user_id: Optional[int] = None,
) -> CapacityPlan:
    plan_type = parse_enum(PlanType, request.plan_type).unwrap()
    require_valid_range(request.period_start, request.period_end)

    plan = CapacityPlan(
        company_id=company_id,
        name=request.name,
        period_start=request.period_start,
        period_end=request.period_end,
        plan_type=plan_type,
        status=PlanStatus.DRAFT,
        description=request.description,
        target_proof_gallons=request.target_proof_gallons,
        target_bottles=request.target_bottles,
        target_batches=request.target_batches,
        notes=request.notes,
        created_by_user_id=user_id,
        allocations=_build_allocations(request.allocations, None),
    )
    logger.info(
        "Created capacity plan | company=%s | name=%s | allocations=%s",
        company_id, plan.name, len(plan.allocations),
    )
    return plan


def update_capacity_plan(plan: CapacityPlan, changes: PlanChanges) -> CapacityPlan:
    _require_draft(plan, "edit")

    updates = {
        key: getattr(changes, key)
        for key in (
            "name", "description", "period_start", "period_end",
            "target_proof_gallons", "target_bottles", "target_batches", "notes",
        )
        if getattr(changes, key) is not None
    }
    if changes.plan_type is not None:
        updates["plan_type"] = parse_enum(PlanType, changes.plan_type).unwrap()
    if changes.allocations is not None:
        updates["allocations"] = _build_allocations(changes.allocations, plan.id)

    updated = replace(plan, **updates)
    require_valid_range(updated.period_start, updated.period_end)
    return updated


def add_allocation(plan: CapacityPlan, request: AllocationRequest) -> CapacityPlan:
    _require_draft(plan, "add allocations to")
    return replace(plan, allocations=plan.allocations + (build_allocation(request, plan.id),))


# ----------------------------
# Transitions
# ----------------------------

def activate_capacity_plan(
    source: CapacityDataSource,
    plan: CapacityPlan,
    settings: Optional[CapacitySettings] = None,
) -> CapacityPlan:
    """Validated Draft -> Active. The given plan is never modified."""
    _require_draft(plan, "activate")

    validation = validate_capacity_plan(source, plan, settings)
    if not validation.is_valid:
        logger.warning("Activation refused | plan=%s", plan.id)
        raise ValidationFailed(validation)

    logger.info("Activated capacity plan | plan=%s", plan.id)
    return replace(plan, status=PlanStatus.ACTIVE)


def retire_capacity_plan(plan: CapacityPlan) -> Optional[CapacityPlan]:
    """Active plans are archived; Draft plans are discarded (returns None)."""
    if plan.status == PlanStatus.ACTIVE:
        return replace(plan, status=PlanStatus.ARCHIVED)
    if plan.status == PlanStatus.DRAFT:
        return None
    raise InvalidState(f"Plan {plan.id} is already {plan.status.value}")


# ----------------------------
# Reads
# ----------------------------

def get_capacity_plan(source: CapacityDataSource, plan_id: int, company_id: int) -> CapacityPlan:
    plan = source.get_plan(plan_id, company_id)
    if plan is None:
        raise NotFound("CapacityPlan", plan_id)
    return plan


def list_capacity_plans(
    source: CapacityDataSource,
    company_id: int,
    status: object = None,
    plan_type: object = None,
) -> List[CapacityPlan]:
    """Plans newest period first. Filters accept enum members or free text."""
    status_filter = parse_optional_enum(PlanStatus, status).unwrap()
    type_filter = parse_optional_enum(PlanType, plan_type).unwrap()
    plans = source.list_plans(company_id, status=status_filter, plan_type=type_filter)
    return sorted(plans, key=lambda p: p.period_start, reverse=True)
