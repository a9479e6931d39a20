"""
Planning Models

Enterprise rules:
- No logic
- No DB
- Pure data containers

Request objects carry free text (plan type, allocation kind, ...) exactly as a
caller supplied it; the plan service parses them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence, Tuple, Union

from distillery_capacity.enums import (
    AllocationType,
    ConstraintType,
    PlanType,
    ProductionType,
)


# -------------------------------------------------
# Validation result
# -------------------------------------------------

@dataclass(frozen=True)
class ValidationIssue:
    """Blocking: a plan with any issue cannot be activated."""

    code: str
    description: str
    equipment_id: Optional[int] = None
    equipment_name: Optional[str] = None


@dataclass(frozen=True)
class ValidationWarning:
    """Non-blocking."""

    code: str
    description: str
    equipment_id: Optional[int] = None
    equipment_name: Optional[str] = None


@dataclass(frozen=True)
class CapacityValidation:
    is_valid: bool
    issues: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()


# -------------------------------------------------
# Requests
# -------------------------------------------------

@dataclass(frozen=True)
class AllocationRequest:
    equipment_id: int
    allocation_type: Union[str, AllocationType]
    start_date: date
    end_date: date
    hours_allocated: float
    production_type: Union[str, ProductionType, None] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CreatePlanRequest:
    name: str
    period_start: date
    period_end: date
    plan_type: Union[str, PlanType]
    description: Optional[str] = None
    target_proof_gallons: Optional[float] = None
    target_bottles: Optional[int] = None
    target_batches: Optional[int] = None
    notes: Optional[str] = None
    allocations: Sequence[AllocationRequest] = field(default_factory=tuple)


@dataclass(frozen=True)
class PlanChanges:
    """Fields left as None are kept. Status is not editable here."""

    name: Optional[str] = None
    description: Optional[str] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    plan_type: Union[str, PlanType, None] = None
    target_proof_gallons: Optional[float] = None
    target_bottles: Optional[int] = None
    target_batches: Optional[int] = None
    notes: Optional[str] = None
    allocations: Optional[Sequence[AllocationRequest]] = None


@dataclass(frozen=True)
class ConstraintRequest:
    constraint_type: Union[str, ConstraintType]
    constraint_value: float
    effective_from: date
    equipment_id: Optional[int] = None
    effective_to: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ConstraintChanges:
    constraint_value: Optional[float] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    reason: Optional[str] = None
    is_active: Optional[bool] = None
