"""
Input Records

Rows handed to the engine by the data source, as of query time.

Enterprise rules:
- No logic beyond trivial derived properties
- No DB
- Immutable (frozen); edits produce copies via dataclasses.replace
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from distillery_capacity.enums import (
    AllocationType,
    ConstraintType,
    EquipmentType,
    PlanStatus,
    PlanType,
    ProductionRunStatus,
    ProductionType,
)


# -------------------------------------------------
# Equipment
# -------------------------------------------------

@dataclass(frozen=True)
class Equipment:
    id: int
    company_id: int
    name: str
    equipment_type: EquipmentType = EquipmentType.OTHER
    is_active: bool = True


# -------------------------------------------------
# Capacity plans and their allocations
# -------------------------------------------------

@dataclass(frozen=True)
class CapacityAllocation:
    equipment_id: int
    allocation_type: AllocationType
    start_date: date
    end_date: date
    hours_allocated: float
    id: Optional[int] = None
    plan_id: Optional[int] = None
    production_type: Optional[ProductionType] = None
    notes: Optional[str] = None

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days


@dataclass(frozen=True)
class CapacityPlan:
    company_id: int
    name: str
    period_start: date
    period_end: date
    plan_type: PlanType
    status: PlanStatus = PlanStatus.DRAFT
    id: Optional[int] = None
    description: Optional[str] = None
    target_proof_gallons: Optional[float] = None
    target_bottles: Optional[int] = None
    target_batches: Optional[int] = None
    notes: Optional[str] = None
    created_by_user_id: Optional[int] = None
    allocations: Tuple[CapacityAllocation, ...] = field(default_factory=tuple)


# -------------------------------------------------
# Constraints
# -------------------------------------------------

@dataclass(frozen=True)
class CapacityConstraint:
    company_id: int
    constraint_type: ConstraintType
    constraint_value: float
    effective_from: date
    equipment_id: Optional[int] = None      # None = applies to all equipment
    effective_to: Optional[date] = None     # None = open-ended
    is_active: bool = True
    id: Optional[int] = None
    reason: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.equipment_id is None


# -------------------------------------------------
# History / production
# -------------------------------------------------

@dataclass(frozen=True)
class CapacitySnapshot:
    company_id: int
    equipment_id: int
    snapshot_date: date
    total_capacity_hours: float
    allocated_hours: float
    maintenance_hours: float
    utilization_percent: float
    id: Optional[int] = None


@dataclass(frozen=True)
class ProductionRun:
    id: int
    company_id: int
    name: str
    scheduled_start: date
    scheduled_end: date
    status: ProductionRunStatus = ProductionRunStatus.SCHEDULED
    equipment_ids: Tuple[int, ...] = field(default_factory=tuple)
    production_type: ProductionType = ProductionType.OTHER


@dataclass(frozen=True)
class Order:
    id: int
    company_id: int
    created_at: datetime
    quantity: float
