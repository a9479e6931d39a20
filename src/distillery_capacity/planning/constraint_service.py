"""Capacity constraint records: build, edit, deactivate, list."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import List, Optional

from distillery_capacity.data.records import CapacityConstraint
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import ConstraintType, parse_enum
from distillery_capacity.errors import InvalidArgument
from distillery_capacity.planning.plan_models import ConstraintChanges, ConstraintRequest
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def _check_window(effective_from: date, effective_to: Optional[date]) -> None:
    if effective_to is not None and effective_to < effective_from:
        raise InvalidArgument(
            f"Constraint effective_to {effective_to} is before effective_from {effective_from}"
        )


def _check_value(value: float) -> None:
    if value < 0:
        raise InvalidArgument("Constraint value cannot be negative", value)


def create_constraint(request: ConstraintRequest, company_id: int) -> CapacityConstraint:
    constraint_type = parse_enum(ConstraintType, request.constraint_type).unwrap()
    _check_value(request.constraint_value)
    _check_window(request.effective_from, request.effective_to)

    logger.info(
        "Created constraint | company=%s | equipment=%s | %s=%s",
        company_id, request.equipment_id, constraint_type.value, request.constraint_value,
    )
    return CapacityConstraint(
        company_id=company_id,
        constraint_type=constraint_type,
        constraint_value=request.constraint_value,
        effective_from=request.effective_from,
        equipment_id=request.equipment_id,
        effective_to=request.effective_to,
        is_active=True,
        reason=request.reason,
    )


def update_constraint(constraint: CapacityConstraint, changes: ConstraintChanges) -> CapacityConstraint:
    updates = {
        key: getattr(changes, key)
        for key in ("constraint_value", "effective_from", "effective_to", "reason", "is_active")
        if getattr(changes, key) is not None
    }
    updated = replace(constraint, **updates)
    _check_value(updated.constraint_value)
    _check_window(updated.effective_from, updated.effective_to)
    return updated


def deactivate_constraint(constraint: CapacityConstraint) -> CapacityConstraint:
    return replace(constraint, is_active=False)


def list_constraints(
    source: CapacityDataSource,
    company_id: int,
    equipment_id: Optional[int] = None,
    active_only: bool = True,
) -> List[CapacityConstraint]:
    rows = source.list_constraints(company_id, equipment_id=equipment_id, active_only=active_only)
    return sorted(rows, key=lambda c: (c.effective_from, c.id or 0), reverse=True)
