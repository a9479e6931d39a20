"""
Constraint Registry

Resolves the effective operating-hours ceiling for a piece of equipment from
effective-dated constraint records. When several constraints apply, the
lowest value governs.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from distillery_capacity.data.records import CapacityConstraint
from distillery_capacity.enums import ConstraintType
from distillery_capacity.utils.config import CapacitySettings, resolve_settings


def constraint_applies(constraint: CapacityConstraint, equipment_id: int) -> bool:
    return constraint.is_global or constraint.equipment_id == equipment_id


def is_effective(constraint: CapacityConstraint, start: date, end: date) -> bool:
    """Active, and its effective window intersects [start, end]."""
    if not constraint.is_active:
        return False
    if constraint.effective_from > end:
        return False
    return constraint.effective_to is None or constraint.effective_to >= start


def active_constraints(
    constraints: Iterable[CapacityConstraint],
    company_id: int,
    start: date,
    end: date,
) -> List[CapacityConstraint]:
    return [c for c in constraints if c.company_id == company_id and is_effective(c, start, end)]


def max_hours_constraints(
    constraints: Iterable[CapacityConstraint], equipment_id: int
) -> List[CapacityConstraint]:
    return [
        c for c in constraints
        if c.constraint_type == ConstraintType.MAX_HOURS_PER_DAY and constraint_applies(c, equipment_id)
    ]


def daily_hours_for_equipment(
    equipment_id: int,
    constraints: Iterable[CapacityConstraint],
    settings: Optional[CapacitySettings] = None,
) -> float:
    """
    Minimum MaxHoursPerDay value among constraints applicable to the equipment,
    or the configured default (16h) when none apply.
    """
    applicable = max_hours_constraints(constraints, equipment_id)
    if not applicable:
        return resolve_settings(settings).default_daily_hours
    return min(c.constraint_value for c in applicable)
