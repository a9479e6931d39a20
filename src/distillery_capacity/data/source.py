"""
Capacity data access contract.

The engine never writes. It reads equipment, allocations, constraints,
production runs, snapshots, plans and orders through a CapacityDataSource and
computes on what it got back. Two implementations ship with the package:

- InMemoryCapacityStore: plain Python lists (embedding, tests)
- SqlCapacityDataSource (data/sql_source.py): SQLAlchemy + pandas.read_sql
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from itertools import count
from typing import Iterable, List, Optional, Protocol, Sequence

from distillery_capacity.data.records import (
    CapacityAllocation,
    CapacityConstraint,
    CapacityPlan,
    CapacitySnapshot,
    Equipment,
    Order,
    ProductionRun,
)
from distillery_capacity.enums import PlanStatus, PlanType, ProductionRunStatus


class CapacityDataSource(Protocol):
    def list_equipment(self, company_id: int, active_only: bool = True) -> List[Equipment]:
        ...

    def get_equipment(self, equipment_id: int) -> Optional[Equipment]:
        ...

    def list_allocations(
        self,
        start: date,
        end: date,
        company_id: Optional[int] = None,
        equipment_id: Optional[int] = None,
    ) -> List[CapacityAllocation]:
        """Allocations whose [start_date, end_date] span intersects [start, end]."""
        ...

    def list_constraints(
        self,
        company_id: int,
        equipment_id: Optional[int] = None,
        active_only: bool = True,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CapacityConstraint]:
        ...

    def list_production_runs(
        self,
        equipment_id: int,
        start: date,
        end: date,
        exclude_statuses: Sequence[ProductionRunStatus] = (),
    ) -> List[ProductionRun]:
        ...

    def list_historical_snapshots(self, company_id: int, start: date, end: date) -> List[CapacitySnapshot]:
        ...

    def get_plan(self, plan_id: int, company_id: int) -> Optional[CapacityPlan]:
        ...

    def list_plans(
        self,
        company_id: int,
        status: Optional[PlanStatus] = None,
        plan_type: Optional[PlanType] = None,
    ) -> List[CapacityPlan]:
        ...

    def list_orders(self, company_id: int, since: datetime) -> List[Order]:
        ...


# ------------------------------------------------------------
# Shared filters (also used by the SQL source on fetched rows)
# ------------------------------------------------------------

def spans_intersect(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


def constraint_window_intersects(
    constraint: CapacityConstraint, start: Optional[date], end: Optional[date]
) -> bool:
    if end is not None and constraint.effective_from > end:
        return False
    if start is not None and constraint.effective_to is not None and constraint.effective_to < start:
        return False
    return True


# ------------------------------------------------------------
# In-memory implementation
# ------------------------------------------------------------

class InMemoryCapacityStore:
    """CapacityDataSource backed by Python lists."""

    def __init__(
        self,
        equipment: Iterable[Equipment] = (),
        plans: Iterable[CapacityPlan] = (),
        constraints: Iterable[CapacityConstraint] = (),
        production_runs: Iterable[ProductionRun] = (),
        snapshots: Iterable[CapacitySnapshot] = (),
        orders: Iterable[Order] = (),
    ) -> None:
        self._ids = count(1)
        self.equipment: List[Equipment] = list(equipment)
        self.plans: List[CapacityPlan] = []
        self.constraints: List[CapacityConstraint] = list(constraints)
        self.production_runs: List[ProductionRun] = list(production_runs)
        self.snapshots: List[CapacitySnapshot] = list(snapshots)
        self.orders: List[Order] = list(orders)
        for plan in plans:
            self.save_plan(plan)

    # ---- writes (storage-layer side, used by embedders and tests) ----

    def save_plan(self, plan: CapacityPlan) -> CapacityPlan:
        """Insert or replace a plan, assigning ids to it and its allocations."""
        plan_id = plan.id if plan.id is not None else next(self._ids)
        allocations = tuple(
            replace(a, id=a.id if a.id is not None else next(self._ids), plan_id=plan_id)
            for a in plan.allocations
        )
        stored = replace(plan, id=plan_id, allocations=allocations)
        self.plans = [p for p in self.plans if p.id != plan_id] + [stored]
        return stored

    def delete_plan(self, plan_id: int) -> None:
        self.plans = [p for p in self.plans if p.id != plan_id]

    # ---- reads ----

    def list_equipment(self, company_id: int, active_only: bool = True) -> List[Equipment]:
        return [
            e for e in self.equipment
            if e.company_id == company_id and (e.is_active or not active_only)
        ]

    def get_equipment(self, equipment_id: int) -> Optional[Equipment]:
        return next((e for e in self.equipment if e.id == equipment_id), None)

    def list_allocations(
        self,
        start: date,
        end: date,
        company_id: Optional[int] = None,
        equipment_id: Optional[int] = None,
    ) -> List[CapacityAllocation]:
        rows: List[CapacityAllocation] = []
        for plan in self.plans:
            if company_id is not None and plan.company_id != company_id:
                continue
            for a in plan.allocations:
                if equipment_id is not None and a.equipment_id != equipment_id:
                    continue
                if spans_intersect(a.start_date, a.end_date, start, end):
                    rows.append(a)
        return rows

    def list_constraints(
        self,
        company_id: int,
        equipment_id: Optional[int] = None,
        active_only: bool = True,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CapacityConstraint]:
        return [
            c for c in self.constraints
            if c.company_id == company_id
            and (equipment_id is None or c.equipment_id is None or c.equipment_id == equipment_id)
            and (c.is_active or not active_only)
            and constraint_window_intersects(c, start, end)
        ]

    def list_production_runs(
        self,
        equipment_id: int,
        start: date,
        end: date,
        exclude_statuses: Sequence[ProductionRunStatus] = (),
    ) -> List[ProductionRun]:
        return [
            r for r in self.production_runs
            if equipment_id in r.equipment_ids
            and spans_intersect(r.scheduled_start, r.scheduled_end, start, end)
            and r.status not in exclude_statuses
        ]

    def list_historical_snapshots(self, company_id: int, start: date, end: date) -> List[CapacitySnapshot]:
        rows = [
            s for s in self.snapshots
            if s.company_id == company_id and start <= s.snapshot_date <= end
        ]
        return sorted(rows, key=lambda s: (s.snapshot_date, s.equipment_id))

    def get_plan(self, plan_id: int, company_id: int) -> Optional[CapacityPlan]:
        return next(
            (p for p in self.plans if p.id == plan_id and p.company_id == company_id),
            None,
        )

    def list_plans(
        self,
        company_id: int,
        status: Optional[PlanStatus] = None,
        plan_type: Optional[PlanType] = None,
    ) -> List[CapacityPlan]:
        return [
            p for p in self.plans
            if p.company_id == company_id
            and (status is None or p.status == status)
            and (plan_type is None or p.plan_type == plan_type)
        ]

    def list_orders(self, company_id: int, since: datetime) -> List[Order]:
        return [o for o in self.orders if o.company_id == company_id and o.created_at >= since]
