"""
SQL data access layer.

Read-only CapacityDataSource over a relational store. Queries go through a
SQLAlchemy engine and pandas.read_sql; rows are converted into the frozen
records in data/records.py.

Expected tables:
  - equipment(id, company_id, name, equipment_type, is_active)
  - capacity_plans(id, company_id, name, description, plan_period_start,
    plan_period_end, plan_type, status, target_proof_gallons, target_bottles,
    target_batches, notes, created_by_user_id)
  - capacity_allocations(id, capacity_plan_id, equipment_id, allocation_type,
    start_date, end_date, hours_allocated, production_type, notes)
  - capacity_constraints(id, company_id, equipment_id, constraint_type,
    constraint_value, effective_from, effective_to, reason, is_active)
  - capacity_snapshots(id, company_id, equipment_id, snapshot_date,
    total_capacity_hours, allocated_hours, maintenance_hours, utilization_percent)
  - production_runs(id, company_id, name, status, production_type,
    scheduled_start_date, scheduled_end_date)
  - equipment_bookings(production_run_id, equipment_id)
  - orders(id, company_id, created_at, quantity)
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Sequence

import pandas as pd
from sqlalchemy import Date, DateTime, bindparam, create_engine, text
from sqlalchemy.engine import Connection, Engine

from distillery_capacity.data.records import (
    CapacityAllocation,
    CapacityConstraint,
    CapacityPlan,
    CapacitySnapshot,
    Equipment,
    Order,
    ProductionRun,
)
from distillery_capacity.enums import (
    AllocationType,
    ConstraintType,
    EquipmentType,
    PlanStatus,
    PlanType,
    ProductionRunStatus,
    ProductionType,
    parse_enum,
    parse_optional_enum,
)
from distillery_capacity.utils.config import config
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------
# Build SQLAlchemy engine
# ---------------------------------------------------------
def build_engine(url: Optional[str] = None) -> Engine:
    return create_engine(url or config.database_url, future=True, echo=config.sql_echo)


# ---------------------------------------------------------
# Row conversion helpers
# ---------------------------------------------------------
def _is_null(value) -> bool:
    return value is None or (not isinstance(value, (list, tuple)) and pd.isna(value))


def _as_date(value) -> Optional[date]:
    if _is_null(value):
        return None
    return pd.Timestamp(value).date()


def _as_datetime(value) -> Optional[datetime]:
    if _is_null(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def _opt(value):
    return None if _is_null(value) else value


def _opt_int(value) -> Optional[int]:
    return None if _is_null(value) else int(value)


def _opt_float(value) -> Optional[float]:
    return None if _is_null(value) else float(value)


def _equipment_from_row(row) -> Equipment:
    return Equipment(
        id=int(row["id"]),
        company_id=int(row["company_id"]),
        name=str(row["name"]),
        equipment_type=parse_enum(EquipmentType, row["equipment_type"]).value or EquipmentType.OTHER,
        is_active=bool(row["is_active"]),
    )


def _allocation_from_row(row) -> CapacityAllocation:
    return CapacityAllocation(
        id=int(row["id"]),
        plan_id=int(row["capacity_plan_id"]),
        equipment_id=int(row["equipment_id"]),
        allocation_type=parse_enum(AllocationType, row["allocation_type"]).unwrap(),
        start_date=_as_date(row["start_date"]),
        end_date=_as_date(row["end_date"]),
        hours_allocated=float(row["hours_allocated"]),
        production_type=parse_optional_enum(ProductionType, _opt(row["production_type"])).unwrap(),
        notes=_opt(row["notes"]),
    )


def _constraint_from_row(row) -> CapacityConstraint:
    return CapacityConstraint(
        id=int(row["id"]),
        company_id=int(row["company_id"]),
        equipment_id=_opt_int(row["equipment_id"]),
        constraint_type=parse_enum(ConstraintType, row["constraint_type"]).unwrap(),
        constraint_value=float(row["constraint_value"]),
        effective_from=_as_date(row["effective_from"]),
        effective_to=_as_date(row["effective_to"]),
        reason=_opt(row["reason"]),
        is_active=bool(row["is_active"]),
    )


def _snapshot_from_row(row) -> CapacitySnapshot:
    return CapacitySnapshot(
        id=int(row["id"]),
        company_id=int(row["company_id"]),
        equipment_id=int(row["equipment_id"]),
        snapshot_date=_as_date(row["snapshot_date"]),
        total_capacity_hours=float(row["total_capacity_hours"]),
        allocated_hours=float(row["allocated_hours"]),
        maintenance_hours=float(row["maintenance_hours"]),
        utilization_percent=float(row["utilization_percent"]),
    )


# ---------------------------------------------------------
# Data source
# ---------------------------------------------------------
class SqlCapacityDataSource:
    """CapacityDataSource reading through SQLAlchemy + pandas."""

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self.engine = engine or build_engine()

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        with self.engine.connect() as conn:
            yield conn

    def _read(self, sql: str, params: Optional[Dict] = None, date_params: Sequence[str] = (),
              datetime_params: Sequence[str] = ()) -> pd.DataFrame:
        stmt = text(sql)
        binds = [bindparam(name, type_=Date) for name in date_params]
        binds += [bindparam(name, type_=DateTime) for name in datetime_params]
        if binds:
            stmt = stmt.bindparams(*binds)
        with self.get_connection() as conn:
            df = pd.read_sql(stmt, conn, params=params or {})
        logger.debug("SQL rows=%s | %s", len(df), " ".join(sql.split())[:120])
        return df

    # ---- equipment ----

    def list_equipment(self, company_id: int, active_only: bool = True) -> List[Equipment]:
        sql = """
            SELECT id, company_id, name, equipment_type, is_active
            FROM equipment
            WHERE company_id = :company_id
        """
        if active_only:
            sql += " AND is_active = 1"
        df = self._read(sql + " ORDER BY id", {"company_id": company_id})
        return [_equipment_from_row(row) for _, row in df.iterrows()]

    def get_equipment(self, equipment_id: int) -> Optional[Equipment]:
        sql = """
            SELECT id, company_id, name, equipment_type, is_active
            FROM equipment
            WHERE id = :equipment_id
        """
        df = self._read(sql, {"equipment_id": equipment_id})
        if df.empty:
            return None
        return _equipment_from_row(df.iloc[0])

    # ---- allocations ----

    def list_allocations(
        self,
        start: date,
        end: date,
        company_id: Optional[int] = None,
        equipment_id: Optional[int] = None,
    ) -> List[CapacityAllocation]:
        sql = """
            SELECT a.id, a.capacity_plan_id, a.equipment_id, a.allocation_type,
                   a.start_date, a.end_date, a.hours_allocated, a.production_type, a.notes
            FROM capacity_allocations a
            INNER JOIN capacity_plans p ON p.id = a.capacity_plan_id
            WHERE a.start_date <= :end AND a.end_date >= :start
        """
        params: Dict = {"start": start, "end": end}
        if company_id is not None:
            sql += " AND p.company_id = :company_id"
            params["company_id"] = company_id
        if equipment_id is not None:
            sql += " AND a.equipment_id = :equipment_id"
            params["equipment_id"] = equipment_id
        df = self._read(sql + " ORDER BY a.id", params, date_params=("start", "end"))
        return [_allocation_from_row(row) for _, row in df.iterrows()]

    # ---- constraints ----

    def list_constraints(
        self,
        company_id: int,
        equipment_id: Optional[int] = None,
        active_only: bool = True,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CapacityConstraint]:
        sql = """
            SELECT id, company_id, equipment_id, constraint_type, constraint_value,
                   effective_from, effective_to, reason, is_active
            FROM capacity_constraints
            WHERE company_id = :company_id
        """
        params: Dict = {"company_id": company_id}
        date_params: List[str] = []
        if equipment_id is not None:
            sql += " AND (equipment_id = :equipment_id OR equipment_id IS NULL)"
            params["equipment_id"] = equipment_id
        if active_only:
            sql += " AND is_active = 1"
        if end is not None:
            sql += " AND effective_from <= :end"
            params["end"] = end
            date_params.append("end")
        if start is not None:
            sql += " AND (effective_to IS NULL OR effective_to >= :start)"
            params["start"] = start
            date_params.append("start")
        df = self._read(sql + " ORDER BY constraint_type, id", params, date_params=date_params)
        return [_constraint_from_row(row) for _, row in df.iterrows()]

    # ---- production runs ----

    def list_production_runs(
        self,
        equipment_id: int,
        start: date,
        end: date,
        exclude_statuses: Sequence[ProductionRunStatus] = (),
    ) -> List[ProductionRun]:
        sql = """
            SELECT r.id, r.company_id, r.name, r.status, r.production_type,
                   r.scheduled_start_date, r.scheduled_end_date
            FROM production_runs r
            WHERE EXISTS (
                SELECT 1 FROM equipment_bookings b
                WHERE b.production_run_id = r.id AND b.equipment_id = :equipment_id
            )
              AND r.scheduled_start_date <= :end
              AND r.scheduled_end_date >= :start
            ORDER BY r.scheduled_start_date, r.id
        """
        df = self._read(
            sql,
            {"equipment_id": equipment_id, "start": start, "end": end},
            date_params=("start", "end"),
        )
        runs: List[ProductionRun] = []
        for _, row in df.iterrows():
            status = parse_enum(ProductionRunStatus, row["status"]).unwrap()
            if status in exclude_statuses:
                continue
            runs.append(
                ProductionRun(
                    id=int(row["id"]),
                    company_id=int(row["company_id"]),
                    name=str(row["name"]),
                    scheduled_start=_as_date(row["scheduled_start_date"]),
                    scheduled_end=_as_date(row["scheduled_end_date"]),
                    status=status,
                    equipment_ids=(equipment_id,),
                    production_type=parse_enum(ProductionType, row["production_type"]).value
                    or ProductionType.OTHER,
                )
            )
        return runs

    # ---- snapshots ----

    def list_historical_snapshots(self, company_id: int, start: date, end: date) -> List[CapacitySnapshot]:
        sql = """
            SELECT id, company_id, equipment_id, snapshot_date, total_capacity_hours,
                   allocated_hours, maintenance_hours, utilization_percent
            FROM capacity_snapshots
            WHERE company_id = :company_id
              AND snapshot_date >= :start
              AND snapshot_date <= :end
            ORDER BY snapshot_date, equipment_id
        """
        df = self._read(
            sql,
            {"company_id": company_id, "start": start, "end": end},
            date_params=("start", "end"),
        )
        return [_snapshot_from_row(row) for _, row in df.iterrows()]

    # ---- plans ----

    def _plans(self, where: str, params: Dict) -> List[CapacityPlan]:
        sql = f"""
            SELECT id, company_id, name, description, plan_period_start, plan_period_end,
                   plan_type, status, target_proof_gallons, target_bottles, target_batches,
                   notes, created_by_user_id
            FROM capacity_plans
            WHERE {where}
            ORDER BY plan_period_start DESC, id
        """
        plans_df = self._read(sql, params)
        if plans_df.empty:
            return []

        ids = [int(i) for i in plans_df["id"]]
        alloc_sql = """
            SELECT id, capacity_plan_id, equipment_id, allocation_type, start_date,
                   end_date, hours_allocated, production_type, notes
            FROM capacity_allocations
            WHERE capacity_plan_id IN :plan_ids
            ORDER BY id
        """
        stmt = text(alloc_sql).bindparams(bindparam("plan_ids", expanding=True))
        with self.get_connection() as conn:
            alloc_df = pd.read_sql(stmt, conn, params={"plan_ids": ids})

        by_plan: Dict[int, List[CapacityAllocation]] = {}
        for _, row in alloc_df.iterrows():
            by_plan.setdefault(int(row["capacity_plan_id"]), []).append(_allocation_from_row(row))

        plans: List[CapacityPlan] = []
        for _, row in plans_df.iterrows():
            plan_id = int(row["id"])
            plans.append(
                CapacityPlan(
                    id=plan_id,
                    company_id=int(row["company_id"]),
                    name=str(row["name"]),
                    description=_opt(row["description"]),
                    period_start=_as_date(row["plan_period_start"]),
                    period_end=_as_date(row["plan_period_end"]),
                    plan_type=parse_enum(PlanType, row["plan_type"]).unwrap(),
                    status=parse_enum(PlanStatus, row["status"]).unwrap(),
                    target_proof_gallons=_opt_float(row["target_proof_gallons"]),
                    target_bottles=_opt_int(row["target_bottles"]),
                    target_batches=_opt_int(row["target_batches"]),
                    notes=_opt(row["notes"]),
                    created_by_user_id=_opt_int(row["created_by_user_id"]),
                    allocations=tuple(by_plan.get(plan_id, [])),
                )
            )
        return plans

    def get_plan(self, plan_id: int, company_id: int) -> Optional[CapacityPlan]:
        plans = self._plans(
            "id = :plan_id AND company_id = :company_id",
            {"plan_id": plan_id, "company_id": company_id},
        )
        return plans[0] if plans else None

    def list_plans(
        self,
        company_id: int,
        status: Optional[PlanStatus] = None,
        plan_type: Optional[PlanType] = None,
    ) -> List[CapacityPlan]:
        where = "company_id = :company_id"
        params: Dict = {"company_id": company_id}
        if status is not None:
            where += " AND status = :status"
            params["status"] = status.value
        if plan_type is not None:
            where += " AND plan_type = :plan_type"
            params["plan_type"] = plan_type.value
        return self._plans(where, params)

    # ---- orders ----

    def list_orders(self, company_id: int, since: datetime) -> List[Order]:
        sql = """
            SELECT id, company_id, created_at, quantity
            FROM orders
            WHERE company_id = :company_id AND created_at >= :since
            ORDER BY created_at
        """
        df = self._read(sql, {"company_id": company_id, "since": since}, datetime_params=("since",))
        return [
            Order(
                id=int(row["id"]),
                company_id=int(row["company_id"]),
                created_at=_as_datetime(row["created_at"]),
                quantity=float(row["quantity"] or 0),
            )
            for _, row in df.iterrows()
        ]
