"""Tests for the capacity aggregator (pure domain and use cases)."""

from datetime import date

import pytest

from conftest import COMPANY, plan_with, production
from distillery_capacity.capacity.capacity_domain import (
    allocated_hours,
    available_hours,
    hours_in_range,
    total_days,
    utilization_percent,
)
from distillery_capacity.capacity.capacity_usecase import (
    get_capacity_by_type,
    get_capacity_overview,
    get_equipment_capacity,
)
from distillery_capacity.capacity.utilization import period_boundaries
from distillery_capacity.data.records import CapacityAllocation, CapacityConstraint
from distillery_capacity.enums import AlertSeverity, AllocationType, ConstraintType, ProductionType
from distillery_capacity.errors import InvalidRange, NotFound

WEEK_START = date(2024, 1, 1)
WEEK_END = date(2024, 1, 7)


# ---------------------------------------------------------------------------
# Proration
# ---------------------------------------------------------------------------


class TestHoursInRange:
    def test_allocation_inside_range_counts_in_full(self):
        a = production(1, date(2024, 1, 2), date(2024, 1, 5), 30)
        assert hours_in_range(a, WEEK_START, WEEK_END) == pytest.approx(30)

    def test_partial_overlap_is_prorated(self):
        a = production(1, date(2024, 1, 1), date(2024, 1, 11), 100)
        # 6 of 10 days fall inside [Jan 1, Jan 7]
        assert hours_in_range(a, WEEK_START, WEEK_END) == pytest.approx(60)

    def test_no_overlap_is_zero(self):
        a = production(1, date(2024, 2, 1), date(2024, 2, 5), 40)
        assert hours_in_range(a, WEEK_START, WEEK_END) == 0

    def test_single_day_allocation_counts_in_full(self):
        a = production(1, date(2024, 1, 3), date(2024, 1, 3), 5)
        assert hours_in_range(a, WEEK_START, WEEK_END) == 5

    def test_single_day_allocation_on_last_day_counts(self):
        a = production(1, WEEK_END, WEEK_END, 8)
        assert hours_in_range(a, WEEK_START, WEEK_END) == 8
        assert hours_in_range(a, WEEK_START, WEEK_END, closed_end=False) == 0

    def test_single_day_allocation_counted_once_across_shared_edges(self):
        a = production(1, date(2024, 1, 3), date(2024, 1, 3), 5)
        left = hours_in_range(a, date(2024, 1, 1), date(2024, 1, 3), closed_end=False)
        right = hours_in_range(a, date(2024, 1, 3), date(2024, 1, 5))
        assert left + right == 5

    def test_contiguous_sub_ranges_add_up(self):
        allocations = [
            production(1, date(2024, 1, 1), date(2024, 1, 31), 300),
            production(1, date(2023, 12, 25), date(2024, 1, 4), 100),
            production(1, date(2024, 1, 20), date(2024, 2, 19), 90),
            production(1, date(2024, 1, 8), date(2024, 1, 8), 4),
            production(1, date(2024, 1, 31), date(2024, 1, 31), 6),
        ]
        start, end = date(2024, 1, 1), date(2024, 1, 31)
        whole = allocated_hours(allocations, start, end)
        parts = sum(
            allocated_hours(allocations, s, e, closed_end=e == end)
            for s, e in period_boundaries(start, end, "week")
        )
        assert parts == pytest.approx(whole)
        assert whole == pytest.approx(300 + 30 + 33 + 4 + 6)


class TestArithmetic:
    def test_total_days_is_inclusive(self):
        assert total_days(WEEK_START, WEEK_END) == 7

    def test_available_never_negative(self):
        assert available_hours(100, 250) == 0

    def test_utilization_zero_capacity(self):
        assert utilization_percent(40, 0) == 0

    def test_utilization_percent(self):
        assert utilization_percent(56, 112) == pytest.approx(50)


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


class TestCapacityOverview:
    def test_overview_sums_active_equipment(self, store):
        store.save_plan(
            plan_with(
                production(1, WEEK_START, WEEK_END, 108),
                production(2, WEEK_START, WEEK_END, 96),
            )
        )
        overview = get_capacity_overview(store, COMPANY, WEEK_START, WEEK_END)

        assert overview.equipment_count == 3
        assert overview.total_capacity_hours == pytest.approx(336)
        assert overview.allocated_hours == pytest.approx(204)
        assert overview.available_hours == pytest.approx(132)
        assert overview.utilization_percent == 60.71
        assert [s.equipment_id for s in overview.equipment_summaries] == [1, 2, 3]

    def test_alerts_one_per_equipment(self, store):
        store.save_plan(
            plan_with(
                production(1, WEEK_START, WEEK_END, 108),
                production(2, WEEK_START, WEEK_END, 96),
            )
        )
        overview = get_capacity_overview(store, COMPANY, WEEK_START, WEEK_END)

        by_equipment = {a.equipment_id: a.severity for a in overview.alerts}
        assert by_equipment == {1: AlertSeverity.CRITICAL, 2: AlertSeverity.WARNING}

    def test_single_day_allocation_on_last_day_of_range(self, store):
        store.save_plan(plan_with(production(1, WEEK_END, WEEK_END, 8)))
        overview = get_capacity_overview(store, COMPANY, WEEK_START, WEEK_END)
        assert overview.allocated_hours == 8
        assert overview.equipment_summaries[0].allocated_hours == 8

    def test_over_allocation_keeps_available_at_zero(self, store):
        store.save_plan(plan_with(production(1, WEEK_START, WEEK_END, 500)))
        overview = get_capacity_overview(store, COMPANY, WEEK_START, WEEK_END)
        still = overview.equipment_summaries[0]
        assert still.available_hours == 0
        assert still.utilization_percent > 100

    def test_zero_capacity_constraint_gives_zero_utilization(self, store):
        store.constraints.append(
            CapacityConstraint(
                company_id=COMPANY,
                constraint_type=ConstraintType.MAX_HOURS_PER_DAY,
                constraint_value=0,
                effective_from=date(2023, 1, 1),
                equipment_id=3,
            )
        )
        store.save_plan(plan_with(production(3, WEEK_START, WEEK_END, 20)))
        overview = get_capacity_overview(store, COMPANY, WEEK_START, WEEK_END)
        fermenter = next(s for s in overview.equipment_summaries if s.equipment_id == 3)
        assert fermenter.total_capacity_hours == 0
        assert fermenter.utilization_percent == 0

    def test_invalid_range_rejected(self, store):
        with pytest.raises(InvalidRange):
            get_capacity_overview(store, COMPANY, WEEK_END, WEEK_START)

    def test_equal_dates_rejected(self, store):
        with pytest.raises(InvalidRange):
            get_capacity_overview(store, COMPANY, WEEK_START, WEEK_START)


# ---------------------------------------------------------------------------
# Equipment detail
# ---------------------------------------------------------------------------


class TestEquipmentCapacity:
    def test_split_by_allocation_kind(self, store):
        maintenance = CapacityAllocation(
            equipment_id=1,
            allocation_type=AllocationType.MAINTENANCE,
            start_date=WEEK_START,
            end_date=WEEK_END,
            hours_allocated=14,
        )
        buffer = CapacityAllocation(
            equipment_id=1,
            allocation_type=AllocationType.BUFFER,
            start_date=WEEK_START,
            end_date=WEEK_END,
            hours_allocated=7,
        )
        store.save_plan(plan_with(production(1, WEEK_START, WEEK_END, 56), maintenance, buffer))

        detail = get_equipment_capacity(store, 1, WEEK_START, WEEK_END)

        assert detail.production_hours == pytest.approx(56)
        assert detail.maintenance_hours == pytest.approx(14)
        assert detail.buffer_hours == pytest.approx(7)
        assert detail.allocated_hours == pytest.approx(77)
        assert detail.available_hours == pytest.approx(35)
        assert len(detail.allocations) == 3

    def test_lists_active_constraints(self, store):
        store.constraints.append(
            CapacityConstraint(
                company_id=COMPANY,
                constraint_type=ConstraintType.MAX_HOURS_PER_DAY,
                constraint_value=10,
                effective_from=date(2023, 1, 1),
                equipment_id=1,
            )
        )
        detail = get_equipment_capacity(store, 1, WEEK_START, WEEK_END)
        assert detail.total_capacity_hours == pytest.approx(70)
        assert [c.constraint_value for c in detail.active_constraints] == [10]

    def test_missing_equipment(self, store):
        with pytest.raises(NotFound):
            get_equipment_capacity(store, 404, WEEK_START, WEEK_END)


class TestCapacityByType:
    def test_groups_production_hours(self, store):
        store.save_plan(
            plan_with(
                production(1, WEEK_START, WEEK_END, 30, production_type=ProductionType.DISTILLATION),
                production(2, WEEK_START, WEEK_END, 10, production_type=ProductionType.DISTILLATION),
                production(3, WEEK_START, WEEK_END, 60, production_type=ProductionType.FERMENTATION),
            )
        )
        rows = get_capacity_by_type(store, COMPANY, WEEK_START, WEEK_END)

        assert [r.production_type for r in rows] == ["Fermentation", "Distillation"]
        assert rows[0].percent_of_total == 60.0
        assert rows[1].allocation_count == 2
