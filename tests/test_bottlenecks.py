"""Tests for the bottleneck detector."""

from datetime import date

import pytest

from conftest import COMPANY, plan_with, production
from distillery_capacity.capacity.bottlenecks import (
    analyze_bottleneck,
    classify_severity,
    get_bottleneck_resolutions,
    identify_bottlenecks,
    suggest_resolutions,
)
from distillery_capacity.capacity.capacity_models import Bottleneck
from distillery_capacity.data.records import CapacityAllocation, ProductionRun
from distillery_capacity.enums import (
    AllocationType,
    BottleneckSeverity,
    ProductionRunStatus,
    ResolutionType,
)
from distillery_capacity.errors import InvalidRange

START = date(2024, 1, 1)
END = date(2024, 1, 10)   # 10 days -> 160h per equipment


def run(run_id, equipment_id, status=ProductionRunStatus.SCHEDULED):
    return ProductionRun(
        id=run_id,
        company_id=COMPANY,
        name=f"Batch {run_id}",
        scheduled_start=date(2024, 1, 2),
        scheduled_end=date(2024, 1, 4),
        status=status,
        equipment_ids=(equipment_id,),
    )


@pytest.fixture
def loaded_store(store):
    store.save_plan(
        plan_with(
            production(1, START, END, 156),   # 97.5%
            production(2, START, END, 146),   # 91.25%
            production(3, START, END, 80),    # 50%
        )
    )
    store.production_runs.extend(
        [
            run(1, 1),
            run(2, 1, ProductionRunStatus.COMPLETED),
            run(3, 1, ProductionRunStatus.CANCELLED),
            run(4, 2, ProductionRunStatus.IN_PROGRESS),
        ]
    )
    return store


def bottleneck(severity, lost=100.0):
    return Bottleneck(
        equipment_id=1,
        equipment_name="Pot Still",
        equipment_type="Still",
        severity=severity,
        utilization_percent=90.0,
        affected_production_runs=0,
        average_wait_hours=0.0,
        estimated_lost_capacity=lost,
        description="",
    )


class TestClassifySeverity:
    @pytest.mark.parametrize(
        "utilization, expected",
        [
            (95.0, BottleneckSeverity.CRITICAL),
            (94.9, BottleneckSeverity.HIGH),
            (90.0, BottleneckSeverity.HIGH),
            (89.9, BottleneckSeverity.MEDIUM),
            (85.0, BottleneckSeverity.MEDIUM),
            (84.9, BottleneckSeverity.LOW),
            (0.0, BottleneckSeverity.LOW),
        ],
    )
    def test_inclusive_lower_bounds(self, utilization, expected):
        assert classify_severity(utilization) == expected


class TestIdentifyBottlenecks:
    def test_only_equipment_above_warning_threshold(self, loaded_store):
        found = identify_bottlenecks(loaded_store, COMPANY, START, END)
        assert [b.equipment_id for b in found] == [1, 2]
        assert [b.severity for b in found] == [BottleneckSeverity.CRITICAL, BottleneckSeverity.HIGH]

    def test_terminal_runs_are_not_counted(self, loaded_store):
        found = identify_bottlenecks(loaded_store, COMPANY, START, END)
        assert found[0].affected_production_runs == 1
        assert found[1].affected_production_runs == 1

    def test_lost_capacity_and_wait(self, loaded_store):
        still = identify_bottlenecks(loaded_store, COMPANY, START, END)[0]
        # allocated 156 - available 4
        assert still.estimated_lost_capacity == pytest.approx(152)
        assert still.average_wait_hours == pytest.approx(152)
        assert "Pot Still" in still.description

    def test_min_severity_low_keeps_warning_threshold(self, loaded_store):
        found = identify_bottlenecks(loaded_store, COMPANY, START, END, BottleneckSeverity.LOW)
        assert [b.equipment_id for b in found] == [1, 2]

    def test_idle_equipment_never_listed(self, store):
        assert identify_bottlenecks(store, COMPANY, START, END, BottleneckSeverity.LOW) == ()

    def test_min_severity_filters(self, loaded_store):
        found = identify_bottlenecks(loaded_store, COMPANY, START, END, BottleneckSeverity.CRITICAL)
        assert [b.equipment_id for b in found] == [1]

    def test_returns_tuple(self, loaded_store):
        assert isinstance(identify_bottlenecks(loaded_store, COMPANY, START, END), tuple)

    def test_invalid_range(self, loaded_store):
        with pytest.raises(InvalidRange):
            identify_bottlenecks(loaded_store, COMPANY, END, START)


class TestAnalyzeBottleneck:
    def test_affected_runs_and_factors(self, loaded_store):
        analysis = analyze_bottleneck(loaded_store, 1, START, END)

        assert analysis.severity == BottleneckSeverity.CRITICAL
        assert [r.production_run_id for r in analysis.affected_runs] == [1]
        assert analysis.average_wait_hours == 2.0
        assert analysis.max_wait_hours == 2.0
        assert analysis.estimated_lost_capacity == 0
        assert analysis.contributing_factors == ("Very high demand on this equipment",)

    def test_maintenance_overhead_and_busy_schedule(self, store):
        maintenance = CapacityAllocation(
            equipment_id=3,
            allocation_type=AllocationType.MAINTENANCE,
            start_date=START,
            end_date=END,
            hours_allocated=40,
        )
        store.save_plan(plan_with(maintenance))
        store.production_runs.extend(run(i, 3) for i in range(10, 16))

        analysis = analyze_bottleneck(store, 3, START, END)

        assert len(analysis.affected_runs) == 6
        assert analysis.contributing_factors == (
            "Significant maintenance overhead",
            "Multiple production runs competing for time slots",
        )


class TestSuggestResolutions:
    def test_critical_gets_full_catalog_sorted_by_score(self):
        options = suggest_resolutions(bottleneck(BottleneckSeverity.CRITICAL))
        assert [o.resolution_type for o in options] == [
            ResolutionType.ADD_EQUIPMENT,
            ResolutionType.EXTEND_HOURS,
            ResolutionType.OPTIMIZE_SCHEDULE,
            ResolutionType.REDUCE_MAINTENANCE_TIME,
        ]
        assert [o.effectiveness_score for o in options] == [90, 75, 60, 50]

    def test_medium_has_no_add_equipment(self):
        options = suggest_resolutions(bottleneck(BottleneckSeverity.MEDIUM))
        assert ResolutionType.ADD_EQUIPMENT not in {o.resolution_type for o in options}
        assert ResolutionType.REDUCE_MAINTENANCE_TIME in {o.resolution_type for o in options}

    def test_low_gets_schedule_and_hours_only(self):
        options = suggest_resolutions(bottleneck(BottleneckSeverity.LOW))
        assert [o.resolution_type for o in options] == [
            ResolutionType.EXTEND_HOURS,
            ResolutionType.OPTIMIZE_SCHEDULE,
        ]

    def test_gain_is_fraction_of_lost_capacity(self):
        options = suggest_resolutions(bottleneck(BottleneckSeverity.HIGH, lost=200))
        gains = {o.resolution_type: o.estimated_capacity_gain for o in options}
        assert gains[ResolutionType.ADD_EQUIPMENT] == pytest.approx(100)
        assert gains[ResolutionType.EXTEND_HOURS] == pytest.approx(60)
        assert gains[ResolutionType.OPTIMIZE_SCHEDULE] == pytest.approx(30)
        assert gains[ResolutionType.REDUCE_MAINTENANCE_TIME] == pytest.approx(20)

    def test_add_equipment_names_type_and_cost(self):
        add = suggest_resolutions(bottleneck(BottleneckSeverity.HIGH))[0]
        assert add.description == "Add another Still to increase capacity"
        assert add.estimated_cost == 50000
        assert add.prerequisites == ("Budget approval", "Space availability", "Staff training")

    def test_resolutions_for_equipment(self, loaded_store):
        options = get_bottleneck_resolutions(loaded_store, 1, START, END)
        assert options[0].resolution_type == ResolutionType.ADD_EQUIPMENT
