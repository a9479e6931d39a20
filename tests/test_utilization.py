"""Tests for the utilization analyzer."""

from datetime import date

import pandas as pd
import pytest

from conftest import COMPANY, plan_with, production
from distillery_capacity.capacity.utilization import (
    calculate_utilization,
    get_equipment_utilization,
    get_utilization_trend,
    period_boundaries,
    trend_direction,
)
from distillery_capacity.enums import TrendDirection
from distillery_capacity.errors import InvalidRange


class TestPeriodBoundaries:
    def test_weeks_are_contiguous_and_clipped(self):
        periods = period_boundaries(date(2024, 1, 1), date(2024, 1, 20), "week")
        assert periods == [
            (date(2024, 1, 1), date(2024, 1, 8)),
            (date(2024, 1, 8), date(2024, 1, 15)),
            (date(2024, 1, 15), date(2024, 1, 20)),
        ]

    def test_days(self):
        periods = period_boundaries(date(2024, 1, 1), date(2024, 1, 4), "day")
        assert len(periods) == 3

    def test_calendar_months(self):
        periods = period_boundaries(date(2024, 1, 15), date(2024, 3, 10), "month")
        assert periods == [
            (date(2024, 1, 15), date(2024, 2, 15)),
            (date(2024, 2, 15), date(2024, 3, 10)),
        ]

    def test_unknown_grouping_defaults_to_week(self):
        assert period_boundaries(date(2024, 1, 1), date(2024, 1, 15), "fortnight") == period_boundaries(
            date(2024, 1, 1), date(2024, 1, 15), "week"
        )

    def test_invalid_range(self):
        with pytest.raises(InvalidRange):
            period_boundaries(date(2024, 1, 2), date(2024, 1, 1))


class TestCalculateUtilization:
    def test_breakdown_per_week(self, store):
        store.save_plan(plan_with(production(1, date(2024, 1, 1), date(2024, 1, 15), 140)))
        report = calculate_utilization(store, COMPANY, date(2024, 1, 1), date(2024, 1, 15), "week")

        assert len(report.breakdowns) == 2
        assert sum(b.allocated_hours for b in report.breakdowns) == pytest.approx(140)
        assert report.allocated_hours == pytest.approx(140)

    def test_single_day_allocations_on_edges(self, store):
        store.save_plan(
            plan_with(
                production(1, date(2024, 1, 8), date(2024, 1, 8), 6),
                production(1, date(2024, 1, 15), date(2024, 1, 15), 8),
            )
        )
        report = calculate_utilization(store, COMPANY, date(2024, 1, 1), date(2024, 1, 15), "week")

        # Jan 8 is shared by both weeks and lands in the second; Jan 15 closes the range
        assert [b.allocated_hours for b in report.breakdowns] == [0, 14]
        assert report.allocated_hours == 14

    def test_to_frame(self, store):
        report = calculate_utilization(store, COMPANY, date(2024, 1, 1), date(2024, 1, 15))
        frame = report.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == [
            "period_start", "period_end", "utilization_percent", "capacity_hours", "allocated_hours",
        ]
        assert len(frame) == 2


class TestEquipmentUtilization:
    def test_sorted_highest_first(self, store):
        start, end = date(2024, 1, 1), date(2024, 1, 10)
        store.save_plan(
            plan_with(
                production(1, start, end, 40),
                production(2, start, end, 120),
                production(3, start, end, 80),
            )
        )
        rows = get_equipment_utilization(store, COMPANY, start, end)
        assert [r.equipment_id for r in rows] == [2, 3, 1]
        assert rows[0].utilization_percent == 75.0


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


class TestTrendDirection:
    def test_increasing(self):
        change, direction = trend_direction([50, 50, 60, 60])
        assert change == pytest.approx(10)
        assert direction == TrendDirection.INCREASING

    def test_decreasing(self):
        assert trend_direction([60, 60, 50, 50])[1] == TrendDirection.DECREASING

    def test_small_change_is_stable(self):
        assert trend_direction([50, 52, 53, 54])[1] == TrendDirection.STABLE

    def test_exactly_threshold_is_stable(self):
        assert trend_direction([50, 55])[1] == TrendDirection.STABLE

    def test_odd_count_extra_sample_in_second_half(self):
        change, _ = trend_direction([50, 60, 70])
        assert change == pytest.approx(15)

    def test_fewer_than_two_samples(self):
        assert trend_direction([70]) == (0.0, TrendDirection.STABLE)
        assert trend_direction([]) == (0.0, TrendDirection.STABLE)


class TestUtilizationTrend:
    def test_monthly_samples_from_first_of_month(self, store):
        trend = get_utilization_trend(store, COMPANY, period_months=6, as_of=date(2024, 6, 15))

        assert len(trend.monthly) == 7
        assert (trend.monthly[0].year, trend.monthly[0].month) == (2023, 12)
        assert (trend.monthly[-1].year, trend.monthly[-1].month) == (2024, 6)
        assert trend.direction == TrendDirection.STABLE

    def test_rising_load_is_increasing(self, store):
        store.save_plan(
            plan_with(
                production(1, date(2024, 4, 1), date(2024, 4, 30), 400),
                production(2, date(2024, 4, 1), date(2024, 4, 30), 400),
                production(3, date(2024, 4, 1), date(2024, 4, 30), 400),
                start=date(2024, 4, 1),
                end=date(2024, 4, 30),
            )
        )
        trend = get_utilization_trend(store, COMPANY, period_months=1, as_of=date(2024, 4, 30))

        assert [m.month for m in trend.monthly] == [3, 4]
        assert trend.direction == TrendDirection.INCREASING
