"""Tests for constraint record management."""

from datetime import date

import pytest

from conftest import COMPANY
from distillery_capacity.enums import ConstraintType
from distillery_capacity.errors import InvalidArgument
from distillery_capacity.planning.constraint_service import (
    create_constraint,
    deactivate_constraint,
    list_constraints,
    update_constraint,
)
from distillery_capacity.planning.plan_models import ConstraintChanges, ConstraintRequest


def request(**overrides):
    fields = dict(
        constraint_type="max hours per day",
        constraint_value=12,
        effective_from=date(2024, 1, 1),
        equipment_id=1,
        reason="Single shift",
    )
    fields.update(overrides)
    return ConstraintRequest(**fields)


class TestCreateConstraint:
    def test_parses_type(self):
        c = create_constraint(request(), COMPANY)
        assert c.constraint_type == ConstraintType.MAX_HOURS_PER_DAY
        assert c.is_active
        assert not c.is_global

    def test_unknown_type(self):
        with pytest.raises(InvalidArgument):
            create_constraint(request(constraint_type="MaxBatchesPerWeek"), COMPANY)

    def test_window_must_not_end_before_start(self):
        with pytest.raises(InvalidArgument):
            create_constraint(request(effective_to=date(2023, 12, 31)), COMPANY)

    def test_negative_value(self):
        with pytest.raises(InvalidArgument):
            create_constraint(request(constraint_value=-1), COMPANY)


class TestEditConstraint:
    def test_update_value(self):
        c = create_constraint(request(), COMPANY)
        assert update_constraint(c, ConstraintChanges(constraint_value=10)).constraint_value == 10

    def test_deactivate(self):
        c = create_constraint(request(), COMPANY)
        assert deactivate_constraint(c).is_active is False
        assert c.is_active is True


class TestListConstraints:
    def test_active_only_by_default(self, store):
        active = create_constraint(request(), COMPANY)
        inactive = deactivate_constraint(create_constraint(request(constraint_value=8), COMPANY))
        store.constraints.extend([active, inactive])

        assert list_constraints(store, COMPANY) == [active]
        assert len(list_constraints(store, COMPANY, active_only=False)) == 2
