"""Shared fixtures: a small distillery with two stills and a fermenter."""

from datetime import date

import pytest

from distillery_capacity.data.records import (
    CapacityAllocation,
    CapacityPlan,
    Equipment,
)
from distillery_capacity.data.source import InMemoryCapacityStore
from distillery_capacity.enums import AllocationType, EquipmentType, PlanStatus, PlanType
from distillery_capacity.utils.config import CapacitySettings

COMPANY = 1


def production(equipment_id, start, end, hours, **kwargs):
    return CapacityAllocation(
        equipment_id=equipment_id,
        allocation_type=AllocationType.PRODUCTION,
        start_date=start,
        end_date=end,
        hours_allocated=hours,
        **kwargs,
    )


def plan_with(*allocations, status=PlanStatus.ACTIVE, start=date(2024, 1, 1), end=date(2024, 1, 31), **kwargs):
    return CapacityPlan(
        company_id=kwargs.pop("company_id", COMPANY),
        name=kwargs.pop("name", "January"),
        period_start=start,
        period_end=end,
        plan_type=PlanType.MONTHLY,
        status=status,
        allocations=tuple(allocations),
        **kwargs,
    )


@pytest.fixture
def settings():
    return CapacitySettings()


@pytest.fixture
def equipment():
    return [
        Equipment(id=1, company_id=COMPANY, name="Pot Still", equipment_type=EquipmentType.STILL),
        Equipment(id=2, company_id=COMPANY, name="Column Still", equipment_type=EquipmentType.STILL),
        Equipment(id=3, company_id=COMPANY, name="Fermenter A", equipment_type=EquipmentType.FERMENTER),
        Equipment(id=4, company_id=COMPANY, name="Old Mash Tun", equipment_type=EquipmentType.MASH_TUN, is_active=False),
        Equipment(id=9, company_id=2, name="Other Company Still", equipment_type=EquipmentType.STILL),
    ]


@pytest.fixture
def store(equipment):
    return InMemoryCapacityStore(equipment=equipment)
