"""
Capacity Aggregator Use Cases

Purpose:
- Fetch equipment / allocations / constraints for ONE company or equipment
- Hand them to the pure capacity domain
- Return overview / detail objects for the caller

Important:
- Read-only: nothing here writes to the data source
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from distillery_capacity.capacity.capacity_domain import (
    build_equipment_detail,
    build_overview,
    capacity_by_production_type,
    require_valid_range,
)
from distillery_capacity.capacity.capacity_models import (
    CapacityByProductionType,
    CapacityOverview,
    EquipmentCapacityDetail,
)
from distillery_capacity.capacity.constraints import active_constraints
from distillery_capacity.data.records import Equipment
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.errors import NotFound
from distillery_capacity.utils.config import CapacitySettings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def get_capacity_overview(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
    closed_end: bool = True,
) -> CapacityOverview:
    """Total / allocated / available capacity for every active equipment of a company."""
    require_valid_range(start, end)
    logger.info("Capacity overview | company=%s | %s -> %s", company_id, start, end)

    equipment = source.list_equipment(company_id, active_only=True)
    allocations = source.list_allocations(start, end, company_id=company_id)
    constraints = active_constraints(
        source.list_constraints(company_id, active_only=True, start=start, end=end),
        company_id,
        start,
        end,
    )

    if not equipment:
        logger.warning("No active equipment for company=%s", company_id)

    return build_overview(equipment, allocations, constraints, start, end, settings, closed_end)


def require_equipment(source: CapacityDataSource, equipment_id: int) -> Equipment:
    equipment = source.get_equipment(equipment_id)
    if equipment is None:
        raise NotFound("Equipment", equipment_id)
    return equipment


def get_equipment_capacity(
    source: CapacityDataSource,
    equipment_id: int,
    start: date,
    end: date,
    settings: Optional[CapacitySettings] = None,
    closed_end: bool = True,
) -> EquipmentCapacityDetail:
    """Capacity for one equipment, split by allocation kind."""
    require_valid_range(start, end)
    equipment = require_equipment(source, equipment_id)

    allocations = source.list_allocations(start, end, equipment_id=equipment_id)
    constraints = active_constraints(
        source.list_constraints(
            equipment.company_id, equipment_id=equipment_id, active_only=True, start=start, end=end
        ),
        equipment.company_id,
        start,
        end,
    )
    constraints = [c for c in constraints if c.equipment_id in (None, equipment_id)]

    return build_equipment_detail(equipment, allocations, constraints, start, end, settings, closed_end)


def get_capacity_by_type(
    source: CapacityDataSource,
    company_id: int,
    start: date,
    end: date,
) -> List[CapacityByProductionType]:
    """Production hours in the range grouped by production category."""
    require_valid_range(start, end)
    allocations = source.list_allocations(start, end, company_id=company_id)
    return capacity_by_production_type(allocations, start, end)
