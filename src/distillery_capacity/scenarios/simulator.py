"""
What-if Scenario Simulator

Enterprise rules:
- Never writes to the data source
- Baseline bottlenecks are reported unchanged
- Allocated hours are held constant; only capacity moves

Change parameters (all optional):
- AddEquipment:          hoursPerDay (default 16), cost (default 50000)
- RemoveEquipment:       equipment_id on the change itself
- ChangeOperatingHours:  hoursDelta (default 0), applied to every active equipment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from distillery_capacity.capacity.bottlenecks import identify_bottlenecks
from distillery_capacity.capacity.capacity_domain import (
    available_hours,
    require_valid_range,
    total_days,
    utilization_percent,
)
from distillery_capacity.capacity.capacity_models import Bottleneck, CapacityOverview
from distillery_capacity.capacity.capacity_usecase import (
    get_capacity_overview,
    get_equipment_capacity,
)
from distillery_capacity.data.source import CapacityDataSource
from distillery_capacity.enums import ScenarioChangeType, parse_enum
from distillery_capacity.errors import InvalidArgument, NotFound
from distillery_capacity.utils.config import CapacitySettings, resolve_settings
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScenarioChange:
    change_type: Union[str, ScenarioChangeType]
    equipment_id: Optional[int] = None
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WhatIfScenario:
    name: str
    changes: Sequence[ScenarioChange]
    evaluation_start: date
    evaluation_end: date


@dataclass(frozen=True)
class ScenarioResult:
    scenario_name: str
    projected_overview: CapacityOverview
    projected_bottlenecks: Tuple[Bottleneck, ...]
    capacity_change_hours: float
    capacity_change_percent: float
    cost_impact: float
    summary: str


def _number(parameters: Mapping[str, Any], key: str, default: float) -> float:
    raw = parameters.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Scenario parameter {key!r} must be numeric", raw) from exc


def summarize_change(capacity_change: float, change_percent: float) -> str:
    if capacity_change > 0:
        return f"Adding {capacity_change:.0f} hours of capacity ({change_percent:.1f}% increase)"
    if capacity_change < 0:
        return (
            f"Reducing {abs(capacity_change):.0f} hours of capacity "
            f"({abs(change_percent):.1f}% decrease)"
        )
    return "No net change in capacity"


def simulate(
    baseline: CapacityOverview,
    baseline_bottlenecks: Sequence[Bottleneck],
    scenario: WhatIfScenario,
    active_equipment_count: int,
    equipment_capacity: Optional[Mapping[int, float]] = None,
    settings: Optional[CapacitySettings] = None,
) -> ScenarioResult:
    """
    Apply the scenario's changes, in order, to a baseline overview.
    equipment_capacity maps equipment id -> its capacity hours for the
    evaluation period (needed by RemoveEquipment).
    """
    cfg = resolve_settings(settings)
    require_valid_range(scenario.evaluation_start, scenario.evaluation_end)
    days = total_days(scenario.evaluation_start, scenario.evaluation_end)
    known = equipment_capacity or {}

    capacity_change = 0.0
    cost_impact = 0.0
    equipment_delta = 0

    for change in scenario.changes:
        kind = parse_enum(ScenarioChangeType, change.change_type).unwrap()

        if kind == ScenarioChangeType.ADD_EQUIPMENT:
            hours_per_day = _number(change.parameters, "hoursPerDay", cfg.default_daily_hours)
            capacity_change += hours_per_day * days
            cost_impact += _number(change.parameters, "cost", cfg.scenario_equipment_cost)
            equipment_delta += 1

        elif kind == ScenarioChangeType.REMOVE_EQUIPMENT:
            if change.equipment_id is None:
                raise InvalidArgument("RemoveEquipment requires an equipment_id")
            if change.equipment_id not in known:
                raise NotFound("Equipment", change.equipment_id)
            capacity_change -= known[change.equipment_id]
            equipment_delta -= 1

        elif kind == ScenarioChangeType.CHANGE_OPERATING_HOURS:
            hours_delta = _number(change.parameters, "hoursDelta", 0.0)
            capacity_change += hours_delta * active_equipment_count * days
            if hours_delta > 0:
                cost_impact += cfg.scenario_hours_increase_cost
            elif hours_delta < 0:
                cost_impact -= cfg.scenario_hours_decrease_rebate

    projected_capacity = baseline.total_capacity_hours + capacity_change
    projected = CapacityOverview(
        equipment_count=baseline.equipment_count + equipment_delta,
        total_capacity_hours=projected_capacity,
        allocated_hours=baseline.allocated_hours,
        available_hours=available_hours(projected_capacity, baseline.allocated_hours),
        utilization_percent=round(utilization_percent(baseline.allocated_hours, projected_capacity), 2),
        equipment_summaries=baseline.equipment_summaries,
        alerts=baseline.alerts,
    )

    change_percent = (
        round(capacity_change / baseline.total_capacity_hours * 100, 2)
        if baseline.total_capacity_hours > 0
        else 0.0
    )

    return ScenarioResult(
        scenario_name=scenario.name,
        projected_overview=projected,
        projected_bottlenecks=tuple(baseline_bottlenecks),
        capacity_change_hours=capacity_change,
        capacity_change_percent=change_percent,
        cost_impact=cost_impact,
        summary=summarize_change(capacity_change, change_percent),
    )


def run_scenario(
    source: CapacityDataSource,
    company_id: int,
    scenario: WhatIfScenario,
    settings: Optional[CapacitySettings] = None,
) -> ScenarioResult:
    cfg = resolve_settings(settings)
    start, end = scenario.evaluation_start, scenario.evaluation_end
    logger.info("Run what-if scenario | name=%s | company=%s", scenario.name, company_id)

    baseline = get_capacity_overview(source, company_id, start, end, cfg)
    bottlenecks = identify_bottlenecks(source, company_id, start, end, settings=cfg)
    active_count = len(source.list_equipment(company_id, active_only=True))

    removed: Dict[int, float] = {}
    for change in scenario.changes:
        kind = parse_enum(ScenarioChangeType, change.change_type).unwrap()
        if kind == ScenarioChangeType.REMOVE_EQUIPMENT and change.equipment_id is not None:
            detail = get_equipment_capacity(source, change.equipment_id, start, end, cfg)
            removed[change.equipment_id] = detail.total_capacity_hours

    return simulate(baseline, bottlenecks, scenario, active_count, removed, cfg)
