"""
Enumerations shared across the capacity engine, plus a validated parse step
for values that arrive as free text (plan type, allocation kind, constraint
type, ...).

parse_enum never raises: it returns a ParseResult that is either ok (with the
member) or an error naming the unrecognised value. Callers that cannot proceed
without a value call .unwrap(), which turns the error into InvalidArgument.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, Optional, Type, TypeVar

from distillery_capacity.errors import InvalidArgument


class AllocationType(str, Enum):
    PRODUCTION = "Production"
    MAINTENANCE = "Maintenance"
    BUFFER = "Buffer"


class ConstraintType(str, Enum):
    MAX_HOURS_PER_DAY = "MaxHoursPerDay"


class PlanType(str, Enum):
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"


class PlanStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class ProductionType(str, Enum):
    MASHING = "Mashing"
    FERMENTATION = "Fermentation"
    DISTILLATION = "Distillation"
    BARRELING = "Barreling"
    BOTTLING = "Bottling"
    OTHER = "Other"


class ProductionRunStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


TERMINAL_RUN_STATUSES = (ProductionRunStatus.COMPLETED, ProductionRunStatus.CANCELLED)


class EquipmentType(str, Enum):
    STILL = "Still"
    FERMENTER = "Fermenter"
    MASH_TUN = "MashTun"
    BOTTLING_LINE = "BottlingLine"
    LABELER = "Labeler"
    TANK = "Tank"
    OTHER = "Other"


class AlertSeverity(IntEnum):
    WARNING = 1
    CRITICAL = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


class BottleneckSeverity(IntEnum):
    """Ordered so that severities compare naturally (LOW < CRITICAL)."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ResolutionType(str, Enum):
    ADD_EQUIPMENT = "AddEquipment"
    EXTEND_HOURS = "ExtendHours"
    OPTIMIZE_SCHEDULE = "OptimizeSchedule"
    REDUCE_MAINTENANCE_TIME = "ReduceMaintenanceTime"


class ForecastMethod(str, Enum):
    MOVING_AVERAGE = "MovingAverage"
    EXPONENTIAL_SMOOTHING = "ExponentialSmoothing"
    LINEAR_REGRESSION = "LinearRegression"
    SEASONAL_ADJUSTED = "SeasonalAdjusted"


class ScenarioChangeType(str, Enum):
    ADD_EQUIPMENT = "AddEquipment"
    REMOVE_EQUIPMENT = "RemoveEquipment"
    CHANGE_OPERATING_HOURS = "ChangeOperatingHours"


class TrendDirection(str, Enum):
    INCREASING = "Increasing"
    DECREASING = "Decreasing"
    STABLE = "Stable"


# ----------------------------
# Validated parsing
# ----------------------------

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class ParseResult(Generic[E]):
    value: Optional[E] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[E]:
        if self.error is not None:
            raise InvalidArgument(self.error)
        return self.value


def _normalize(text: str) -> str:
    return text.strip().replace("_", "").replace(" ", "").replace("-", "").lower()


def parse_enum(enum_cls: Type[E], raw: object) -> ParseResult[E]:
    """
    Case-insensitive lookup by value or member name.

        parse_enum(PlanType, "monthly")   -> ok(PlanType.MONTHLY)
        parse_enum(PlanType, "fortnight") -> error("Unrecognized PlanType value: 'fortnight'")
    """
    if isinstance(raw, enum_cls):
        return ParseResult(value=raw)
    if raw is None or not str(raw).strip():
        return ParseResult(error=f"Missing {enum_cls.__name__} value")

    key = _normalize(str(raw))
    for member in enum_cls:
        if _normalize(str(member.value)) == key or _normalize(member.name) == key:
            return ParseResult(value=member)
    return ParseResult(error=f"Unrecognized {enum_cls.__name__} value: {raw!r}")


def parse_optional_enum(enum_cls: Type[E], raw: object) -> ParseResult[E]:
    """Like parse_enum, but blank input parses to ok(None)."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ParseResult()
    return parse_enum(enum_cls, raw)
