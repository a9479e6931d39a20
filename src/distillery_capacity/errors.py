"""Exceptions raised by the capacity engine to its immediate caller."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from distillery_capacity.planning.plan_models import CapacityValidation


class CapacityError(Exception):
    """Base class for all engine errors."""


class InvalidRange(CapacityError, ValueError):
    """Raised when a date range ends on or before its start."""

    def __init__(self, start: date, end: date) -> None:
        super().__init__(f"Invalid date range: end {end} must be after start {start}")
        self.start = start
        self.end = end


class NotFound(CapacityError, LookupError):
    """Raised when referenced equipment, plan or constraint does not exist."""

    def __init__(self, kind: str, record_id: Any) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class InvalidState(CapacityError):
    """Raised when a plan transition or edit is not allowed in its status."""


class ValidationFailed(CapacityError):
    """Raised when a plan with blocking issues is activated."""

    def __init__(self, validation: "CapacityValidation") -> None:
        descriptions = ", ".join(issue.description for issue in validation.issues)
        super().__init__(f"Plan has validation errors: {descriptions}")
        self.validation = validation


class InsufficientData(CapacityError):
    """Raised when there is not enough history to forecast from."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            f"Insufficient historical data for forecasting ({available} of {required} periods)"
        )
        self.available = available
        self.required = required


class InvalidArgument(CapacityError, ValueError):
    """Raised when caller input cannot be interpreted."""

    def __init__(self, message: str, value: Optional[Any] = None) -> None:
        super().__init__(message)
        self.value = value


__all__ = [
    "CapacityError",
    "InvalidArgument",
    "InvalidRange",
    "InvalidState",
    "InsufficientData",
    "NotFound",
    "ValidationFailed",
]
