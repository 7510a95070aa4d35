"""Error types shared across the interval tracker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class TrackerError(Exception):
    """Base class for interval tracker failures."""


class FormatError(TrackerError, ValueError):
    """A time or date string does not match its canonical pattern."""


class SchemaError(TrackerError, ValueError):
    """An exported document uses an unknown or unsupported schema."""


class RecordNotFoundError(TrackerError, LookupError):
    """No stored record exists for the requested id."""


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single field-level problem with user supplied data."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True, slots=True)
class AggregationWarning:
    """A record that was left out of an aggregation."""

    record_id: Optional[int]
    value: str
    message: str


class ValidationFailed(TrackerError):
    """Raised when an invalid record is handed over for persistence."""

    def __init__(self, errors: list[ValidationError]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(error) for error in self.errors))
