"""Derivation and validation rules for interval and category records."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Generic, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from .errors import FormatError, ValidationError
from .models import CategoryRecord, IntervalRecord
from .timemath import compute_duration, parse_clock_time, string_to_date

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 40

CLOCK_TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$"
DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"

EDITABLE_INTERVAL_FIELDS = frozenset({"name", "date", "start_time", "end_time", "category"})
DERIVED_INTERVAL_FIELDS = frozenset({"duration", "crosses_midnight"})

T = TypeVar("T")


@dataclass(slots=True)
class ValidationResult(Generic[T]):
    """A record together with every problem found in it."""

    record: T
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class IntervalSchema(BaseModel):
    name: str = Field(max_length=NAME_MAX_LENGTH)
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=CLOCK_TIME_PATTERN)
    end_time: str = Field(pattern=CLOCK_TIME_PATTERN)
    duration: str = Field(pattern=CLOCK_TIME_PATTERN)
    crosses_midnight: bool
    category: str = Field(max_length=CATEGORY_MAX_LENGTH)
    id: Optional[int] = None

    model_config = ConfigDict(extra="forbid", strict=True)

    @field_validator("date")
    @classmethod
    def _real_calendar_day(cls, value: str) -> str:
        try:
            string_to_date(value)
        except FormatError as exc:
            raise ValueError("date is not a valid calendar day") from exc
        return value

    @model_validator(mode="after")
    def _derived_fields_consistent(self) -> "IntervalSchema":
        duration, crosses_midnight = compute_duration(self.start_time, self.end_time)
        if duration != self.duration or crosses_midnight != self.crosses_midnight:
            raise ValueError("duration does not match start_time and end_time")
        return self


class CategorySchema(BaseModel):
    name: str = Field(min_length=1, max_length=CATEGORY_MAX_LENGTH)
    id: Optional[int] = None

    model_config = ConfigDict(extra="forbid", strict=True)

    @field_validator("name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


def derive_fields(record: IntervalRecord) -> IntervalRecord:
    """Return a copy with ``duration`` and ``crosses_midnight`` recomputed.

    Start and end times are rewritten in canonical ``HH:MM:SS`` form.
    Raises :class:`FormatError` when either time is malformed.
    """
    start = parse_clock_time(record.start_time)
    end = parse_clock_time(record.end_time)
    duration, crosses_midnight = compute_duration(start, end)
    return replace(
        record,
        start_time=str(start),
        end_time=str(end),
        duration=duration,
        crosses_midnight=crosses_midnight,
    )


def validate_interval(record: IntervalRecord) -> ValidationResult[IntervalRecord]:
    return ValidationResult(record, _collect_errors(IntervalSchema, asdict(record)))


def prepare_interval(record: IntervalRecord) -> ValidationResult[IntervalRecord]:
    """Derive the computed fields when possible, then validate."""
    try:
        record = derive_fields(record)
    except FormatError as exc:
        logger.debug("Derivation skipped: %s", exc)
    return validate_interval(record)


def apply_update(
    record: IntervalRecord, changes: Mapping[str, Any]
) -> ValidationResult[IntervalRecord]:
    """Merge user edits into ``record`` and re-derive the computed fields."""
    errors: list[ValidationError] = []
    accepted: dict[str, Any] = {}
    for name, value in changes.items():
        if name in EDITABLE_INTERVAL_FIELDS:
            accepted[name] = value
        elif name in DERIVED_INTERVAL_FIELDS:
            errors.append(ValidationError(name, "derived from start_time and end_time"))
        elif name == "id":
            errors.append(ValidationError(name, "id cannot be changed"))
        else:
            errors.append(ValidationError(name, "unknown field"))

    result = prepare_interval(replace(record, **accepted))
    result.errors[:0] = errors
    return result


def validate_category(
    record: CategoryRecord, existing: Iterable[CategoryRecord] = ()
) -> ValidationResult[CategoryRecord]:
    """Check a category name, including case-insensitive uniqueness."""
    errors = _collect_errors(CategorySchema, asdict(record))
    if isinstance(record.name, str):
        wanted = record.name.strip().casefold()
        for other in existing:
            if other.id == record.id and record.id is not None:
                continue
            if other.name.strip().casefold() == wanted:
                errors.append(ValidationError("name", f"category {other.name!r} already exists"))
                break
    return ValidationResult(record, errors)


def _collect_errors(schema: type[BaseModel], payload: dict[str, Any]) -> list[ValidationError]:
    try:
        schema.model_validate(payload)
    except PydanticValidationError as exc:
        return [_to_validation_error(error) for error in exc.errors()]
    return []


def _to_validation_error(error: Mapping[str, Any]) -> ValidationError:
    location = error.get("loc") or ()
    field_name = str(location[0]) if location else "duration"
    message = str(error.get("msg", "invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ValidationError(field_name, message)
