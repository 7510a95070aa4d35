"""Versioned JSON documents for exporting and importing tracker data.

Version history:

1. Legacy interval list. ``startTime``/``endTime`` are ISO timestamps, an
   optional ``description`` and a ``createdAt`` stamp are present, there is no
   date, duration or category. Stored either as a bare JSON array or wrapped
   in a document without ``schemaVersion``.
2. Current layout. Intervals carry ``date``, clock-time ``startTime`` and
   ``endTime``, the derived ``duration`` and ``isDifDays`` and a ``category``
   name. Categories are exported next to them.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .errors import SchemaError
from .models import UNCATEGORIZED, CategoryRecord, IntervalRecord
from .timemath import SECONDS_PER_DAY, clock_time_of, compute_duration, date_to_string

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

Payload = dict[str, Any]


def interval_to_payload(record: IntervalRecord) -> Payload:
    return {
        "id": record.id,
        "name": record.name,
        "date": record.date,
        "startTime": record.start_time,
        "endTime": record.end_time,
        "duration": record.duration,
        "isDifDays": record.crosses_midnight,
        "category": record.category,
    }


def interval_from_payload(payload: Mapping[str, Any]) -> IntervalRecord:
    """Build a record from a current-version payload.

    ``duration`` and ``isDifDays`` may be missing; callers re-derive them.
    """
    try:
        name = payload["name"]
        day = payload["date"]
        start_time = payload["startTime"]
        end_time = payload["endTime"]
    except KeyError as exc:
        raise SchemaError(f"interval payload is missing {exc.args[0]!r}") from exc
    identifier = payload.get("id")
    return IntervalRecord(
        id=identifier if isinstance(identifier, int) and not isinstance(identifier, bool) else None,
        name=name,
        date=day,
        start_time=start_time,
        end_time=end_time,
        duration=payload.get("duration", "00:00:00"),
        crosses_midnight=bool(payload.get("isDifDays", False)),
        category=payload.get("category") or UNCATEGORIZED,
    )


def category_to_payload(record: CategoryRecord) -> Payload:
    return {"id": record.id, "name": record.name}


def category_from_payload(payload: Mapping[str, Any]) -> CategoryRecord:
    try:
        return CategoryRecord(name=payload["name"])
    except (KeyError, TypeError) as exc:
        raise SchemaError("category payload must be an object with a 'name'") from exc


def migrate_v1_to_v2(payload: Mapping[str, Any]) -> Payload:
    """Anchor a legacy timestamp-based interval to a date and clock times."""
    try:
        start = _parse_timestamp(payload["startTime"])
        end = _parse_timestamp(payload["endTime"])
    except KeyError as exc:
        raise SchemaError(f"legacy interval is missing {exc.args[0]!r}") from exc

    if (end - start).total_seconds() >= SECONDS_PER_DAY:
        logger.warning(
            "Legacy interval %s spans more than a day; only the clock times are kept.",
            payload.get("id"),
        )
    if payload.get("description"):
        logger.debug("Dropping description of legacy interval %s.", payload.get("id"))

    start_clock = clock_time_of(start)
    end_clock = clock_time_of(end)
    duration, crosses_midnight = compute_duration(start_clock, end_clock)
    return {
        "id": payload.get("id"),
        "name": payload.get("name", ""),
        "date": date_to_string(start),
        "startTime": start_clock,
        "endTime": end_clock,
        "duration": duration,
        "isDifDays": crosses_midnight,
        "category": UNCATEGORIZED,
    }


MIGRATIONS: dict[int, Callable[[Mapping[str, Any]], Payload]] = {
    1: migrate_v1_to_v2,
}


def upgrade_interval_payload(payload: Mapping[str, Any], version: int) -> Payload:
    """Apply migrations until ``payload`` is at :data:`SCHEMA_VERSION`."""
    current = dict(payload)
    while version < SCHEMA_VERSION:
        current = MIGRATIONS[version](current)
        version += 1
    return current


def build_document(
    intervals: Iterable[IntervalRecord], categories: Iterable[CategoryRecord]
) -> Payload:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "exportedAt": datetime.now().isoformat(timespec="seconds"),
        "intervals": [interval_to_payload(record) for record in intervals],
        "categories": [category_to_payload(record) for record in categories],
    }


def read_document(
    document: Union[Mapping[str, Any], list[Any]],
) -> tuple[list[IntervalRecord], list[CategoryRecord]]:
    """Parse an exported document of any supported version."""
    if isinstance(document, list):
        version: Any = 1
        raw_intervals: Any = document
        raw_categories: Any = []
    elif isinstance(document, Mapping):
        version = document.get("schemaVersion", 1)
        raw_intervals = document.get("intervals", [])
        raw_categories = document.get("categories", [])
    else:
        raise SchemaError(f"unsupported document type {type(document).__name__}")

    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaError(f"schemaVersion must be an integer, got {version!r}")
    if not 1 <= version <= SCHEMA_VERSION:
        raise SchemaError(
            f"unsupported schemaVersion {version}; expected 1..{SCHEMA_VERSION}"
        )
    if not isinstance(raw_intervals, list) or not isinstance(raw_categories, list):
        raise SchemaError("'intervals' and 'categories' must be lists")

    if version < SCHEMA_VERSION:
        logger.info("Migrating %d intervals from schema %d.", len(raw_intervals), version)
    intervals = [
        interval_from_payload(upgrade_interval_payload(_as_mapping(item), version))
        for item in raw_intervals
    ]
    categories = [category_from_payload(item) for item in raw_categories]
    return intervals, categories


def _as_mapping(item: Any) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise SchemaError(f"interval payload must be an object, got {type(item).__name__}")
    return item


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not isinstance(value, str):
        raise SchemaError(f"expected an ISO timestamp, got {value!r}")
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise SchemaError(f"invalid ISO timestamp {value!r}") from exc
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment
