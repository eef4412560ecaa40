"""Validation of record data against a schema."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Mapping

from .schema import Field, FieldType, Schema


class ValidationError(Exception):
    """A single validation failure at a field path."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


_DATE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?(Z|[+-][0-9]{2}:[0-9]{2})"
)


def parse_any_date(value: str) -> datetime:
    """Parse a ``YYYY-MM-DD`` or RFC 3339 timestamp; raise ValueError otherwise."""
    try:
        match = _DATE.fullmatch(value)
        if match:
            year, month, day = map(int, match.groups())
            return datetime(year, month, day, tzinfo=timezone.utc)
        match = _RFC3339.fullmatch(value)
        if match:
            year, month, day, hour, minute, second = map(int, match.groups()[:6])
            fraction, zone = match.group(7), match.group(8)
            micro = int((fraction or "0")[:6].ljust(6, "0"))
            if zone == "Z":
                tz = timezone.utc
            else:
                sign = -1 if zone[0] == "-" else 1
                offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
                tz = timezone(sign * offset)
            return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)
    except ValueError:
        pass
    raise ValueError(f'cannot parse date "{value}"')


def validate_record(schema: Schema, data: Mapping[str, Any]) -> list[ValidationError]:
    """Check a data mapping against a schema and return every failure found."""
    errors: list[ValidationError] = []
    for name, field in schema.fields.items():
        value = data.get(name)
        if value is None:
            if field.required:
                errors.append(ValidationError(name, "missing required field"))
            continue
        errors.extend(_check_value(name, field, value))
    return errors


def _type_name(value: Any) -> str:
    return type(value).__name__


def _is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_float(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_value(path: str, field: Field, value: Any) -> Iterator[ValidationError]:
    try:
        ftype = FieldType(field.type)
    except ValueError:
        return

    if ftype is FieldType.STRING:
        if not isinstance(value, str):
            yield ValidationError(path, f"expected string, got {_type_name(value)}")

    elif ftype is FieldType.INT:
        if not _is_int(value):
            yield ValidationError(path, f"expected int, got {_type_name(value)}")

    elif ftype is FieldType.FLOAT:
        if not _is_float(value):
            yield ValidationError(path, f"expected float, got {_type_name(value)}")

    elif ftype is FieldType.BOOL:
        if not isinstance(value, bool):
            yield ValidationError(path, f"expected bool, got {_type_name(value)}")

    elif ftype in (FieldType.DATE, FieldType.DATETIME):
        if isinstance(value, str):
            try:
                parse_any_date(value)
            except ValueError:
                yield ValidationError(path, f"invalid date: {value}")
        elif not isinstance(value, date):
            yield ValidationError(path, f"expected date string, got {_type_name(value)}")

    elif ftype is FieldType.ENUM:
        if not isinstance(value, str):
            yield ValidationError(path, f"expected string for enum, got {_type_name(value)}")
        elif value not in field.values:
            allowed = " ".join(field.values)
            yield ValidationError(path, f'value "{value}" not in enum [{allowed}]')

    elif ftype is FieldType.LIST:
        if not isinstance(value, (list, tuple)):
            yield ValidationError(path, f"expected list, got {_type_name(value)}")
        elif field.items is not None:
            for index, item in enumerate(value):
                yield from _check_value(f"{path}[{index}]", field.items, item)

    elif ftype is FieldType.OBJECT:
        if not isinstance(value, Mapping):
            yield ValidationError(path, f"expected object, got {_type_name(value)}")
        else:
            for sub_name, sub_field in field.fields.items():
                sub_path = f"{path}.{sub_name}"
                sub_value = value.get(sub_name)
                if sub_value is None:
                    if sub_field.required:
                        yield ValidationError(sub_path, "missing required field")
                    continue
                yield from _check_value(sub_path, sub_field, sub_value)