"""Filter conditions written as ``field__operator`` keys."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .canonical import _format_value

_OPERATORS = (
    "__icontains",
    "__contains",
    "__startswith",
    "__gte",
    "__lte",
    "__gt",
    "__lt",
    "__in",
)


@dataclass(frozen=True)
class Lookup:
    """A filter condition on one field; an empty operator means exact match."""

    field: str
    operator: str
    value: Any

    def match(self, record: Mapping[str, Any]) -> bool:
        """True if the record's field satisfies the condition."""
        if self.field not in record:
            return False
        field_value = record[self.field]
        op = self.operator

        if op == "":
            return _format_value(field_value) == _format_value(self.value)
        if op == "gte":
            return compare_values(field_value, self.value) >= 0
        if op == "lte":
            return compare_values(field_value, self.value) <= 0
        if op == "gt":
            return compare_values(field_value, self.value) > 0
        if op == "lt":
            return compare_values(field_value, self.value) < 0
        if op == "contains":
            return _format_value(self.value) in _format_value(field_value)
        if op == "icontains":
            return _format_value(self.value).lower() in _format_value(field_value).lower()
        if op == "startswith":
            return _format_value(field_value).startswith(_format_value(self.value))
        if op == "in":
            return _value_in(field_value, self.value)
        return False


def parse_lookup(key: str, value: Any) -> Lookup:
    """Split a filter key such as ``status__gte`` into field and operator."""
    for suffix in _OPERATORS:
        if key.endswith(suffix):
            return Lookup(field=key[: -len(suffix)], operator=suffix[2:], value=value)
    return Lookup(field=key, operator="", value=value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def compare_values(a: Any, b: Any) -> int:
    """Three-way comparison: numeric when both are numbers, else by display text."""
    fa, fb = _as_number(a), _as_number(b)
    if fa is not None and fb is not None:
        left, right = fa, fb
    else:
        left, right = _format_value(a), _format_value(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def _value_in(field_value: Any, candidates: Any) -> bool:
    wanted = _format_value(field_value)
    if isinstance(candidates, str):
        return any(part.strip() == wanted for part in candidates.split(","))
    if isinstance(candidates, (list, tuple)):
        return any(_format_value(item) == wanted for item in candidates)
    return False