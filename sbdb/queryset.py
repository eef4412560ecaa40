"""Chainable, immutable queries over an entity's records."""

from __future__ import annotations

import copy
import os
from functools import cmp_to_key
from typing import Any, Mapping

from .lookups import Lookup, compare_values, parse_lookup
from .records import load_all_partitions
from .schema import Schema


class QuerySet:
    """A lazy query over the records of one schema; every refinement returns a new QuerySet."""

    def __init__(self, schema: Schema, base_path: str | os.PathLike[str]) -> None:
        self.schema = schema
        self.base_path = os.fspath(base_path)
        self._filters: tuple[Lookup, ...] = ()
        self._excludes: tuple[Lookup, ...] = ()
        self._ordering: tuple[str, ...] = ()
        self._max_results = 0
        self._skip_count = 0

    def _derive(self, **changes: Any) -> QuerySet:
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, f"_{name}", value)
        return clone

    def filter(self, conditions: Mapping[str, Any]) -> QuerySet:
        """Keep only records matching every condition."""
        added = tuple(parse_lookup(key, value) for key, value in conditions.items())
        return self._derive(filters=self._filters + added)

    def exclude(self, conditions: Mapping[str, Any]) -> QuerySet:
        """Drop records matching any of the conditions."""
        added = tuple(parse_lookup(key, value) for key, value in conditions.items())
        return self._derive(excludes=self._excludes + added)

    def order_by(self, *args: str) -> QuerySet:
        """Order by the given fields; a leading ``-`` sorts that field descending."""
        return self._derive(ordering=tuple(args))

    def limit(self, n: int) -> QuerySet:
        """Return at most ``n`` results; zero means no limit."""
        return self._derive(max_results=n)

    def offset(self, n: int) -> QuerySet:
        """Skip the first ``n`` results."""
        return self._derive(skip_count=n)

    def records(self) -> list[dict[str, Any]]:
        """Matching records, ordered and paged."""
        matched = self._apply_filters(self._load_records())
        return self._apply_paging(self._apply_ordering(matched))

    def count(self) -> int:
        """Number of matching records, ignoring limit and offset."""
        return len(self._apply_filters(self._load_records()))

    def exists(self) -> bool:
        """True if any record matches."""
        return self.count() > 0

    def _load_records(self) -> list[dict[str, Any]]:
        records_dir = f"{self.base_path}/{self.schema.records_dir}"
        return load_all_partitions(records_dir, self.schema.partition)

    def _matches(self, record: Mapping[str, Any]) -> bool:
        return all(f.match(record) for f in self._filters) and not any(
            e.match(record) for e in self._excludes
        )

    def _apply_filters(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [record for record in records if self._matches(record)]

    def _apply_ordering(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not self._ordering:
            return records

        def compare(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
            for key in self._ordering:
                descending = key.startswith("-")
                name = key[1:] if descending else key
                result = compare_values(a.get(name), b.get(name))
                if result:
                    return -result if descending else result
            return 0

        return sorted(records, key=cmp_to_key(compare))

    def _apply_paging(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if self._skip_count > len(records):
            return []
        records = records[self._skip_count :]
        if 0 < self._max_results < len(records):
            records = records[: self._max_results]
        return records