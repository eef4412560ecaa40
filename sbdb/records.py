"""Records files: YAML lists of record mappings, optionally partitioned by month."""

from __future__ import annotations

import os
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping

import yaml

from .canonical import _format_value
from .markdown import _atomic_write, _dump_yaml, _load_yaml
from .validate import parse_any_date


class RecordsError(Exception):
    """Raised when records cannot be read, written or located."""


_MONTH_FILE = re.compile(r"[0-9]{4}-(?:0[1-9]|1[0-2])\.yaml")


def load_records(path: str | os.PathLike[str]) -> list[dict[str, Any]]:
    """Read a YAML list of records; a missing or empty file gives an empty list."""
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise RecordsError(f"reading records file {path}: {exc}") from exc
    if not data:
        return []

    try:
        loaded = _load_yaml(data.decode("utf-8", errors="replace"))
    except yaml.YAMLError as exc:
        raise RecordsError(f"parsing records YAML {path}: {exc}") from exc
    if loaded is None:
        return []
    if not isinstance(loaded, list):
        raise RecordsError(f"parsing records YAML {path}: expected a list of records")

    records: list[dict[str, Any]] = []
    for item in loaded:
        if item is None:
            records.append({})
        elif isinstance(item, dict):
            records.append(item)
        else:
            raise RecordsError(f"parsing records YAML {path}: each record must be a mapping")
    return records


def save_records(path: str | os.PathLike[str], records: list[Mapping[str, Any]]) -> None:
    """Write records to a YAML file atomically, creating parent directories."""
    try:
        text = _dump_yaml([dict(r) for r in records])
    except (yaml.YAMLError, TypeError) as exc:
        raise RecordsError(f"marshaling records: {exc}") from exc
    try:
        _atomic_write(path, text, ".sbdb-records-", ".yaml.tmp")
    except OSError as exc:
        raise RecordsError(f"writing records file {path}: {exc}") from exc


def upsert_record(
    records: list[dict[str, Any]], record: dict[str, Any], id_field: str
) -> list[dict[str, Any]]:
    """Replace the record with the same id, or append it; returns the list."""
    if id_field not in record:
        records.append(record)
        return records
    record_id = record[id_field]
    for index, existing in enumerate(records):
        if existing.get(id_field) == record_id:
            records[index] = record
            return records
    records.append(record)
    return records


def remove_record(
    records: list[dict[str, Any]], id_field: str, id_value: Any
) -> tuple[list[dict[str, Any]], bool]:
    """Remove the first record whose id displays as ``id_value``."""
    wanted = _format_value(id_value)
    for index, existing in enumerate(records):
        if _format_value(existing.get(id_field)) == wanted:
            del records[index]
            return records, True
    return records, False


def parse_date(value: Any) -> datetime:
    """Interpret a date string or date object; raise ValueError otherwise."""
    if isinstance(value, str):
        try:
            return parse_any_date(value)
        except ValueError:
            raise ValueError(f'cannot parse date string "{value}"') from None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise ValueError(f"unexpected date type {type(value).__name__}")


def records_path_for_partition(
    records_dir: str | os.PathLike[str],
    partition: str,
    date_field: str,
    record: Mapping[str, Any] | None,
) -> str:
    """Path of the records file that holds ``record`` under the partition mode."""
    if partition in ("", "none"):
        return os.path.join(records_dir, "records.yaml")
    if partition == "monthly":
        record = record or {}
        if date_field not in record:
            raise RecordsError(
                f'record missing date field "{date_field}" for monthly partition'
            )
        try:
            moment = parse_date(record[date_field])
        except ValueError as exc:
            raise RecordsError(f'parsing date field "{date_field}": {exc}') from exc
        return os.path.join(records_dir, f"{moment.year:04d}-{moment.month:02d}.yaml")
    raise RecordsError(f'unknown partition mode: "{partition}"')


def load_all_partitions(
    records_dir: str | os.PathLike[str], partition: str
) -> list[dict[str, Any]]:
    """Load every record under a records directory for the partition mode."""
    if partition in ("", "none"):
        return load_records(os.path.join(records_dir, "records.yaml"))
    if partition == "monthly":
        return _load_monthly_partitions(Path(records_dir))
    raise RecordsError(f'unknown partition mode: "{partition}"')


def _load_monthly_partitions(directory: Path) -> list[dict[str, Any]]:
    try:
        entries = list(directory.iterdir())
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise RecordsError(f"reading partitions directory {directory}: {exc}") from exc

    names = sorted(
        entry.name
        for entry in entries
        if not entry.is_dir() and _MONTH_FILE.fullmatch(entry.name)
    )

    merged: list[dict[str, Any]] = []
    for name in names:
        try:
            merged.extend(load_records(directory / name))
        except RecordsError as exc:
            raise RecordsError(f"loading partition {name}: {exc}") from exc
    return merged