"""Classification of markdown files as schema-managed, untracked or unregistered."""

from __future__ import annotations

import os
from enum import IntEnum
from typing import Iterable, Iterator

from .records import RecordsError, load_all_partitions
from .registry import Registry
from .schema import Schema

_EXCLUDED_DIRS = frozenset({".vitepress", "node_modules", ".git", "public", "dist"})


class FileClass(IntEnum):
    """How a file is known to the knowledge base."""

    SCHEMA_MANAGED = 0
    UNTRACKED = 1
    UNREGISTERED = 2


def classify_file(
    rel_path: str,
    schemas: Iterable[Schema] | None,
    base_path: str | os.PathLike[str],
    registry: Registry,
) -> FileClass:
    """Classify a file given by its path relative to the knowledge base."""
    if registry.has(rel_path):
        return FileClass.UNTRACKED

    for schema in schemas or ():
        if not rel_path.startswith(schema.docs_dir + "/"):
            continue
        records_dir = os.path.join(os.fspath(base_path), schema.records_dir)
        try:
            records = load_all_partitions(records_dir, schema.partition)
        except (RecordsError, OSError):
            continue
        if any(record.get("file") == rel_path for record in records):
            return FileClass.SCHEMA_MANAGED

    return FileClass.UNREGISTERED


def _extension(path: str) -> str:
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot:] if dot != -1 else ""


def _walk_markdown(path: str) -> Iterator[str]:
    """Yield files below ``path`` in lexical order, skipping excluded and unreadable dirs."""
    try:
        is_dir = os.path.isdir(path) and not os.path.islink(path)
    except OSError:
        return
    if not is_dir:
        if os.path.lexists(path):
            yield path
        return
    if os.path.basename(path) in _EXCLUDED_DIRS:
        return
    try:
        names = sorted(os.listdir(path))
    except OSError:
        return
    for name in names:
        yield from _walk_markdown(os.path.join(path, name))


def discover_unregistered(
    docs_root: str | os.PathLike[str],
    base_path: str | os.PathLike[str],
    schemas: Iterable[Schema] | None,
    registry: Registry,
) -> list[str]:
    """Markdown files under ``docs_root`` that neither a schema nor the registry knows."""
    schema_list = list(schemas or ())
    base = os.fspath(base_path)
    unregistered = []
    for path in _walk_markdown(os.fspath(docs_root)):
        if _extension(path) != ".md":
            continue
        try:
            rel_path = os.path.relpath(path, base)
        except ValueError:
            continue
        rel_path = rel_path.replace(os.sep, "/")
        if classify_file(rel_path, schema_list, base, registry) is FileClass.UNREGISTERED:
            unregistered.append(rel_path)
    return unregistered