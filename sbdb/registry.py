"""Registry of files outside any schema that are still hashed for integrity."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .markdown import _atomic_write, _Dumper, _load_yaml

VERSION = "dev"
WRITER_NAME = "secondbrain-db"
REGISTRY_FILENAME = ".untracked.yaml"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class Entry:
    """Integrity record of one untracked file."""

    file: str = ""
    content_sha: str = ""
    frontmatter_sha: str = ""
    sig: str = ""
    updated_at: str = ""
    writer: str = ""

    def to_dict(self) -> dict[str, str]:
        """Mapping written to the registry file; an empty signature is left out."""
        data = {
            "file": self.file,
            "content_sha": self.content_sha,
            "frontmatter_sha": self.frontmatter_sha,
        }
        if self.sig:
            data["sig"] = self.sig
        data["updated_at"] = self.updated_at
        data["writer"] = self.writer
        return data

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Entry:
        """Build an entry from a mapping read from the registry file."""
        return cls(
            file=_text(raw.get("file")),
            content_sha=_text(raw.get("content_sha")),
            frontmatter_sha=_text(raw.get("frontmatter_sha")),
            sig=_text(raw.get("sig")),
            updated_at=_text(raw.get("updated_at")),
            writer=_text(raw.get("writer")),
        )


@dataclass
class Registry:
    """All untracked-but-signed file entries."""

    version: int = 1
    entries: list[Entry] = field(default_factory=list)

    def save(self, base_path: str | os.PathLike[str]) -> None:
        """Write the registry to disk atomically."""
        data = {
            "version": self.version,
            "entries": [entry.to_dict() for entry in self.entries],
        }
        text = yaml.dump(
            data,
            Dumper=_Dumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
        _atomic_write(registry_path(base_path), text, ".sbdb-untracked-", ".yaml.tmp")

    def add(self, entry: Entry) -> None:
        """Insert or replace the entry for its file, stamping time and writer."""
        stamped = dataclasses.replace(
            entry,
            updated_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            writer=f"{WRITER_NAME}/{VERSION}",
        )
        for index, existing in enumerate(self.entries):
            if existing.file == stamped.file:
                self.entries[index] = stamped
                return
        self.entries.append(stamped)

    def remove(self, file: str) -> bool:
        """Delete the entry for a file; True if it was present."""
        for index, existing in enumerate(self.entries):
            if existing.file == file:
                del self.entries[index]
                return True
        return False

    def get(self, file: str) -> Entry | None:
        """The entry for a file, or None."""
        return next((e for e in self.entries if e.file == file), None)

    def has(self, file: str) -> bool:
        """True if the file is in the registry."""
        return self.get(file) is not None

    def count(self) -> int:
        """Number of registered files."""
        return len(self.entries)

    def __contains__(self, file: object) -> bool:
        return isinstance(file, str) and self.has(file)

    def __len__(self) -> int:
        return self.count()


def registry_path(base_path: str | os.PathLike[str]) -> str:
    """Path of the registry file under a knowledge base."""
    return os.path.join(os.fspath(base_path), "data", REGISTRY_FILENAME)


def load(base_path: str | os.PathLike[str]) -> Registry:
    """Read the registry; a missing file gives an empty registry."""
    try:
        text = Path(registry_path(base_path)).read_bytes().decode("utf-8", errors="replace")
    except FileNotFoundError:
        return Registry(version=1)

    try:
        raw = _load_yaml(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"parsing untracked registry: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("parsing untracked registry: expected a mapping")

    raw_version = raw.get("version")
    try:
        version = int(raw_version) if raw_version is not None else 0
    except (TypeError, ValueError):
        raise ValueError("parsing untracked registry: version must be an integer") from None

    raw_entries = raw.get("entries") or []
    if not isinstance(raw_entries, list):
        raise ValueError("parsing untracked registry: entries must be a list")
    entries = []
    for item in raw_entries:
        if item is None:
            entries.append(Entry())
        elif isinstance(item, Mapping):
            entries.append(Entry.from_dict(item))
        else:
            raise ValueError("parsing untracked registry: each entry must be a mapping")

    return Registry(version=version or 1, entries=entries)