"""Full-text search over an entity's markdown documents."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Iterator

from .schema import Schema

_CONTEXT = 40


@dataclass(frozen=True)
class SearchResult:
    """A document that matched a search, with a snippet around the match."""

    id: str
    file: str
    snippet: str


def search(schema: Schema, base_path: str | os.PathLike[str], query: str) -> list[SearchResult]:
    """Search the schema's documents for ``query``, using grep when it is available."""
    docs_dir = os.path.join(os.fspath(base_path), schema.docs_dir)
    try:
        return _grep_search(docs_dir, query)
    except (OSError, subprocess.SubprocessError):
        return _scan_search(docs_dir, query)


def _grep_search(docs_dir: str, query: str) -> list[SearchResult]:
    grep = shutil.which("grep")
    if grep is None:
        raise FileNotFoundError("grep not found")
    completed = subprocess.run(
        [grep, "-rl", "--include=*.md", query, docs_dir],
        capture_output=True,
        check=False,
    )
    if completed.returncode == 1:
        return []
    if completed.returncode != 0:
        raise subprocess.CalledProcessError(completed.returncode, completed.args)

    results = []
    for line in completed.stdout.decode("utf-8", errors="replace").splitlines():
        path = line.strip()
        if not path:
            continue
        try:
            snippet = extract_snippet(_read_text(path), query)
        except OSError:
            snippet = ""
        results.append(SearchResult(id=filename_to_id(path), file=path, snippet=snippet))
    return results


def _read_text(path: str) -> str:
    with open(path, "rb") as handle:
        return handle.read().decode("utf-8", errors="replace")


def _walk_files(path: str) -> Iterator[str]:
    """Yield files below ``path`` in lexical order; errors on directories propagate."""
    if not os.path.isdir(path):
        os.lstat(path)
        yield path
        return
    for name in sorted(os.listdir(path)):
        yield from _walk_files(os.path.join(path, name))


def _scan_search(docs_dir: str, query: str) -> list[SearchResult]:
    lowered = query.lower()
    results = []
    for path in _walk_files(docs_dir):
        if not path.endswith(".md"):
            continue
        try:
            content = _read_text(path)
        except OSError:
            continue
        if lowered in content.lower():
            results.append(
                SearchResult(
                    id=filename_to_id(path),
                    file=path,
                    snippet=extract_snippet(content, query),
                )
            )
    return results


def extract_snippet(content: str, query: str) -> str:
    """Text around the first case-insensitive match, on one line; empty if none."""
    idx = content.lower().find(query.lower())
    if idx == -1:
        return ""
    start = max(idx - _CONTEXT, 0)
    end = min(idx + len(query) + _CONTEXT, len(content))
    snippet = content[start:end].replace("\n", " ")
    return f"...{snippet.strip()}..."


def filename_to_id(path: str | os.PathLike[str]) -> str:
    """The file name without its directory and extension."""
    base = os.path.basename(os.fspath(path))
    dot = base.rfind(".")
    return base[:dot] if dot != -1 else base