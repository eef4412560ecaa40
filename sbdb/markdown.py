"""Markdown files with a YAML frontmatter block."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

import yaml

from .schema import _Loader


class MarkdownError(Exception):
    """Raised when a markdown file cannot be read, parsed or written."""


class _Dumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


_Dumper.add_representer(tuple, yaml.SafeDumper.represent_list)


def _dump_yaml(data: Any) -> str:
    return yaml.dump(
        data,
        Dumper=_Dumper,
        sort_keys=True,
        allow_unicode=True,
        default_flow_style=False,
    )


def _load_yaml(text: str) -> Any:
    return yaml.load(text, Loader=_Loader)


def _atomic_write(path: str | os.PathLike[str], text: str, prefix: str, suffix: str) -> None:
    """Write text through a temporary file in the same directory, then rename it."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def parse_markdown_bytes(data: bytes | str) -> tuple[dict[str, Any], str]:
    """Split raw markdown into its frontmatter mapping and body."""
    if isinstance(data, (bytes, bytearray)):
        content = bytes(data).decode("utf-8", errors="replace")
    else:
        content = data

    if not content.startswith(("---\n", "---\r\n")):
        return {}, content

    rest = content[4:]
    idx = rest.find("\n---\n")
    if idx == -1:
        idx = rest.find("\r\n---\r\n")
    if idx == -1 and rest.rstrip("\r\n").endswith(("\n---", "\r\n---")):
        idx = rest.rfind("---") - 1
    if idx == -1:
        return {}, content

    yaml_text = rest[:idx]
    body = rest[idx + 5 :].lstrip("\n\r")

    try:
        loaded = _load_yaml(yaml_text)
    except yaml.YAMLError as exc:
        raise MarkdownError(f"parsing frontmatter YAML: {exc}") from exc
    if loaded is None:
        return {}, body
    if not isinstance(loaded, dict):
        raise MarkdownError("parsing frontmatter YAML: frontmatter must be a mapping")
    return loaded, body


def parse_markdown(path: str | os.PathLike[str]) -> tuple[dict[str, Any], str]:
    """Read a markdown file and split it into frontmatter and body."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise MarkdownError(f"reading markdown file: {exc}") from exc
    return parse_markdown_bytes(data)


def render_markdown(frontmatter: Mapping[str, Any] | None, body: str) -> str:
    """The text of a markdown file with the given frontmatter and body."""
    parts: list[str] = []
    if frontmatter:
        try:
            parts.extend(["---\n", _dump_yaml(dict(frontmatter)), "---\n"])
        except (yaml.YAMLError, TypeError) as exc:
            raise MarkdownError(f"marshaling frontmatter: {exc}") from exc
    if body:
        if frontmatter:
            parts.append("\n")
        parts.append(body)
        if not body.endswith("\n"):
            parts.append("\n")
    return "".join(parts)


def write_markdown(
    path: str | os.PathLike[str], frontmatter: Mapping[str, Any] | None, body: str
) -> None:
    """Write a markdown file atomically, creating parent directories."""
    text = render_markdown(frontmatter, body)
    try:
        _atomic_write(path, text, ".sbdb-", ".md.tmp")
    except OSError as exc:
        raise MarkdownError(f"writing markdown file {path}: {exc}") from exc