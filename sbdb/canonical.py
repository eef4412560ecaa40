"""Deterministic text form of record values, and the hashes built on it."""

from __future__ import annotations

import hashlib
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX_EXCLUSIVE = 2**63

_SIMPLE_ESCAPES = {
    "\a": r"\a",
    "\b": r"\b",
    "\f": r"\f",
    "\n": r"\n",
    "\r": r"\r",
    "\t": r"\t",
    "\v": r"\v",
    '"': r"\"",
    "\\": r"\\",
}


def _quote(text: str) -> str:
    """Double-quote a string, escaping quotes, backslashes and unprintable characters."""
    parts = ['"']
    for ch in text:
        escape = _SIMPLE_ESCAPES.get(ch)
        if escape is not None:
            parts.append(escape)
            continue
        code = ord(ch)
        if ch.isprintable():
            parts.append(ch)
        elif code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif 0xD800 <= code <= 0xDFFF:
            parts.append("\\ufffd")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def _format_float(value: float) -> str:
    """Shortest round-tripping form, exponent notation below 1e-4 or from 1e6 up."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    negative = math.copysign(1.0, value) < 0
    if value == 0:
        return "-0" if negative else "0"

    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    raw = "".join(map(str, digit_tuple))
    digits = raw.rstrip("0")
    exponent += len(raw) - len(digits)
    count = len(digits)
    point = count + exponent
    exp10 = point - 1
    sign = "-" if negative else ""

    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + (f".{digits[1:]}" if count > 1 else "")
        exp_sign = "-" if exp10 < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp10):02d}"

    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= count:
        return f"{sign}{digits}{'0' * (point - count)}"
    return f"{sign}{digits[:point]}.{digits[point:]}"


def _format_value(value: Any) -> str:
    """Plain display form of a value, as used for loose comparisons."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        items = sorted(
            ((_format_value(k), _format_value(v)) for k, v in value.items()),
            key=lambda kv: kv[0],
        )
        return "map[" + " ".join(f"{k}:{v}" for k, v in items) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    return str(value)


def canonical_string(value: Any) -> str:
    """A stable representation of a value: mappings sorted by key, strings quoted."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer() and _INT64_MIN <= value < _INT64_MAX_EXCLUSIVE:
            return str(int(value))
        return _format_float(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        body = ",".join(f"{_quote(str(k))}:{canonical_string(v)}" for k, v in items)
        return "{" + body + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonical_string(item) for item in value) + "]"
    return _quote(_format_value(value))


def canonical_hash(value: Any) -> str:
    """SHA-256 hex digest of the canonical representation of a value."""
    return hashlib.sha256(canonical_string(value).encode("utf-8")).hexdigest()


def canonical_body_hash(body: str) -> str:
    """SHA-256 hex digest of a markdown body ending in exactly one newline."""
    normalized = body.rstrip("\n") + "\n"
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()