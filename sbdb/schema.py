"""Entity schemas: field definitions, loading from YAML and field classification."""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml


class SchemaError(ValueError):
    """Raised when a schema cannot be read, parsed or fails validation."""


class FieldType(str, Enum):
    """The type of a schema field."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    LIST = "list"
    OBJECT = "object"
    REF = "ref"

    def is_scalar(self) -> bool:
        """True for types stored in both frontmatter and the records file."""
        return self in _SCALAR_TYPES


_SCALAR_TYPES = frozenset(
    {
        FieldType.STRING,
        FieldType.INT,
        FieldType.FLOAT,
        FieldType.BOOL,
        FieldType.DATE,
        FieldType.DATETIME,
        FieldType.ENUM,
        FieldType.REF,
    }
)

_SCALAR_RETURNS = frozenset({"string", "int", "float", "bool", "date", "datetime"})


@dataclass
class Field:
    """A single field definition, possibly nested for lists and objects."""

    type: FieldType | str
    name: str = ""
    required: bool = False
    default: Any = None
    values: list[str] = dc_field(default_factory=list)
    items: Field | None = None
    fields: dict[str, Field] = dc_field(default_factory=dict)
    ref_entity: str = ""


@dataclass
class Virtual:
    """A computed field defined by a script."""

    returns: str = ""
    source: str = ""
    name: str = ""
    edge: bool = False
    edge_entity: str = ""

    def is_scalar_return(self) -> bool:
        """True if the virtual's return type is scalar."""
        return self.returns in _SCALAR_RETURNS


def _is_scalar_field(f: Field) -> bool:
    try:
        return FieldType(f.type).is_scalar()
    except ValueError:
        return False


@dataclass
class Schema:
    """Top-level definition of a knowledge base entity."""

    entity: str = ""
    docs_dir: str = ""
    filename: str = ""
    version: int = 0
    records_dir: str = ""
    partition: str = ""
    id_field: str = ""
    date_field: str = ""
    integrity: str = ""
    fields: dict[str, Field] = dc_field(default_factory=dict)
    virtuals: dict[str, Virtual] = dc_field(default_factory=dict)

    def validate(self) -> None:
        """Check internal consistency and fill in defaults; raise SchemaError on failure."""
        if not self.entity:
            raise SchemaError("schema: entity is required")
        if not self.docs_dir:
            raise SchemaError("schema: docs_dir is required")
        if not self.filename:
            raise SchemaError("schema: filename is required")
        self.id_field = self.id_field or "id"
        self.records_dir = self.records_dir or f"data/{self.entity}"
        self.partition = self.partition or "none"
        self.integrity = self.integrity or "strict"

        if self.id_field not in self.fields:
            raise SchemaError(f'schema: id_field "{self.id_field}" not found in fields')
        if self.partition == "monthly" and not self.date_field:
            raise SchemaError("schema: date_field required when partition is monthly")

        for name, f in self.fields.items():
            _validate_field_def(name, f)

        for name, v in self.virtuals.items():
            if not v.returns:
                raise SchemaError(f'schema: virtual "{name}" missing returns type')
            if not v.source:
                raise SchemaError(f'schema: virtual "{name}" missing source')

    def scalar_fields(self) -> list[str]:
        """Names of fields and virtuals stored in the records file."""
        names = [name for name, f in self.fields.items() if _is_scalar_field(f)]
        names.extend(name for name, v in self.virtuals.items() if v.is_scalar_return())
        return names

    def complex_fields(self) -> list[str]:
        """Names of fields and virtuals stored only in frontmatter."""
        names = [name for name, f in self.fields.items() if not _is_scalar_field(f)]
        names.extend(name for name, v in self.virtuals.items() if not v.is_scalar_return())
        return names


def _validate_field_def(name: str, f: Field) -> None:
    try:
        ftype = FieldType(f.type)
    except ValueError:
        raise SchemaError(f'schema: field "{name}" has unknown type "{f.type}"') from None
    f.type = ftype

    if ftype is FieldType.ENUM and not f.values:
        raise SchemaError(f'schema: enum field "{name}" must have values')
    if ftype is FieldType.LIST and f.items is None:
        raise SchemaError(f'schema: list field "{name}" must have items')
    if ftype is FieldType.OBJECT and not f.fields:
        raise SchemaError(f'schema: object field "{name}" must have fields')

    if f.items is not None:
        _validate_field_def(f"{name}.items", f.items)
    for sub_name, sub_field in f.fields.items():
        _validate_field_def(f"{name}.{sub_name}", sub_field)


# YAML loader resolving only true/false as booleans and leaving timestamps as strings,
# so values such as "off" or "2026-04-08" keep their literal text.
_BOOL_TAG = "tag:yaml.org,2002:bool"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _Loader(yaml.SafeLoader):
    pass


_Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag not in (_BOOL_TAG, _TIMESTAMP_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Loader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flag(value: Any, where: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "y"):
        return True
    if text in ("false", "no", "off", "n", ""):
        return False
    raise SchemaError(f"parsing schema YAML: {where} must be a boolean, got {value!r}")


def _integer(value: Any, where: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise SchemaError(f"parsing schema YAML: {where} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SchemaError(f"parsing schema YAML: {where} must be an integer") from None


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SchemaError(f"parsing schema YAML: {where} must be a mapping")
    return value


def _parse_field(name: str, raw: Any, where: str) -> Field:
    spec = _mapping(raw, where)
    values = spec.get("values")
    if values is not None and not isinstance(values, list):
        raise SchemaError(f"parsing schema YAML: {where}.values must be a list")
    items = spec.get("items")
    return Field(
        type=_text(spec.get("type")),
        name=name,
        required=_flag(spec.get("required"), f"{where}.required"),
        default=spec.get("default"),
        values=[_text(v) for v in values or []],
        items=None if items is None else _parse_field("", items, f"{where}.items"),
        fields={
            str(sub): _parse_field(str(sub), sub_raw, f"{where}.fields.{sub}")
            for sub, sub_raw in _mapping(spec.get("fields"), f"{where}.fields").items()
        },
        ref_entity=_text(spec.get("entity")),
    )


def _parse_virtual(name: str, raw: Any) -> Virtual:
    spec = _mapping(raw, f"virtuals.{name}")
    return Virtual(
        returns=_text(spec.get("returns")),
        source=_text(spec.get("source")),
        name=name,
        edge=_flag(spec.get("edge"), f"virtuals.{name}.edge"),
        edge_entity=_text(spec.get("edge_entity")),
    )


def parse(data: bytes | str) -> Schema:
    """Parse and validate a schema from YAML text."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        raw = yaml.load(data, Loader=_Loader)
    except yaml.YAMLError as exc:
        raise SchemaError(f"parsing schema YAML: {exc}") from exc
    top = _mapping(raw, "schema")

    schema = Schema(
        entity=_text(top.get("entity")),
        docs_dir=_text(top.get("docs_dir")),
        filename=_text(top.get("filename")),
        version=_integer(top.get("version"), "version"),
        records_dir=_text(top.get("records_dir")),
        partition=_text(top.get("partition")),
        id_field=_text(top.get("id_field")),
        date_field=_text(top.get("date_field")),
        integrity=_text(top.get("integrity")),
        fields={
            str(name): _parse_field(str(name), spec, f"fields.{name}")
            for name, spec in _mapping(top.get("fields"), "fields").items()
        },
        virtuals={
            str(name): _parse_virtual(str(name), spec)
            for name, spec in _mapping(top.get("virtuals"), "virtuals").items()
        },
    )
    schema.validate()
    return schema


def load(path: str | Path) -> Schema:
    """Read and parse a schema from a YAML file."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise SchemaError(f"reading schema file {path}: {exc}") from exc
    return parse(data)


def load_from_dir(schemas_dir: str | Path, name: str) -> Schema:
    """Load the schema named ``name`` from a schemas directory."""
    return load(Path(schemas_dir) / f"{name}.yaml")


def list_schemas(schemas_dir: str | Path) -> list[str]:
    """Names of all schemas in a directory; empty if the directory does not exist."""
    directory = Path(schemas_dir)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise SchemaError(f"reading schemas directory: {exc}") from exc
    return [
        entry.name[: -len(".yaml")]
        for entry in entries
        if not entry.is_dir() and entry.name.endswith(".yaml")
    ]


def classify_fields(schema: Schema) -> tuple[list[str], list[str]]:
    """Split schema fields into scalar and complex field names."""
    scalar: list[str] = []
    complex_: list[str] = []
    for name, f in schema.fields.items():
        (scalar if _is_scalar_field(f) else complex_).append(name)
    return scalar, complex_


def build_record_data(
    schema: Schema,
    full_data: Mapping[str, Any],
    virtual_data: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Project scalar fields and scalar virtuals: the data kept in the records file."""
    virtual_data = virtual_data or {}
    record = {
        name: full_data[name]
        for name, f in schema.fields.items()
        if _is_scalar_field(f) and name in full_data
    }
    record.update(
        (name, virtual_data[name])
        for name, v in schema.virtuals.items()
        if v.is_scalar_return() and name in virtual_data
    )
    return record


def build_frontmatter_data(
    schema: Schema,
    full_data: Mapping[str, Any],
    virtual_data: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Combine all fields and all virtuals for frontmatter storage."""
    virtual_data = virtual_data or {}
    frontmatter = {name: full_data[name] for name in schema.fields if name in full_data}
    frontmatter.update(
        (name, virtual_data[name]) for name in schema.virtuals if name in virtual_data
    )
    return frontmatter