# sbdb

A library for keeping a knowledge base as plain markdown files, described by a
YAML schema and indexed by YAML record files.

Each entity (notes, decisions, meetings, …) has a schema that names its fields.
Scalar fields (`string`, `int`, `float`, `bool`, `date`, `datetime`, `enum`,
`ref`) belong both in a document's frontmatter and in a compact records file;
`list` and `object` fields live only in the frontmatter. Records are kept in
`records.yaml`, or with `partition: monthly` in one `YYYY-MM.yaml` file per
month chosen by the schema's `date_field`.

## Installing

```
pip install .
```

## Schemas

```yaml
version: 1
entity: notes
docs_dir: docs/notes
filename: "{id}.md"
records_dir: data/notes
partition: none        # or "monthly" together with date_field
id_field: id
integrity: strict

fields:
  id:      { type: string, required: true }
  created: { type: date, required: true }
  status:  { type: enum, values: [active, archived], default: active }
  tags:    { type: list, items: { type: string } }
```

`entity`, `docs_dir` and `filename` are required. Left out, `id_field` becomes
`id`, `records_dir` becomes `data/<entity>`, `partition` becomes `none` and
`integrity` becomes `strict`. Enum fields need `values`, list fields need
`items`, object fields need `fields`. Virtual fields may be declared under
`virtuals` with a `returns` type and a `source`; they are read and checked but
not computed (see below).

```python
from sbdb.schema import load_from_dir, list_schemas, SchemaError
from sbdb.validate import validate_record

print(list_schemas("schemas"))          # e.g. ["blog", "notes"]
schema = load_from_dir("schemas", "notes")

for error in validate_record(schema, {"id": "n1", "created": "not-a-date"}):
    print(error.path, error.message)    # created invalid date: not-a-date
```

An invalid schema raises `SchemaError`. `validate_record` returns a list of
`ValidationError` objects with dotted and indexed paths such as
`sources[0].link`.

`schema.scalar_fields()`, `schema.complex_fields()`, `classify_fields`,
`build_record_data` and `build_frontmatter_data` (in `sbdb.schema`) split a
document's data into what goes into the records file and what goes into the
frontmatter.

## Records and markdown

```python
from sbdb.markdown import parse_markdown, write_markdown
from sbdb.records import (
    load_all_partitions, load_records, save_records,
    records_path_for_partition, upsert_record, remove_record,
)

frontmatter, body = parse_markdown("docs/notes/n1.md")
write_markdown("docs/notes/n1.md", {**frontmatter, "status": "archived"}, body)

records = load_all_partitions("data/notes", "none")
records = upsert_record(records, {"id": "n1", "status": "archived"}, "id")
records, removed = remove_record(records, "id", "n2")
save_records(records_path_for_partition("data/notes", "none", "", None), records)
```

Markdown and records files are written atomically through a temporary file in
the same directory and a rename, creating parent directories as needed. A
missing records file reads as an empty list. `upsert_record` and
`remove_record` change the list they are given and return it.

## Querying

Filters use `field__operator` keys: `gte`, `lte`, `gt`, `lt`, `in`,
`contains`, `icontains`, `startswith`, or a bare field name for an exact match.
Comparisons are numeric when both sides are numbers and otherwise compare the
values as text; `in` takes a list or a comma-separated string.

```python
from sbdb.queryset import QuerySet

qs = QuerySet(schema, ".")
active = qs.filter({"status": "active"}).exclude({"id__startswith": "draft-"})
recent = active.order_by("-created").offset(0).limit(10)

print(active.count(), active.exists())
for record in recent.records():
    print(record["id"])
```

Every call returns a new `QuerySet`; the one it was called on is unchanged.
Results are plain record mappings.

Full-text search over an entity's markdown files:

```python
from sbdb.search import search

for hit in search(schema, ".", "deployment"):
    print(hit.id, hit.file, hit.snippet)
```

`search` runs `grep` when it is available and otherwise scans the files itself
(case-insensitively). Each hit carries up to 40 characters of context on each
side of the first match.

## Integrity

`sbdb.canonical` gives `canonical_string` and `canonical_hash`, which do not
depend on mapping key order and tell `"123"` from `123`, and
`canonical_body_hash`, which ignores how many newlines end a body.

Markdown files that belong to no schema can be listed in
`data/.untracked.yaml`:

```python
from sbdb import registry
from sbdb.discover import discover_unregistered, classify_file, FileClass

reg = registry.load(".")
reg.add(registry.Entry(file="docs/index.md", content_sha="..."))
reg.save(".")

print(discover_unregistered("docs", ".", [schema], reg))
print(classify_file("docs/index.md", [schema], ".", reg) is FileClass.UNTRACKED)
```

`Registry.add` stamps each entry with the current UTC time and a writer string.
`discover_unregistered` skips `.vitepress`, `node_modules`, `.git`, `public`
and `dist` directories.

## Embeddings

```python
from sbdb.embed import OpenAIEmbedder

embedder = OpenAIEmbedder(base_url="http://localhost:11434", api_key="placeholder")
vectors = embedder.embed(["first text", "second text"])
print(embedder.model_id, embedder.dim)
```

`OpenAIEmbedder` posts to `<base_url>/v1/embeddings` of any compatible service.
Unset arguments fall back to the `SBDB_EMBED_BASE_URL`, `SBDB_EMBED_API_KEY`
and `SBDB_EMBED_MODEL` environment variables; the model defaults to
`text-embedding-3-small` and the dimension to 1536, updated from the first
response. A missing key or a failed call raises `EmbedError`.

## What it does not do

- There is no command-line program; everything is used from Python.
- Virtual fields are not evaluated: their definitions are loaded and
  validated, but nothing runs their `source`.
- Queries return record mappings, not document objects, and there is no
  helper that creates, updates or deletes a document together with its record.
- Untracked registry entries store hashes given to them; the package does not
  compute or verify signatures for them.
- Embeddings are fetched but not stored or searched.

## Running the tests

```
pip install .[test]
pytest
```