import pytest

from sbdb.discover import FileClass, classify_file, discover_unregistered
from sbdb.records import save_records
from sbdb.registry import Entry, Registry
from sbdb.schema import parse

SCHEMA_YAML = """
version: 1
entity: notes
docs_dir: docs/notes
filename: "{id}.md"
records_dir: data/notes
partition: none
id_field: id
fields:
  id: { type: string, required: true }
"""


def write_file(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture
def base_dir(tmp_path):
    (tmp_path / "data").mkdir()
    (tmp_path / "docs" / "notes").mkdir(parents=True)
    return tmp_path


def test_discover_unregistered(base_dir):
    write_file(base_dir / "docs" / "notes" / "note-1.md", "# Note 1\n")
    write_file(base_dir / "docs" / "notes" / "TEMPLATE.md", "# Template\n")
    write_file(base_dir / "docs" / "index.md", "# Home\n")
    write_file(base_dir / "docs" / "guides" / "setup.md", "# Setup\n")

    reg = Registry(version=1)
    reg.add(Entry(file="docs/notes/TEMPLATE.md", content_sha="x"))

    unregistered = discover_unregistered(base_dir / "docs", base_dir, None, reg)
    assert len(unregistered) == 3
    assert set(unregistered) == {
        "docs/notes/note-1.md",
        "docs/index.md",
        "docs/guides/setup.md",
    }
    assert "docs/notes/TEMPLATE.md" not in unregistered


def test_classify_file():
    reg = Registry(version=1)
    reg.add(Entry(file="docs/notes/TEMPLATE.md"))
    assert classify_file("docs/notes/TEMPLATE.md", None, "", reg) is FileClass.UNTRACKED
    assert classify_file("docs/notes/random.md", None, "", reg) is FileClass.UNREGISTERED


def test_classify_schema_managed(base_dir):
    schema = parse(SCHEMA_YAML)
    save_records(
        base_dir / "data" / "notes" / "records.yaml",
        [{"id": "note-1", "file": "docs/notes/note-1.md"}],
    )
    reg = Registry(version=1)
    assert (
        classify_file("docs/notes/note-1.md", [schema], str(base_dir), reg)
        is FileClass.SCHEMA_MANAGED
    )
    assert (
        classify_file("docs/notes/note-2.md", [schema], str(base_dir), reg)
        is FileClass.UNREGISTERED
    )
    assert (
        classify_file("docs/other/note-1.md", [schema], str(base_dir), reg)
        is FileClass.UNREGISTERED
    )


def test_discover_skips_managed_excluded_and_non_markdown(base_dir):
    schema = parse(SCHEMA_YAML)
    write_file(base_dir / "docs" / "notes" / "note-1.md", "# Note 1\n")
    write_file(base_dir / "docs" / "notes" / "loose.md", "# Loose\n")
    write_file(base_dir / "docs" / "node_modules" / "pkg.md", "# Pkg\n")
    write_file(base_dir / "docs" / ".vitepress" / "config.md", "# Cfg\n")
    write_file(base_dir / "docs" / "image.png", "binary")
    save_records(
        base_dir / "data" / "notes" / "records.yaml",
        [{"id": "note-1", "file": "docs/notes/note-1.md"}],
    )

    unregistered = discover_unregistered(
        base_dir / "docs", base_dir, [schema], Registry(version=1)
    )
    assert unregistered == ["docs/notes/loose.md"]


def test_discover_missing_root(tmp_path):
    result = discover_unregistered(tmp_path / "nope", tmp_path, None, Registry(version=1))
    assert result == []