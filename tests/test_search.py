import os
from unittest import mock

import pytest

from sbdb.schema import parse
from sbdb.search import SearchResult, extract_snippet, filename_to_id, search

SCHEMA_YAML = """
version: 1
entity: notes
docs_dir: docs/notes
filename: "{id}.md"
records_dir: data/notes
partition: none
id_field: id
integrity: off

fields:
  id:      { type: string, required: true }
  created: { type: date, required: true }
  status:  { type: enum, values: [active, archived], default: active }
  tags:    { type: list, items: { type: string } }
"""


@pytest.fixture
def setup(tmp_path):
    schema = parse(SCHEMA_YAML)
    docs_dir = tmp_path / "docs" / "notes"
    docs_dir.mkdir(parents=True)
    (docs_dir / "a.md").write_text("# Alpha\n\ndeployment strategies for production.\n")
    (docs_dir / "b.md").write_text("# Beta\n\ncooking recipes and meal planning.\n")
    (docs_dir / "c.md").write_text("# Gamma\n\ndeployment pipeline with CI/CD.\n")
    (docs_dir / "notes.txt").write_text("deployment in a text file\n")
    return schema, tmp_path


def test_search_finds_matches(setup):
    schema, base = setup
    results = search(schema, base, "deployment")
    assert sorted(r.id for r in results) == ["a", "c"]
    for result in results:
        assert result.file
        assert "deployment" in result.snippet
        assert result.snippet.startswith("...")


def test_search_no_results(setup):
    schema, base = setup
    assert search(schema, base, "xyznonexistent") == []


def test_search_scan_without_grep(setup):
    schema, base = setup
    with mock.patch("shutil.which", return_value=None):
        results = search(schema, base, "DEPLOYMENT")
    assert [r.id for r in results] == ["a", "c"]
    assert results[0].file == os.path.join(str(base), "docs/notes", "a.md")


def test_search_scan_snippet(setup):
    schema, base = setup
    with mock.patch("shutil.which", return_value=None):
        results = search(schema, base, "cooking")
    assert results == [
        SearchResult(
            id="b",
            file=os.path.join(str(base), "docs/notes", "b.md"),
            snippet="...# Beta  cooking recipes and meal planning....",
        )
    ]


def test_search_missing_docs_dir_without_grep(tmp_path):
    schema = parse(SCHEMA_YAML)
    with mock.patch("shutil.which", return_value=None):
        with pytest.raises(FileNotFoundError):
            search(schema, tmp_path, "anything")


def test_filename_to_id():
    assert filename_to_id("/path/to/my-note.md") == "my-note"
    assert filename_to_id("ADR-0001.md") == "ADR-0001"


def test_extract_snippet_contains_query():
    content = "This is a long text about deployment strategies for production environments."
    snippet = extract_snippet(content, "deployment")
    assert "deployment" in snippet
    assert "..." in snippet


def test_extract_snippet_short_content():
    assert extract_snippet("abc deployment xyz", "deployment") == "...abc deployment xyz..."


def test_extract_snippet_joins_lines():
    assert extract_snippet("line one\nkeyword\nline", "KEYWORD") == "...line one keyword line..."


def test_extract_snippet_no_match():
    assert extract_snippet("nothing here", "missing") == ""