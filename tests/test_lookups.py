import pytest

from sbdb.lookups import Lookup, compare_values, parse_lookup


def test_parse_exact_match():
    lookup = parse_lookup("status", "active")
    assert lookup.field == "status"
    assert lookup.operator == ""
    assert lookup.value == "active"


@pytest.mark.parametrize(
    "key, field, operator",
    [
        ("created__gte", "created", "gte"),
        ("title__contains", "title", "contains"),
        ("title__icontains", "title", "icontains"),
        ("status__in", "status", "in"),
        ("id__startswith", "id", "startswith"),
        ("count__lte", "count", "lte"),
        ("count__lt", "count", "lt"),
        ("count__gt", "count", "gt"),
        ("a__b__gte", "a__b", "gte"),
    ],
)
def test_parse_operators(key, field, operator):
    lookup = parse_lookup(key, "x")
    assert (lookup.field, lookup.operator) == (field, operator)


def test_match_exact():
    lookup = Lookup("status", "", "active")
    assert lookup.match({"status": "active"}) is True
    assert lookup.match({"status": "archived"}) is False
    assert lookup.match({"other": "active"}) is False


def test_match_exact_int_and_float():
    assert Lookup("x", "", 10).match({"x": 10.0}) is True


def test_match_gte():
    lookup = Lookup("created", "gte", "2026-03-01")
    assert lookup.match({"created": "2026-04-01"}) is True
    assert lookup.match({"created": "2026-03-01"}) is True
    assert lookup.match({"created": "2026-02-28"}) is False


def test_match_lte():
    lookup = Lookup("count", "lte", 10)
    assert lookup.match({"count": 5}) is True
    assert lookup.match({"count": 10}) is True
    assert lookup.match({"count": 15}) is False


def test_match_lt():
    lookup = Lookup("count", "lt", 10)
    assert lookup.match({"count": 9}) is True
    assert lookup.match({"count": 10}) is False


def test_match_contains_is_case_sensitive():
    lookup = Lookup("title", "contains", "deploy")
    assert lookup.match({"title": "How to deploy apps"}) is True
    assert lookup.match({"title": "How to Deploy apps"}) is False


def test_match_icontains():
    lookup = Lookup("title", "icontains", "deploy")
    assert lookup.match({"title": "How to Deploy apps"}) is True
    assert lookup.match({"title": "DEPLOY everything"}) is True


def test_match_startswith():
    lookup = Lookup("id", "startswith", "adr-")
    assert lookup.match({"id": "adr-0001"}) is True
    assert lookup.match({"id": "note-1"}) is False


def test_match_in_csv():
    lookup = Lookup("status", "in", "active,draft")
    assert lookup.match({"status": "active"}) is True
    assert lookup.match({"status": "draft"}) is True
    assert lookup.match({"status": "archived"}) is False


def test_match_in_list():
    lookup = Lookup("status", "in", ["active", "draft"])
    assert lookup.match({"status": "active"}) is True
    assert lookup.match({"status": "archived"}) is False


def test_match_in_list_of_numbers():
    assert Lookup("n", "in", [1, 2]).match({"n": 2}) is True
    assert Lookup("n", "in", 2).match({"n": 2}) is False


def test_match_numeric_comparison():
    lookup = Lookup("priority", "gt", 5)
    assert lookup.match({"priority": 10}) is True
    assert lookup.match({"priority": 3}) is False
    assert lookup.match({"priority": 5}) is False


def test_match_unknown_operator():
    assert Lookup("x", "regex", "a").match({"x": "a"}) is False


def test_compare_values():
    assert compare_values(2, 10) == -1
    assert compare_values("2", "10") == 1
    assert compare_values(3, 3.0) == 0
    assert compare_values("2026-04-01", "2026-03-01") == 1
    assert compare_values(None, "a") == -1