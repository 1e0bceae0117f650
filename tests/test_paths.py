"""Tests for dotted path parsing and copy-on-write helpers."""

import pytest

from ruleflow.core import MISSING, PathSyntaxError, PathWriteError
from ruleflow.core.paths import get_path, parse_path, remove_path, set_path


class TestParsePath:
    def test_dotted_segments(self):
        assert parse_path("customer.address.city") == ("customer", "address", "city")

    def test_bracket_indexes(self):
        assert parse_path("items[0].sku") == ("items", 0, "sku")
        assert parse_path("grid[1][2]") == ("grid", 1, 2)

    def test_numeric_segment_is_index(self):
        assert parse_path("items.0.sku") == ("items", 0, "sku")

    @pytest.mark.parametrize(
        "path",
        ["", "a..b", ".a", "a.", "items[0", "items]0[", "a.__class__", "a b"],
    )
    def test_malformed_paths(self, path):
        with pytest.raises(PathSyntaxError):
            parse_path(path)

    def test_parse_is_cached(self):
        assert parse_path("a.b.c") is parse_path("a.b.c")


class TestGetPath:
    def test_reads_nested_values(self, data):
        assert get_path(data, "customer.address.city") == "Austin"
        assert get_path(data, "items[1].sku") == "B-2"

    def test_absent_is_missing_not_none(self):
        doc = {"a": None}
        assert get_path(doc, "a") is None
        assert get_path(doc, "b") is MISSING
        assert get_path(doc, "a.b") is MISSING

    def test_index_out_of_range(self, data):
        assert get_path(data, "items[5].sku") is MISSING


class TestSetPath:
    def test_creates_intermediate_objects(self):
        doc = {}
        set_path(doc, "a.b.c", 1)
        assert doc == {"a": {"b": {"c": 1}}}

    def test_creates_lists_for_index_segments(self):
        doc = {}
        set_path(doc, "items[1].sku", "X")
        assert doc == {"items": [None, {"sku": "X"}]}

    def test_overwrites_existing_value(self, data):
        set_path(data, "customer.name", "Joan")
        assert data["customer"]["name"] == "Joan"

    def test_scalar_parent_raises(self):
        doc = {"a": 5}
        with pytest.raises(PathWriteError):
            set_path(doc, "a.b", 1)


class TestRemovePath:
    def test_removes_key(self, data):
        remove_path(data, "customer.address")
        assert data["customer"] == {"name": "Jane"}

    def test_removes_list_item(self, data):
        remove_path(data, "items[0]")
        assert [item["sku"] for item in data["items"]] == ["B-2"]

    def test_absent_path_is_ignored(self, data):
        remove_path(data, "nope.deeper")
        assert "nope" not in data
