"""Tests for ValueRef resolution, the transform DSL and entry mapping."""

import pytest

from ruleflow.core import MISSING, TransformError, TransformSyntaxError, ValueRefError
from ruleflow.mapping import MappingSource, apply_transform, map_entries, resolve_ref


class TestApplyTransform:
    @pytest.mark.parametrize(
        "expression,value,expected",
        [
            ("upper($)", "abc", "ABC"),
            ("lower($)", "ABC", "abc"),
            ("trim($)", "  x  ", "x"),
            ("string($)", 12, "12"),
            ("string($)", True, "true"),
            ("number($)", "42", 42),
            ("number($)", "4.5", 4.5),
            ("concat('ID-', $)", 7, "ID-7"),
            ('concat($, ", ", "x")', "a", "a, x"),
            ("json($)", {"a": 1}, '{"a":1}'),
            ("length($)", [1, 2, 3], 3),
        ],
    )
    def test_functions(self, expression, value, expected):
        assert apply_transform(expression, value) == expected

    def test_bare_name_is_syntax_error(self):
        with pytest.raises(TransformSyntaxError, match="Invalid transform expression: upper"):
            apply_transform("upper", "x")

    def test_unknown_function(self):
        with pytest.raises(TransformError, match="Unsupported transform: reverse"):
            apply_transform("reverse($)", "x")

    def test_number_of_text_fails(self):
        with pytest.raises(TransformError):
            apply_transform("number($)", "abc")

    def test_missing_value_passes_through(self):
        assert apply_transform("upper($)", MISSING) is MISSING


class TestResolveRef:
    def test_request_refs(self, data, context):
        assert resolve_ref("data.customer.name", data, context) == "Jane"
        assert resolve_ref("context.tenantId", data, context) == "acme"
        assert resolve_ref("literal:v1", data, context) == "v1"
        assert resolve_ref("amount", data, context) == 250

    def test_response_ref_in_request_raises(self, data, context):
        with pytest.raises(ValueRefError):
            resolve_ref("response.id", data, context)

    def test_response_refs(self, data, context):
        body = {"id": "c-1", "nested": {"ok": True}}
        assert resolve_ref("response.id", data, context, response=body) == "c-1"
        assert resolve_ref("nested.ok", data, context, response=body) is True
        assert resolve_ref("response", data, context, response=body) == body
        assert resolve_ref("response.absent", data, context, response=body) is MISSING


class TestMapEntries:
    def test_defaults_and_omission(self, data, context):
        entries = {
            "name": MappingSource.model_validate({"from": "data.customer.name", "transform": "upper($)"}),
            "tier": MappingSource.model_validate({"from": "data.tier", "default": "standard"}),
            "note": MappingSource.model_validate({"from": "data.note", "default": None}),
            "absent": MappingSource.model_validate({"from": "data.absent"}),
        }
        result = map_entries(entries, data, context)

        assert result.values == {"name": "JANE", "tier": "standard", "note": None}
        assert result.errors == []

    def test_failed_entry_is_omitted_and_others_resolve(self, data, context):
        entries = {
            "q": MappingSource.model_validate({"from": "data.email", "transform": "upper"}),
            "tenant": MappingSource.model_validate({"from": "context.tenantId"}),
        }
        result = map_entries(entries, data, context)

        assert result.values == {"tenant": "acme"}
        assert len(result.errors) == 1
        assert "Invalid transform expression" in result.errors[0]

    def test_string_shorthand(self, data, context):
        source = MappingSource.model_validate("response.id")
        assert source.from_ == "response.id"
        result = map_entries({"customerId": source}, data, context, response={"id": 9})
        assert result.values == {"customerId": 9}
