"""Tests for document validation."""

import pytest

from ruleflow.core import DocumentValidationError
from ruleflow.validation import (
    assert_api_mapping,
    validate_api_mapping,
    validate_bundle,
    validate_flow,
    validate_rule_set,
    validate_ui_schema,
)


def paths(result):
    return {issue.path for issue in result.issues}


class TestValidateFlow:
    def test_valid_flow(self, simple_flow):
        result = validate_flow(simple_flow)
        assert result.valid
        assert result.issues == []

    def test_missing_initial_state_and_target(self):
        result = validate_flow(
            {
                "initialState": "begin",
                "states": {"start": {"uiPageId": "p1", "on": {"next": {"to": "nowhere"}}}},
            }
        )
        assert not result.valid
        assert paths(result) == {"initialState", "states.start.on.next.to"}

    def test_guard_checks(self):
        result = validate_flow(
            {
                "initialState": "a",
                "states": {
                    "a": {
                        "uiPageId": "a",
                        "on": {
                            "go": {
                                "to": "a",
                                "guard": {
                                    "all": [
                                        {"op": "like", "left": {"path": "data.x"}, "right": {"value": 1}},
                                        {"op": "eq", "left": {"path": "data..y"}, "right": {"value": 1}},
                                    ]
                                },
                            }
                        },
                    }
                },
            }
        )
        assert paths(result) == {
            "states.a.on.go.guard.all[0].op",
            "states.a.on.go.guard.all[1].left.path",
        }

    def test_unknown_api_id_is_warning(self):
        flow = {
            "initialState": "a",
            "states": {"a": {"uiPageId": "a", "on": {"go": {"to": "a", "apiCall": {"apiId": "missing"}}}}},
        }
        result = validate_flow(flow, api_mappings_by_id={})
        assert result.valid
        assert result.warnings[0].path == "states.a.on.go.apiCall.apiId"

    def test_structural_errors_from_model(self):
        result = validate_flow({"states": {}})
        assert not result.valid
        assert "initialState" in paths(result)


class TestValidateRuleSet:
    def test_duplicate_ids_and_bad_paths(self):
        rules = [
            {"ruleId": "r1", "when": {"all": []}, "actions": [{"type": "setField", "path": "a..b", "value": 1}]},
            {"ruleId": "r1", "when": {"op": "exists", "left": {"path": "data.x"}}, "actions": []},
        ]
        result = validate_rule_set(rules)

        messages = [issue.message for issue in result.errors]
        assert not result.valid
        assert any("Duplicate ruleId 'r1'" in message for message in messages)
        assert "rules[0].actions[0].path" in paths(result)

    def test_unknown_action_type(self):
        result = validate_rule_set(
            {"rules": [{"ruleId": "r", "when": {"all": []}, "actions": [{"type": "explode"}]}]}
        )
        assert not result.valid

    def test_unknown_value_transform(self):
        rules = [
            {
                "ruleId": "r",
                "when": {"all": []},
                "actions": [{"type": "setField", "path": "x", "value": {"$transform": "sqrt", "args": [4]}}],
            }
        ]
        result = validate_rule_set(rules)
        assert paths(result) == {"rules[0].actions[0].value.$transform"}

    def test_step_time_problems_are_warnings(self):
        rules = [
            {"ruleId": "r", "when": {"op": "like", "left": {"path": "data.x"}, "right": {"value": 1}}, "actions": []},
            {"ruleId": "s", "when": {"all": []}, "actions": [{"type": "setField", "path": "data..bad", "value": 1}]},
        ]
        result = validate_rule_set(rules)

        assert result.valid
        assert result.errors == []
        assert {issue.path for issue in result.warnings} == {"rules[0].when.op", "rules[1].actions[0].path"}


class TestValidateApiMapping:
    def test_valid_mapping(self):
        result = validate_api_mapping(
            {
                "apiId": "a",
                "method": "POST",
                "endpoint": "https://x.test",
                "requestMap": {"body": {"name": {"from": "data.name", "transform": "upper($)"}}},
                "responseMap": {"data": {"result.id": "response.id"}},
            }
        )
        assert result.valid

    def test_bad_refs_and_transforms(self):
        result = validate_api_mapping(
            {
                "apiId": "a",
                "method": "GET",
                "endpoint": "https://x.test",
                "requestMap": {
                    "query": {
                        "q": {"from": "data.q", "transform": "upper"},
                        "r": {"from": "response.id"},
                        "s": {"from": "data.s", "transform": "reverse($)"},
                    }
                },
            }
        )
        assert paths(result) == {
            "requestMap.query.q.transform",
            "requestMap.query.r.from",
            "requestMap.query.s.transform",
        }
        assert result.valid
        assert all(issue.severity == "warning" for issue in result.issues)

    def test_bad_method(self):
        result = validate_api_mapping({"apiId": "a", "method": "FETCH", "endpoint": "https://x.test"})
        assert not result.valid
        assert "method" in paths(result)

    def test_assert_raises(self):
        with pytest.raises(DocumentValidationError) as exc:
            assert_api_mapping({"apiId": "a", "method": "GET", "endpoint": ""})
        assert exc.value.issues[0].path == "endpoint"


class TestValidateBundle:
    def test_ui_schema_page_id(self):
        assert not validate_ui_schema({"components": []}).valid
        result = validate_ui_schema({"pageId": "p9"}, page_id="p1")
        assert result.valid
        assert result.warnings

    def test_bundle_prefixes_paths(self, simple_flow, simple_ui_schemas):
        result = validate_bundle(
            simple_flow,
            [{"ruleId": "r", "when": {"op": "eq", "left": {"path": "a..b"}, "right": {"value": 1}}}],
            {},
            simple_ui_schemas,
        )
        assert result.valid
        assert "rules.rules[0].when.left.path" in {issue.path for issue in result.warnings}

    def test_missing_ui_schema_is_warning(self, simple_flow):
        result = validate_bundle(simple_flow, [], {}, {})
        assert result.valid
        assert {issue.path for issue in result.warnings} == {
            "flow.states.start.uiPageId",
            "flow.states.review.uiPageId",
        }
