"""Tests for the rule engine."""

import copy
import itertools
from types import SimpleNamespace

import pytest

from ruleflow.core import ExecutionContext
from ruleflow.rules import service as rules_service
from ruleflow.rules import Rule, RuleSet, apply_rules, matches_scope, order_rules
from ruleflow.rules.schemas import RuleScope

ALWAYS = {"all": []}


def rule(rule_id, actions, when=ALWAYS, **extra):
    return Rule.model_validate({"ruleId": rule_id, "when": when, "actions": actions, **extra})


class TestScopeAndOrdering:
    def test_scope_filtering_by_country(self, context: ExecutionContext):
        canadian = context.model_copy(update={"country": "CA"})
        rules = [
            rule("us_only", [], scope={"countries": ["US"]}),
            rule("everyone", []),
        ]
        result = apply_rules(rules, {}, canadian)

        assert result.trace.rules_considered == ["everyone"]

    def test_scope_roles_match_primary_or_role_set(self, context):
        assert matches_scope(RuleScope(roles=["agent"]), context)
        assert not matches_scope(RuleScope(roles=["admin"]), context)
        assert matches_scope(RuleScope(tenants=["acme"], countries=["US"]), context)
        assert not matches_scope(RuleScope(orgs=["org-1"]), context)

    def test_priority_descending_ties_keep_order(self, context):
        rules = [
            rule("low", [], priority=1),
            rule("tie_a", [], priority=5),
            rule("high", [], priority=10),
            rule("tie_b", [], priority=5),
        ]
        ordered = [r.rule_id for r in order_rules(rules, context)]
        assert ordered == ["high", "tie_a", "tie_b", "low"]

    def test_priority_last_write_wins(self, context):
        rules = [
            rule("second", [{"type": "setField", "path": "data.status", "value": "from-100"}], priority=100),
            rule("first", [{"type": "setField", "path": "data.status", "value": "from-200"}], priority=200),
        ]
        result = apply_rules(rules, {}, context)

        assert result.trace.rules_matched == ["first", "second"]
        assert [d.after for d in result.trace.action_diffs] == ["from-200", "from-100"]
        assert result.data["status"] == "from-100"


class TestActions:
    def test_set_field_with_dynamic_value(self, data, context):
        rules = [
            rule(
                "total",
                [
                    {
                        "type": "setField",
                        "path": "data.total",
                        "value": {"$transform": "multiply", "args": [{"$path": "data.amount"}, 2]},
                    }
                ],
            )
        ]
        result = apply_rules(rules, data, context)
        assert result.data["total"] == 500

    def test_later_rules_see_earlier_writes(self, context):
        rules = [
            rule("set", [{"type": "setField", "path": "data.stage", "value": "approved"}], priority=2),
            rule(
                "react",
                [{"type": "setField", "path": "data.notified", "value": True}],
                when={"op": "eq", "left": {"path": "data.stage"}, "right": {"value": "approved"}},
                priority=1,
            ),
        ]
        result = apply_rules(rules, {}, context)
        assert result.data == {"stage": "approved", "notified": True}

    def test_set_context_returns_new_context(self, context):
        rules = [rule("promote", [{"type": "setContext", "path": "context.role", "value": "supervisor"}])]
        result = apply_rules(rules, {}, context)

        assert result.context.role == "supervisor"
        assert context.role == "agent"
        assert result.context is not context

    def test_context_unchanged_keeps_instance(self, context):
        result = apply_rules([rule("noop", [{"type": "setField", "path": "x", "value": 1}])], {}, context)
        assert result.context is context

    def test_remove_add_and_map(self, data, context):
        rules = [
            rule(
                "reshape",
                [
                    {"type": "removeField", "path": "data.customer.address"},
                    {"type": "addItem", "path": "data.items", "value": {"sku": "C-3", "qty": 1}},
                    {"type": "addItem", "path": "data.tags", "value": "new"},
                    {"type": "mapField", "from": "context.tenantId", "to": "data.tenant"},
                ],
            )
        ]
        result = apply_rules(rules, data, context)

        assert "address" not in result.data["customer"]
        assert result.data["items"][-1] == {"sku": "C-3", "qty": 1}
        assert result.data["tags"] == ["new"]
        assert result.data["tenant"] == "acme"
        assert result.context is context

    def test_emit_event(self, context):
        rules = [rule("notify", [{"type": "emitEvent", "event": "kyc.required", "payload": {"level": 2}}])]
        result = apply_rules(rules, {}, context)

        assert len(result.trace.events) == 1
        assert result.trace.events[0].event == "kyc.required"
        assert result.trace.events[0].payload == {"level": 2}

    def test_throw_error_stops_batch(self, context):
        rules = [
            rule("stop", [{"type": "throwError", "message": "Blocked", "code": "E_BLOCK"}], priority=2),
            rule("after", [{"type": "setField", "path": "data.ran", "value": True}], priority=1),
        ]
        result = apply_rules(rules, {}, context)

        assert "ran" not in result.data
        assert len(result.trace.errors) == 1
        assert result.trace.errors[0].code == "E_BLOCK"
        assert result.trace.errors[0].rule_id == "stop"


class TestIsolation:
    def test_malformed_action_path_is_isolated(self, context):
        rules = [
            rule(
                "broken",
                [
                    {"type": "setField", "path": "data.partial", "value": 1},
                    {"type": "setField", "path": "data..bad", "value": 2},
                ],
                priority=2,
            ),
            rule("valid", [{"type": "setField", "path": "data.ok", "value": True}], priority=1),
        ]
        result = apply_rules(rules, {}, context)

        assert result.data == {"ok": True}
        assert len(result.trace.errors) == 1
        assert result.trace.errors[0].rule_id == "broken"
        assert result.trace.rules_matched == ["broken", "valid"]

    def test_context_write_breaking_model_is_isolated(self, context):
        rules = [
            rule("bad_device", [{"type": "setContext", "path": "device", "value": "watch"}], priority=2),
            rule("good", [{"type": "setField", "path": "done", "value": True}], priority=1),
        ]
        result = apply_rules(rules, {}, context)

        assert result.context.device == "desktop"
        assert result.data == {"done": True}
        assert len(result.trace.errors) == 1

    def test_inputs_are_not_mutated(self, data, context):
        before = copy.deepcopy(data)
        rules = [rule("mutate", [{"type": "setField", "path": "customer.name", "value": "Other"}])]
        apply_rules(rules, data, context)
        assert data == before

    def test_max_rules_limit(self, context):
        rules = [rule(f"r{i}", []) for i in range(5)]
        result = apply_rules(rules, {}, context, max_rules=3)

        assert len(result.trace.rules_matched) == 3
        assert result.trace.rules_considered == ["r0", "r1", "r2"]
        assert result.trace.errors[-1].message == "Max rules limit reached: 3"

    def test_timeout_stops_before_next_rule(self, context, monkeypatch):
        ticks = itertools.chain([0.0, 0.0], itertools.repeat(0.5))
        monkeypatch.setattr(rules_service, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        rules = [
            rule("first", [{"type": "setField", "path": "first", "value": True}], priority=2),
            rule("second", [{"type": "setField", "path": "second", "value": True}], priority=1),
        ]
        result = apply_rules(rules, {}, context, timeout_ms=100)

        assert result.data == {"first": True}
        assert result.trace.rules_considered == ["first"]
        assert result.trace.errors[-1].message == "Rules evaluation timeout after 100ms"

    def test_timeout_disabled(self, context):
        rules = [rule(f"r{i}", []) for i in range(3)]
        result = apply_rules(rules, {}, context, timeout_ms=None)
        assert result.trace.rules_matched == ["r0", "r1", "r2"]
        assert result.trace.errors == []


class TestTrace:
    def test_condition_results_and_reads(self, data, context):
        rules = RuleSet(
            rules=[
                rule(
                    "big_order",
                    [],
                    when={"op": "gt", "left": {"path": "data.amount"}, "right": {"value": 100}},
                )
            ]
        )
        result = apply_rules(rules, data, context)

        assert result.trace.condition_results["big_order"] is True
        assert result.trace.reads_by_rule_id["big_order"][0].value == 250

    def test_predicate_mode_applies_nothing(self, context):
        rules = [rule("r", [{"type": "setField", "path": "x", "value": 1}])]
        result = apply_rules(rules, {}, context, mode="predicate")

        assert result.trace.rules_matched == ["r"]
        assert result.data == {}
        assert result.trace.actions_applied == []

    @pytest.mark.parametrize("mode", ["apply", "predicate"])
    def test_trace_serializes_to_camel_case(self, context, mode):
        result = apply_rules([rule("r", [])], {}, context, mode=mode)
        payload = result.trace.to_json_dict()
        assert "rulesConsidered" in payload
        assert "conditionResults" in payload
