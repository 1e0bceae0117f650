"""Tests for the flow resolver."""

from ruleflow.flow import FlowSchema, resolve_transition
from ruleflow.flow import service as flow_service


def guarded_flow(guard) -> FlowSchema:
    return FlowSchema.model_validate(
        {
            "flowId": "checkout",
            "initialState": "cart",
            "states": {
                "cart": {
                    "uiPageId": "cart_page",
                    "on": {
                        "checkout": {"to": "payment", "guard": guard, "apiCall": {"apiId": "quote"}},
                        "clear": {"to": "cart"},
                    },
                },
                "payment": {"uiPageId": "payment_page", "on": {}},
            },
        }
    )


class TestResolveTransition:
    def test_simple_transition(self, simple_flow, data, context):
        resolution = resolve_transition(simple_flow, "start", "next", data, context)

        assert resolution.reason == "ok"
        assert resolution.next_state_id == "review"
        assert resolution.trace.to_state_id == "review"
        assert resolution.trace.from_state_id == "start"
        assert resolution.trace.ui_page_id == "p2"
        assert resolution.trace.guard_result is None
        assert resolution.api_id is None

    def test_unknown_state(self, simple_flow, data, context):
        resolution = resolve_transition(simple_flow, "ghost", "next", data, context)

        assert resolution.reason == "error"
        assert resolution.next_state_id == "ghost"
        assert resolution.trace.error_message == "Unknown state: ghost"
        assert resolution.trace.ui_page_id == "ghost"

    def test_no_transition_keeps_state(self, simple_flow, data, context):
        resolution = resolve_transition(simple_flow, "start", "jump", data, context)

        assert resolution.reason == "no_transition"
        assert resolution.next_state_id == "start"
        assert resolution.trace.ui_page_id == "p1"

    def test_guard_passes_and_records_api(self, data, context):
        flow = guarded_flow({"op": "gte", "left": {"path": "data.amount"}, "right": {"value": 100}})
        resolution = resolve_transition(flow, "cart", "checkout", data, context)

        assert resolution.reason == "ok"
        assert resolution.next_state_id == "payment"
        assert resolution.trace.guard_result is True
        assert resolution.trace.api_id == "quote"
        assert resolution.api_id == "quote"
        assert resolution.trace.guard_steps[0].node == "guard"

    def test_guard_failed(self, data, context):
        flow = guarded_flow({"op": "gt", "left": {"path": "data.amount"}, "right": {"value": 1000}})
        resolution = resolve_transition(flow, "cart", "checkout", data, context)

        assert resolution.reason == "guard_failed"
        assert resolution.next_state_id == "cart"
        assert resolution.trace.guard_result is False
        assert resolution.trace.api_id is None
        assert resolution.api_id is None

    def test_guard_too_deep_is_error(self, data, context):
        guard = {"op": "exists", "left": {"path": "email"}}
        for _ in range(3):
            guard = {"not": guard}
        flow = guarded_flow(guard)
        resolution = resolve_transition(flow, "cart", "checkout", data, context, max_depth=2)

        assert resolution.reason == "error"
        assert resolution.next_state_id == "cart"
        assert "Max condition depth exceeded" in resolution.trace.error_message

    def test_guard_exception_is_guard_failed(self, data, context, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(flow_service, "explain_condition", explode)
        flow = guarded_flow({"op": "exists", "left": {"path": "data.email"}})
        resolution = resolve_transition(flow, "cart", "checkout", data, context)

        assert resolution.reason == "guard_failed"
        assert resolution.next_state_id == "cart"
        assert resolution.trace.guard_result is False
        assert resolution.trace.error_message == "Guard evaluation failed: boom"
        assert resolution.api_id is None

    def test_self_transition(self, data, context):
        flow = guarded_flow({"all": []})
        resolution = resolve_transition(flow, "cart", "clear", data, context)

        assert resolution.reason == "ok"
        assert resolution.next_state_id == "cart"

    def test_yaml_on_key_is_accepted(self):
        flow = FlowSchema.model_validate(
            {"initialState": "a", "states": {"a": {"uiPageId": "a", True: {"go": {"to": "a"}}}}}
        )
        assert "go" in flow.states["a"].on
