"""Step orchestrator - flow, rules and API phases for one event."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from ruleflow.api_orchestrator.schemas import ApiMapping
from ruleflow.api_orchestrator.service import call_api
from ruleflow.api_orchestrator.transport import FetchFn, create_default_fetch
from ruleflow.core.config import Settings, get_settings
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.paths import deep_copy
from ruleflow.flow.schemas import FlowSchema
from ruleflow.flow.service import resolve_transition
from ruleflow.observability.trace import ApiTrace, RulesTrace, RuntimeTrace, TraceContext, utc_now_iso
from ruleflow.observability.tracelog import log_runtime_trace
from ruleflow.rules.schemas import Rule, RuleSet
from ruleflow.rules.service import apply_rules
from ruleflow.validation.service import assert_bundle

logger = logging.getLogger(__name__)

MAX_EVENT_LENGTH = 128
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

TraceLogger = Callable[[RuntimeTrace], None]


@dataclass
class StepResult:
    """Outcome of one ``execute_step`` call."""

    next_state_id: str
    updated_context: ExecutionContext
    updated_data: dict[str, Any]
    ui_schema: dict[str, Any] | None
    trace: RuntimeTrace


def sanitize_event(event: str) -> str:
    """Strip control characters, trim, and cap the event name length."""
    return _CONTROL_CHARS_RE.sub("", event).strip()[:MAX_EVENT_LENGTH]


def _as_rule_set(rules: RuleSet | Iterable[Rule | Mapping[str, Any]] | Mapping[str, Any]) -> RuleSet:
    if isinstance(rules, RuleSet):
        return rules
    if isinstance(rules, Mapping):
        return RuleSet.model_validate(rules)
    return RuleSet.model_validate({"version": "runtime", "rules": list(rules)})


def _as_mappings(mappings: Mapping[str, ApiMapping | Mapping[str, Any]]) -> dict[str, ApiMapping]:
    return {
        api_id: mapping if isinstance(mapping, ApiMapping) else ApiMapping.model_validate(mapping)
        for api_id, mapping in mappings.items()
    }


async def execute_step(
    *,
    flow: FlowSchema | Mapping[str, Any],
    ui_schemas_by_id: Mapping[str, dict[str, Any]],
    rules: RuleSet | Iterable[Rule | Mapping[str, Any]] | Mapping[str, Any],
    api_mappings_by_id: Mapping[str, ApiMapping | Mapping[str, Any]],
    state_id: str,
    event: str,
    context: ExecutionContext | Mapping[str, Any],
    data: Mapping[str, Any],
    fetch_fn: FetchFn | None = None,
    validate: bool | None = None,
    correlation_id: str | None = None,
    version_id: str | None = None,
    settings: Settings | None = None,
    trace_logger: TraceLogger | None = None,
) -> StepResult:
    """Execute one step: resolve the transition, apply rules, call the API.

    1. Validate the documents (unless disabled by ``validate`` or settings).
    2. Resolve ``event`` from ``state_id`` against the flow.
    3. Apply the rule set unless the flow reported an error.
    4. Call the transition's API mapping when the transition fired.
    5. Assemble and emit the runtime trace.

    Inputs are never mutated. Rule, guard and API failures are recorded in
    the trace rather than raised.

    Raises:
        DocumentValidationError: setup validation found errors.
    """
    started_at = utc_now_iso()
    started = time.perf_counter()
    settings = settings or get_settings()
    should_validate = settings.validate_documents if validate is None else validate
    if not isinstance(rules, (RuleSet, Mapping)):
        rules = list(rules)

    if should_validate:
        assert_bundle(
            flow,
            rules,
            api_mappings_by_id,
            ui_schemas_by_id,
            max_depth=settings.max_condition_depth,
        )

    flow_model = flow if isinstance(flow, FlowSchema) else FlowSchema.model_validate(flow)
    rule_set = _as_rule_set(rules)
    mappings = _as_mappings(api_mappings_by_id)
    current_context = (
        context if isinstance(context, ExecutionContext) else ExecutionContext.model_validate(context)
    )
    current_data = deep_copy(dict(data))
    event = sanitize_event(event)

    resolution = resolve_transition(
        flow_model,
        state_id,
        event,
        current_data,
        current_context,
        max_depth=settings.max_condition_depth,
    )

    rules_trace: RulesTrace | None = None
    if resolution.reason != "error":
        rules_result = apply_rules(
            rule_set,
            current_data,
            current_context,
            max_rules=settings.max_rules,
            max_depth=settings.max_condition_depth,
            timeout_ms=settings.rules_timeout_ms,
            log_trace=settings.log_traces,
        )
        current_data = rules_result.data
        current_context = rules_result.context
        rules_trace = rules_result.trace

    api_trace: ApiTrace | None = None
    api_id = resolution.api_id
    if api_id:
        mapping = mappings.get(api_id)
        if mapping is None:
            logger.warning("Transition %s -> %s references unknown apiId %s",
                           state_id, resolution.next_state_id, api_id)
            api_trace = ApiTrace(api_id=api_id, method="", endpoint="")
            api_trace.record_error(f"Unknown apiId: {api_id}")
        else:
            api_result = await call_api(
                mapping,
                current_context,
                current_data,
                fetch_fn or create_default_fetch(settings),
            )
            current_data = api_result.data
            current_context = api_result.context
            api_trace = api_result.trace

    ui_page_id = resolution.trace.ui_page_id
    ui_schema = ui_schemas_by_id.get(ui_page_id)
    if ui_schema is None:
        logger.warning("No UI schema for page %s", ui_page_id)

    trace = RuntimeTrace(
        started_at=started_at,
        flow=resolution.trace,
        rules=rules_trace,
        api=api_trace,
        context=TraceContext(
            correlation_id=correlation_id,
            tenant_id=current_context.tenant_id,
            user_id=current_context.user_id,
            version_id=version_id,
        ),
    )
    trace.duration_ms = round((time.perf_counter() - started) * 1000, 3)

    if trace_logger is not None:
        trace_logger(trace)
    if settings.log_traces:
        log_runtime_trace(trace)

    return StepResult(
        next_state_id=resolution.next_state_id,
        updated_context=current_context,
        updated_data=current_data,
        ui_schema=deep_copy(ui_schema) if ui_schema is not None else None,
        trace=trace,
    )


def execute_step_sync(**kwargs: Any) -> StepResult:
    """Blocking wrapper around ``execute_step`` for callers without an event loop."""
    return asyncio.run(execute_step(**kwargs))
