"""Trace models - the serializable audit record of one step execution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import Field

from ruleflow.core.ontology.types import DocumentModel

FlowReason = Literal["ok", "no_transition", "guard_failed", "error"]


def utc_now_iso() -> str:
    """ISO 8601 timestamp with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# Condition Explain
# =============================================================================


class ConditionStep(DocumentModel):
    """A single evaluated node of a condition tree."""

    node: str
    kind: Literal["all", "any", "not", "compare"]
    result: bool
    condition: str | None = None
    value_checked: Any = None
    error: str | None = None


class ConditionRead(DocumentModel):
    """A path read while evaluating a condition, with the value seen."""

    path: str
    value: Any = None


# =============================================================================
# Flow
# =============================================================================


class FlowTrace(DocumentModel):
    """Outcome of resolving one event against the flow graph."""

    started_at: str = Field(default_factory=utc_now_iso)
    duration_ms: float = 0.0
    event: str
    from_state_id: str
    to_state_id: str
    ui_page_id: str
    reason: FlowReason = "error"
    guard_result: bool | None = None
    guard_steps: list[ConditionStep] = Field(default_factory=list)
    api_id: str | None = None
    error_message: str | None = None


# =============================================================================
# Rules
# =============================================================================


class RuleError(DocumentModel):
    """A per-rule failure; ``rule_id`` is empty for batch-level errors."""

    rule_id: str | None = None
    message: str
    code: str | None = None


class RuleEvent(DocumentModel):
    """An ``emitEvent`` action recorded for the caller."""

    rule_id: str
    event: str
    payload: Any = None


class AppliedAction(DocumentModel):
    """An action applied by a matched rule."""

    rule_id: str
    action: dict[str, Any]


class ActionDiff(DocumentModel):
    """Before/after value of a data or context write."""

    rule_id: str
    target: Literal["data", "context"]
    path: str
    before: Any = None
    after: Any = None


class RulesTrace(DocumentModel):
    """Everything the rule engine decided in one batch."""

    started_at: str = Field(default_factory=utc_now_iso)
    duration_ms: float = 0.0
    rules_considered: list[str] = Field(default_factory=list)
    rules_matched: list[str] = Field(default_factory=list)
    condition_results: dict[str, bool] = Field(default_factory=dict)
    condition_steps: dict[str, list[ConditionStep]] = Field(default_factory=dict)
    reads_by_rule_id: dict[str, list[ConditionRead]] = Field(default_factory=dict)
    actions_applied: list[AppliedAction] = Field(default_factory=list)
    action_diffs: list[ActionDiff] = Field(default_factory=list)
    events: list[RuleEvent] = Field(default_factory=list)
    errors: list[RuleError] = Field(default_factory=list)


# =============================================================================
# API
# =============================================================================


class ApiRequestTrace(DocumentModel):
    """The request actually built from the request map."""

    query: dict[str, Any] | None = None
    headers: dict[str, Any] | None = None
    body: dict[str, Any] | None = None


class ApiResponseTrace(DocumentModel):
    """Status and parsed body of the transport response."""

    status: int
    body: Any = None


class ApiTrace(DocumentModel):
    """One orchestrated API call."""

    started_at: str = Field(default_factory=utc_now_iso)
    duration_ms: float = 0.0
    api_id: str
    method: str
    endpoint: str
    url: str | None = None
    request: ApiRequestTrace = Field(default_factory=ApiRequestTrace)
    response: ApiResponseTrace | None = None
    error: str | None = None
    errors: list[str] = Field(default_factory=list)

    def record_error(self, message: str) -> None:
        """Keep the first error in ``error`` and every error in ``errors``."""
        if self.error is None:
            self.error = message
        self.errors.append(message)


# =============================================================================
# Runtime
# =============================================================================


class TraceContext(DocumentModel):
    """Correlation identifiers attached to a runtime trace."""

    correlation_id: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None
    version_id: str | None = None


class RuntimeTrace(DocumentModel):
    """Complete trace of one ``execute_step`` call."""

    started_at: str = Field(default_factory=utc_now_iso)
    duration_ms: float = 0.0
    flow: FlowTrace
    rules: RulesTrace | None = None
    api: ApiTrace | None = None
    context: TraceContext = Field(default_factory=TraceContext)

    @property
    def has_errors(self) -> bool:
        """True when any phase recorded an error."""
        return bool(
            self.flow.reason == "error"
            or (self.rules and self.rules.errors)
            or (self.api and self.api.error)
        )
