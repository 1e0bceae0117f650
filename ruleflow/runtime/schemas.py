"""Request and response models for the runtime HTTP endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ruleflow.api_orchestrator.schemas import ApiMapping
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.ontology.types import DocumentModel
from ruleflow.flow.schemas import FlowSchema
from ruleflow.rules.schemas import Rule, RuleSet


class ExecuteStepRequest(DocumentModel):
    """Everything needed to execute one step."""

    flow: FlowSchema
    ui_schemas_by_id: dict[str, dict[str, Any]] = Field(default_factory=dict)
    rules: RuleSet | list[Rule] = Field(default_factory=RuleSet)
    api_mappings_by_id: dict[str, ApiMapping] = Field(default_factory=dict)
    state_id: str
    event: str
    context: ExecutionContext
    data: dict[str, Any] = Field(default_factory=dict)
    validate_documents: bool | None = Field(None, description="Overrides RULEFLOW_VALIDATE")
    correlation_id: str | None = None
    version_id: str | None = None


class ExecuteStepResponse(DocumentModel):
    """Result of one step, with the trace as plain JSON."""

    next_state_id: str
    updated_context: dict[str, Any]
    updated_data: dict[str, Any]
    ui_schema: dict[str, Any] | None = None
    trace: dict[str, Any]
