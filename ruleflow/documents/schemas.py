"""Application bundle - all documents needed to run a flow."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ruleflow.api_orchestrator.schemas import ApiMapping
from ruleflow.core.ontology.types import DocumentModel
from ruleflow.flow.schemas import FlowSchema
from ruleflow.rules.schemas import RuleSet


class ApplicationBundle(DocumentModel):
    """A flow with its rule set, API mappings and UI schemas."""

    flow: FlowSchema
    rules: RuleSet = Field(default_factory=RuleSet)
    api_mappings_by_id: dict[str, ApiMapping] = Field(default_factory=dict)
    ui_schemas_by_id: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def step_documents(self) -> dict[str, Any]:
        """Keyword arguments for ``execute_step`` covering the documents."""
        return {
            "flow": self.flow,
            "rules": self.rules,
            "api_mappings_by_id": self.api_mappings_by_id,
            "ui_schemas_by_id": self.ui_schemas_by_id,
        }
