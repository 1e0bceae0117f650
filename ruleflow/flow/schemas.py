"""Flow graph models - states, events and guarded transitions."""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from ruleflow.conditions.schemas import Condition
from ruleflow.core.ontology.types import DocumentModel


class ApiCallRef(DocumentModel):
    """Names the API mapping a transition calls."""

    api_id: str


class Transition(DocumentModel):
    """An edge in the flow graph, triggered by a named event."""

    to: str = Field(..., description="Target state id")
    guard: Condition | None = Field(None, description="Must hold for the transition to fire")
    api_call: ApiCallRef | None = None


class FlowState(DocumentModel):
    """A state bound to a UI page."""

    ui_page_id: str
    on: dict[str, Transition] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _yaml_on_key(cls, value: Any) -> Any:
        # YAML 1.1 loads a bare ``on:`` key as boolean true
        if isinstance(value, dict) and True in value and "on" not in value:
            value = dict(value)
            value["on"] = value.pop(True)
        return value


class FlowSchema(DocumentModel):
    """The declarative state machine describing page-to-page navigation."""

    version: str | None = None
    flow_id: str | None = None
    initial_state: str
    states: dict[str, FlowState]
