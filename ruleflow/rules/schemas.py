"""Rule set models - scoped, prioritized condition -> actions pairs."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Field

from ruleflow.conditions.schemas import Condition
from ruleflow.core.ontology.types import DocumentModel


# =============================================================================
# Actions
# =============================================================================


class SetFieldAction(DocumentModel):
    """Write a (possibly dynamic) value at a data path."""

    type: Literal["setField"] = "setField"
    path: str
    value: Any = None


class SetContextAction(DocumentModel):
    """Write a value at a context path; produces a new context."""

    type: Literal["setContext"] = "setContext"
    path: str
    value: Any = None


class RemoveFieldAction(DocumentModel):
    """Delete a data (or ``context.*``) path."""

    type: Literal["removeField"] = "removeField"
    path: str


class AddItemAction(DocumentModel):
    """Append a value to a list, creating it when absent."""

    type: Literal["addItem"] = "addItem"
    path: str
    value: Any = None


class MapFieldAction(DocumentModel):
    """Copy the value at ``from`` to ``to``."""

    type: Literal["mapField"] = "mapField"
    from_: str = Field(..., alias="from")
    to: str


class EmitEventAction(DocumentModel):
    """Record an event for the caller; never executed by the engine."""

    type: Literal["emitEvent"] = "emitEvent"
    event: str
    payload: Any = None


class ThrowErrorAction(DocumentModel):
    """Record an error and stop evaluating the remaining rules."""

    type: Literal["throwError"] = "throwError"
    message: str
    code: str | None = None


Action = Annotated[
    Union[
        SetFieldAction,
        SetContextAction,
        RemoveFieldAction,
        AddItemAction,
        MapFieldAction,
        EmitEventAction,
        ThrowErrorAction,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Rule Model
# =============================================================================


class RuleScope(DocumentModel):
    """Restricts a rule to matching context attributes; empty lists match all."""

    countries: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    tenants: list[str] = Field(default_factory=list)
    orgs: list[str] = Field(default_factory=list)
    programs: list[str] = Field(default_factory=list)
    issuers: list[str] = Field(default_factory=list)


class Rule(DocumentModel):
    """A single rule: scope, condition and actions."""

    model_config = ConfigDict(extra="ignore")

    rule_id: str = Field(..., description="Unique rule identifier")
    description: str | None = Field(None, description="Human-readable description")
    priority: float = Field(0, description="Higher runs first; ties keep declaration order")
    version: str | None = None
    scope: RuleScope | None = None
    when: Condition
    actions: list[Action] = Field(default_factory=list)


class RuleSet(DocumentModel):
    """A versioned collection of rules."""

    version: str = "1.0"
    rules: list[Rule] = Field(default_factory=list)
