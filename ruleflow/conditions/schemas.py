"""Condition tree models shared by rule ``when`` clauses and flow guards."""

from __future__ import annotations

from typing import Any, Union

from pydantic import ConfigDict, Field

from ruleflow.core.ontology.types import DocumentModel


# =============================================================================
# Operands
# =============================================================================


class PathOperand(DocumentModel):
    """Reads a value from ``data.*`` or ``context.*`` (bare paths read data)."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Dotted path, e.g. 'data.amount'")


class ValueOperand(DocumentModel):
    """A literal, or a dynamic ``{"$path": ...}`` / ``{"$transform": ...}`` value."""

    model_config = ConfigDict(extra="forbid")

    value: Any = Field(..., description="Literal or dynamic value")


Operand = Union[PathOperand, ValueOperand]


# =============================================================================
# Condition Expressions
# =============================================================================


class CompareCondition(DocumentModel):
    """Leaf comparison ``left <op> right``."""

    model_config = ConfigDict(extra="forbid")

    op: str = Field(..., description="Operator name (eq, neq, gt, exists, ...)")
    left: Operand
    right: Operand | None = None


class AllCondition(DocumentModel):
    """True iff every child is true (AND); empty is true."""

    model_config = ConfigDict(extra="forbid")

    all: list[Condition]


class AnyCondition(DocumentModel):
    """True iff at least one child is true (OR); empty is false."""

    model_config = ConfigDict(extra="forbid")

    any: list[Condition]


class NotCondition(DocumentModel):
    """Negates a single child."""

    model_config = ConfigDict(extra="forbid")

    not_: Condition = Field(..., alias="not")


Condition = Union[AllCondition, AnyCondition, NotCondition, CompareCondition]

# Enable forward references
AllCondition.model_rebuild()
AnyCondition.model_rebuild()
NotCondition.model_rebuild()
