"""Condition evaluator - boolean condition trees over data and context."""

from .schemas import (
    PathOperand,
    ValueOperand,
    Operand,
    CompareCondition,
    AllCondition,
    AnyCondition,
    NotCondition,
    Condition,
)
from .evaluator import (
    OPERATORS,
    DEFAULT_MAX_DEPTH,
    ConditionOutcome,
    evaluate_condition,
    explain_condition,
    context_document,
    json_equal,
    is_number,
)
from .values import resolve_path, resolve_dynamic_value, to_finite_number, VALUE_TRANSFORMS

__all__ = [
    # Schemas
    "PathOperand",
    "ValueOperand",
    "Operand",
    "CompareCondition",
    "AllCondition",
    "AnyCondition",
    "NotCondition",
    "Condition",
    # Evaluator
    "OPERATORS",
    "DEFAULT_MAX_DEPTH",
    "ConditionOutcome",
    "evaluate_condition",
    "explain_condition",
    "context_document",
    "json_equal",
    "is_number",
    # Values
    "resolve_path",
    "resolve_dynamic_value",
    "to_finite_number",
    "VALUE_TRANSFORMS",
]
