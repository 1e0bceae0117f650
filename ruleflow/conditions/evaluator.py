"""Condition evaluator with trace generation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ruleflow.core.errors import ConditionDepthError, PathSyntaxError
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.paths import MISSING, deep_copy
from ruleflow.observability.trace import ConditionRead, ConditionStep
from .schemas import (
    AllCondition,
    AnyCondition,
    CompareCondition,
    Condition,
    NotCondition,
    Operand,
    PathOperand,
)
from .values import resolve_dynamic_value, resolve_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10


def is_number(value: Any) -> bool:
    """Real numbers only; booleans are not numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def json_equal(left: Any, right: Any) -> bool:
    """Structural equality with JSON typing (``true`` is not ``1``)."""
    if left is MISSING or right is MISSING:
        return left is right
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    if isinstance(left, list):
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    return left == right


def _numeric(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    return lambda left, right: is_number(left) and is_number(right) and compare(left, right)


def _contains(left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return right in left
    if isinstance(left, list):
        return any(json_equal(item, right) for item in left)
    return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": json_equal,
    "neq": lambda left, right: not json_equal(left, right),
    "gt": _numeric(lambda left, right: left > right),
    "gte": _numeric(lambda left, right: left >= right),
    "lt": _numeric(lambda left, right: left < right),
    "lte": _numeric(lambda left, right: left <= right),
    "in": lambda left, right: isinstance(right, list) and any(json_equal(item, left) for item in right),
    "contains": _contains,
    "startsWith": lambda left, right: isinstance(left, str) and isinstance(right, str) and left.startswith(right),
    "endsWith": lambda left, right: isinstance(left, str) and isinstance(right, str) and left.endswith(right),
    "exists": lambda left, _right: left is not MISSING and left is not None,
}


@dataclass
class ConditionOutcome:
    """Result of explaining a condition tree."""

    result: bool
    steps: list[ConditionStep] = field(default_factory=list)
    reads: list[ConditionRead] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def results_by_node(self) -> dict[str, bool]:
        """Map of node id to boolean result, in evaluation order."""
        return {step.node: step.result for step in self.steps}


def context_document(context: ExecutionContext | dict[str, Any]) -> dict[str, Any]:
    """The camelCase dict that ``context.*`` paths resolve against."""
    if isinstance(context, ExecutionContext):
        return context.to_document()
    return context


def explain_condition(
    condition: Condition,
    data: dict[str, Any],
    context: ExecutionContext | dict[str, Any],
    node_id: str = "condition",
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ConditionOutcome:
    """Evaluate a condition and record every node visited.

    Node ids are ``node_id`` for the root and ``node_id#all[0].not`` style for
    descendants. Malformed paths, unknown operators and any exception raised
    while resolving or comparing operands make their leaf false and are
    collected in ``errors``.

    Raises:
        ConditionDepthError: the tree is nested deeper than ``max_depth``.
    """
    explainer = _Explainer(data, context_document(context), node_id, max_depth)
    result = explainer.visit(condition, "", 0)
    return ConditionOutcome(
        result=result,
        steps=explainer.steps,
        reads=list(explainer.reads.values()),
        errors=explainer.errors,
    )


def evaluate_condition(
    condition: Condition,
    data: dict[str, Any],
    context: ExecutionContext | dict[str, Any],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Evaluate a condition to a boolean. Never raises."""
    try:
        outcome = explain_condition(condition, data, context, max_depth=max_depth)
    except ConditionDepthError as e:
        logger.warning("Condition evaluation aborted: %s", e)
        return False
    except Exception:
        logger.exception("Condition evaluation failed")
        return False
    for error in outcome.errors:
        logger.warning("Condition evaluation error: %s", error)
    return outcome.result


class _Explainer:
    """Walks a condition tree left to right, evaluating every child."""

    def __init__(self, data: dict[str, Any], context: dict[str, Any], node_id: str, max_depth: int):
        self.data = data
        self.context = context
        self.node_id = node_id
        self.max_depth = max_depth
        self.steps: list[ConditionStep] = []
        self.reads: dict[str, ConditionRead] = {}
        self.errors: list[str] = []

    def visit(self, condition: Condition, path: str, depth: int) -> bool:
        if depth > self.max_depth:
            raise ConditionDepthError(self.max_depth)

        if isinstance(condition, AllCondition):
            results = [
                self.visit(child, _child_path(path, f"all[{i}]"), depth + 1)
                for i, child in enumerate(condition.all)
            ]
            return self._record(path, "all", all(results))

        if isinstance(condition, AnyCondition):
            results = [
                self.visit(child, _child_path(path, f"any[{i}]"), depth + 1)
                for i, child in enumerate(condition.any)
            ]
            return self._record(path, "any", any(results))

        if isinstance(condition, NotCondition):
            result = not self.visit(condition.not_, _child_path(path, "not"), depth + 1)
            return self._record(path, "not", result)

        return self._compare(condition, path)

    def _compare(self, condition: CompareCondition, path: str) -> bool:
        description = f"{_describe(condition.left)} {condition.op}"
        if condition.right is not None and condition.op != "exists":
            description += f" {_describe(condition.right)}"

        try:
            left = self._resolve(condition.left)
            right = self._resolve(condition.right) if condition.right is not None else MISSING
        except PathSyntaxError as e:
            return self._record(path, "compare", False, description, error=str(e))
        except Exception as e:
            return self._record(path, "compare", False, description, error=_exception_text(e))

        operator = OPERATORS.get(condition.op)
        if operator is None:
            return self._record(
                path, "compare", False, description, left, error=f"Unsupported operator: {condition.op}"
            )

        try:
            result = bool(operator(left, right))
        except Exception as e:
            return self._record(path, "compare", False, description, left, error=_exception_text(e))
        return self._record(path, "compare", result, description, left)

    def _resolve(self, operand: Operand) -> Any:
        if isinstance(operand, PathOperand):
            value = resolve_path(operand.path, self.data, self.context)
            self.reads[operand.path] = ConditionRead(path=operand.path, value=_plain(value))
            return value
        return resolve_dynamic_value(operand.value, self.data, self.context)

    def _record(
        self,
        path: str,
        kind: str,
        result: bool,
        description: str | None = None,
        value_checked: Any = None,
        error: str | None = None,
    ) -> bool:
        node = f"{self.node_id}#{path}" if path else self.node_id
        if error:
            self.errors.append(f"{node}: {error}")
        self.steps.append(
            ConditionStep(
                node=node,
                kind=kind,
                result=result,
                condition=description,
                value_checked=_plain(value_checked),
                error=error,
            )
        )
        return result


def _child_path(parent: str, segment: str) -> str:
    return f"{parent}.{segment}" if parent else segment


def _describe(operand: Operand) -> str:
    if isinstance(operand, PathOperand):
        return operand.path
    return json.dumps(operand.value, sort_keys=True, default=str)


def _plain(value: Any) -> Any:
    return None if value is MISSING else deep_copy(value)


def _exception_text(error: Exception) -> str:
    return f"{type(error).__name__}: {error}"
