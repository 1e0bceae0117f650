"""Operand and dynamic value resolution against data and context documents."""

from __future__ import annotations

import math
from typing import Any, Callable

from ruleflow.core.paths import MISSING, get_path

MAX_TRANSFORM_ARGS = 8


def resolve_path(path: str, data: dict[str, Any], context: dict[str, Any]) -> Any:
    """Resolve ``data.*`` / ``context.*`` paths; bare paths read from data."""
    if path.startswith("context."):
        return get_path(context, path[len("context."):])
    if path.startswith("data."):
        return get_path(data, path[len("data."):])
    return get_path(data, path)


def resolve_dynamic_value(value: Any, data: dict[str, Any], context: dict[str, Any]) -> Any:
    """Resolve ``{"$path": ...}`` and ``{"$transform": ..., "args": [...]}`` values.

    Anything else is returned unchanged. A transform that cannot be computed
    (bad arguments, division by zero) resolves to ``MISSING``.
    """
    if not isinstance(value, dict):
        return value
    if isinstance(value.get("$path"), str):
        return resolve_path(value["$path"], data, context)
    if isinstance(value.get("$transform"), str):
        return _evaluate_value_transform(value["$transform"], value.get("args"), data, context)
    return value


def to_finite_number(value: Any) -> float | int | None:
    """Coerce numbers and numeric strings; ``None`` when not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return value if math.isfinite(value) else None
        except OverflowError:
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() and "." not in value else parsed
    return None


def _numeric_fold(args: list[Any], reducer: Callable[[float, float], float]) -> Any:
    if not args:
        return MISSING
    first = to_finite_number(args[0])
    if first is None:
        return MISSING
    acc = first
    for arg in args[1:]:
        number = to_finite_number(arg)
        if number is None:
            return MISSING
        try:
            acc = reducer(acc, number)
        except (ZeroDivisionError, OverflowError):
            return MISSING
        if to_finite_number(acc) is None:
            return MISSING
    return acc


def _unary_number(args: list[Any], fn: Callable[[float], Any]) -> Any:
    number = to_finite_number(args[0]) if args else None
    return MISSING if number is None else fn(number)


def _unary_text(args: list[Any], fn: Callable[[str], str]) -> Any:
    return fn(args[0]) if args and isinstance(args[0], str) else MISSING


def _mod(args: list[Any]) -> Any:
    if len(args) != 2:
        return MISSING
    left, right = to_finite_number(args[0]), to_finite_number(args[1])
    if left is None or right is None or right == 0:
        return MISSING
    return math.fmod(left, right) if isinstance(left, float) or isinstance(right, float) else int(math.fmod(left, right))


def _text(value: Any) -> str:
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


VALUE_TRANSFORMS: dict[str, Callable[[list[Any]], Any]] = {
    "add": lambda args: _numeric_fold(args, lambda a, b: a + b),
    "subtract": lambda args: _numeric_fold(args, lambda a, b: a - b),
    "multiply": lambda args: _numeric_fold(args, lambda a, b: a * b),
    "divide": lambda args: _numeric_fold(args, lambda a, b: a / b),
    "mod": _mod,
    "abs": lambda args: _unary_number(args, abs),
    "round": lambda args: _unary_number(args, lambda n: math.floor(n + 0.5)),
    "floor": lambda args: _unary_number(args, math.floor),
    "ceil": lambda args: _unary_number(args, math.ceil),
    "trim": lambda args: _unary_text(args, str.strip),
    "lower": lambda args: _unary_text(args, str.lower),
    "upper": lambda args: _unary_text(args, str.upper),
    "concat": lambda args: "".join(_text(arg) for arg in args),
}


def _evaluate_value_transform(
    name: str, args: Any, data: dict[str, Any], context: dict[str, Any]
) -> Any:
    if not isinstance(args, list) or len(args) > MAX_TRANSFORM_ARGS:
        return MISSING
    fn = VALUE_TRANSFORMS.get(name)
    if fn is None:
        return MISSING
    resolved = [
        resolve_path(arg["$path"], data, context)
        if isinstance(arg, dict) and isinstance(arg.get("$path"), str)
        else arg
        for arg in args
    ]
    return fn(resolved)
