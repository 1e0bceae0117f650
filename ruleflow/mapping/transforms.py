"""Transform DSL applied to mapped values.

Expressions look like ``upper($)`` or ``concat("ID-", $)``: a function name
followed by a parenthesised argument list. ``$`` stands for the mapped
value; other arguments are quoted strings, numbers, ``true``, ``false`` or
``null``.
"""

from __future__ import annotations

import json
import math
import re
from functools import lru_cache
from typing import Any, Callable

from ruleflow.core.errors import TransformError, TransformSyntaxError
from ruleflow.core.paths import MISSING

_EXPRESSION_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9_]*)\((.*)\)$", re.DOTALL)
_NUMBER_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")

VALUE_PLACEHOLDER = "$"


@lru_cache(maxsize=256)
def parse_transform(expression: str) -> tuple[str, tuple[str, ...]]:
    """Split an expression into its function name and raw argument strings.

    Raises:
        TransformSyntaxError: the expression is not ``name(args)``.
    """
    match = _EXPRESSION_RE.match(expression.strip())
    if not match:
        raise TransformSyntaxError(expression)
    return match.group(1), tuple(_split_args(match.group(2)))


def apply_transform(expression: str, value: Any) -> Any:
    """Apply ``expression`` to ``value``.

    An absent value (``MISSING``) passes through untouched so that the
    caller can omit the entry.

    Raises:
        TransformSyntaxError: malformed expression.
        TransformError: unknown function or a value it cannot convert.
    """
    name, raw_args = parse_transform(expression)
    if value is MISSING:
        return MISSING
    fn = TRANSFORMS.get(name)
    if fn is None:
        raise TransformError(f"Unsupported transform: {name}")
    args = [_resolve_arg(arg, value) for arg in raw_args]
    return fn(args)


def _split_args(source: str) -> list[str]:
    args: list[str] = []
    current: list[str] = []
    quote: str | None = None
    previous = ""
    for char in source:
        if char in ("'", '"') and previous != "\\":
            if quote == char:
                quote = None
            elif quote is None:
                quote = char
        if char == "," and quote is None:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        previous = char
    tail = "".join(current).strip()
    if tail:
        args.append(tail)
    return args


def _resolve_arg(arg: str, value: Any) -> Any:
    if arg == VALUE_PLACEHOLDER:
        return value
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in ("'", '"'):
        return arg[1:-1]
    if arg == "true":
        return True
    if arg == "false":
        return False
    if arg == "null":
        return None
    if _NUMBER_RE.match(arg):
        number = float(arg)
        return int(number) if number.is_integer() and "." not in arg and "e" not in arg.lower() else number
    return arg


def to_text(value: Any) -> str:
    """Render a JSON value the way it appears in a URL or a header."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _first(args: list[Any]) -> Any:
    return args[0] if args else None


def _to_number(args: list[Any]) -> int | float:
    value = _first(args)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            raise TransformError(f"Cannot convert '{value}' to a number") from None
        if math.isfinite(number) and number.is_integer() and "." not in text:
            return int(number)
        return number
    raise TransformError(f"Cannot convert {type(value).__name__} to a number")


def _length(args: list[Any]) -> int:
    value = _first(args)
    if isinstance(value, (str, list, dict)):
        return len(value)
    raise TransformError(f"length() needs a string, list or object, got {type(value).__name__}")


TRANSFORMS: dict[str, Callable[[list[Any]], Any]] = {
    "upper": lambda args: to_text(_first(args)).upper(),
    "lower": lambda args: to_text(_first(args)).lower(),
    "trim": lambda args: to_text(_first(args)).strip(),
    "string": lambda args: to_text(_first(args)),
    "number": _to_number,
    "concat": lambda args: "".join(to_text(arg) for arg in args),
    "json": lambda args: json.dumps(_first(args), separators=(",", ":")),
    "length": _length,
}
