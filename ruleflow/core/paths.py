"""Dotted path parsing, lookup and copy-on-write helpers for JSON documents.

Paths look like ``customer.address.city`` or ``items[0].sku``. Purely numeric
segments (``items.0``) are list indexes as well.
"""

from __future__ import annotations

import copy
import re
from functools import lru_cache
from typing import Any

from .errors import PathSyntaxError, PathWriteError


class _Missing:
    """Sentinel for a path that does not resolve (distinct from JSON null)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_SEGMENT_RE = re.compile(r"^(?P<name>[^.\[\]\s]+)?(?P<indexes>(?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")

Token = str | int


@lru_cache(maxsize=1024)
def parse_path(path: str) -> tuple[Token, ...]:
    """Parse a dotted path into a tuple of keys and list indexes.

    Raises:
        PathSyntaxError: empty segments, unbalanced brackets, whitespace or
            dunder names.
    """
    if not isinstance(path, str) or not path:
        raise PathSyntaxError(str(path), "path is empty")

    tokens: list[Token] = []
    for segment in path.split("."):
        if not segment:
            raise PathSyntaxError(path, "empty segment")
        match = _SEGMENT_RE.match(segment)
        if not match:
            raise PathSyntaxError(path, f"malformed segment '{segment}'")
        name = match.group("name")
        if name is None:
            raise PathSyntaxError(path, f"segment '{segment}' has no name")
        if name.startswith("__") and name.endswith("__"):
            raise PathSyntaxError(path, f"segment '{name}' is not allowed")
        tokens.append(int(name) if name.isdigit() else name)
        tokens.extend(int(index) for index in _INDEX_RE.findall(match.group("indexes")))
    return tuple(tokens)


def strip_prefix(path: str, prefix: str) -> str:
    """Remove ``prefix`` from ``path`` when present."""
    return path[len(prefix):] if path.startswith(prefix) else path


def get_path(obj: Any, path: str) -> Any:
    """Read the value at ``path``; returns ``MISSING`` when absent."""
    current = obj
    for token in parse_path(path):
        if isinstance(token, int):
            if isinstance(current, list):
                if 0 <= token < len(current):
                    current = current[token]
                    continue
                return MISSING
            if isinstance(current, dict) and str(token) in current:
                current = current[str(token)]
                continue
            return MISSING
        if not isinstance(current, dict) or token not in current:
            return MISSING
        current = current[token]
    return current


def set_path(obj: dict[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at ``path`` in place, creating intermediate containers."""
    tokens = parse_path(path)
    current: Any = obj
    for position, token in enumerate(tokens):
        is_last = position == len(tokens) - 1
        if is_last:
            _assign(current, token, value, path)
            return
        next_token = tokens[position + 1]
        child = _child(current, token, path)
        if child is MISSING or child is None:
            child = [] if isinstance(next_token, int) else {}
            _assign(current, token, child, path)
        elif not isinstance(child, (dict, list)):
            raise PathWriteError(
                f"Cannot write '{path}': '{token}' holds a {type(child).__name__}, not an object"
            )
        current = child


def remove_path(obj: dict[str, Any], path: str) -> None:
    """Delete the value at ``path`` in place; absent paths are ignored."""
    tokens = parse_path(path)
    parent = obj
    for token in tokens[:-1]:
        parent = _child(parent, token, path)
        if not isinstance(parent, (dict, list)):
            return
    last = tokens[-1]
    if isinstance(parent, list) and isinstance(last, int):
        if 0 <= last < len(parent):
            del parent[last]
    elif isinstance(parent, dict):
        parent.pop(str(last) if isinstance(last, int) else last, None)


def deep_copy(value: Any) -> Any:
    """Copy a JSON-like value so callers never observe partial mutation."""
    return copy.deepcopy(value)


def _child(container: Any, token: Token, path: str) -> Any:
    if isinstance(container, list):
        if not isinstance(token, int):
            raise PathWriteError(f"Cannot use key '{token}' on a list in '{path}'")
        return container[token] if 0 <= token < len(container) else MISSING
    if isinstance(container, dict):
        key = str(token) if isinstance(token, int) else token
        return container.get(key, MISSING)
    raise PathWriteError(f"Cannot traverse '{path}': not an object")


def _assign(container: Any, token: Token, value: Any, path: str) -> None:
    if isinstance(container, list):
        if not isinstance(token, int):
            raise PathWriteError(f"Cannot use key '{token}' on a list in '{path}'")
        while len(container) <= token:
            container.append(None)
        container[token] = value
    elif isinstance(container, dict):
        container[str(token) if isinstance(token, int) else token] = value
    else:
        raise PathWriteError(f"Cannot write '{path}': parent is not an object")
