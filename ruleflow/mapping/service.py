"""Value mapper - resolves ValueRefs and applies transforms entry by entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from ruleflow.conditions.evaluator import context_document
from ruleflow.core.errors import RuleflowError, ValueRefError
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.paths import MISSING, deep_copy, get_path
from .schemas import MappingSource
from .transforms import apply_transform

logger = logging.getLogger(__name__)

LITERAL_PREFIX = "literal:"
DATA_PREFIX = "data."
CONTEXT_PREFIX = "context."
RESPONSE_PREFIX = "response."


@dataclass
class MappingResult:
    """Resolved values keyed by mapping key, plus per-entry errors."""

    values: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def resolve_ref(
    ref: str,
    data: dict[str, Any],
    context: ExecutionContext | dict[str, Any],
    response: Any = MISSING,
) -> Any:
    """Resolve a ValueRef; returns ``MISSING`` when the path is absent.

    Without a ``response`` the ref is resolved for a request: bare paths
    read from data and ``response.*`` is an error. With a response, bare
    paths read from the response body.
    """
    if ref.startswith(LITERAL_PREFIX):
        return ref[len(LITERAL_PREFIX):]
    if ref.startswith(DATA_PREFIX):
        return get_path(data, ref[len(DATA_PREFIX):])
    if ref.startswith(CONTEXT_PREFIX):
        return get_path(context_document(context), ref[len(CONTEXT_PREFIX):])

    in_response = response is not MISSING
    if ref == "response" or ref.startswith(RESPONSE_PREFIX):
        if not in_response:
            raise ValueRefError(f"'{ref}' can only be used in a response map")
        if ref == "response":
            return response
        return get_path(response, ref[len(RESPONSE_PREFIX):])
    return get_path(response if in_response else data, ref)


def map_entries(
    entries: Mapping[str, MappingSource] | None,
    data: dict[str, Any],
    context: ExecutionContext | dict[str, Any],
    response: Any = MISSING,
) -> MappingResult:
    """Resolve every entry of a request or response map.

    An absent source falls back to ``default`` or is omitted. An entry whose
    ref or transform fails is omitted and its error collected; the other
    entries still resolve.
    """
    result = MappingResult()
    if not entries:
        return result

    context_doc = context_document(context)
    for key, source in entries.items():
        try:
            value = resolve_ref(source.from_, data, context_doc, response)
            if value is MISSING and source.has_default:
                value = deep_copy(source.default)
            if source.transform:
                value = apply_transform(source.transform, value)
        except RuleflowError as e:
            logger.warning("Mapping entry '%s' failed: %s", key, e)
            result.errors.append(f"{key}: {e}")
            continue
        if value is not MISSING:
            result.values[key] = value
    return result
