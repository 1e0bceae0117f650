"""Core ontology types shared by every engine phase."""

from .context import ExecutionContext
from .types import DocumentModel, JSONObject, JSONValue

__all__ = [
    "ExecutionContext",
    "DocumentModel",
    "JSONObject",
    "JSONValue",
]
