"""Core infrastructure - configuration, errors, paths and ontology."""

from .config import Settings, get_settings
from .errors import (
    RuleflowError,
    PathSyntaxError,
    PathWriteError,
    ConditionDepthError,
    TransformError,
    TransformSyntaxError,
    ValueRefError,
    RuleActionError,
    DocumentValidationError,
    DocumentLoadError,
)
from .ontology import ExecutionContext, DocumentModel, JSONObject, JSONValue
from .paths import MISSING, parse_path, get_path, set_path, remove_path, deep_copy, strip_prefix

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "RuleflowError",
    "PathSyntaxError",
    "PathWriteError",
    "ConditionDepthError",
    "TransformError",
    "TransformSyntaxError",
    "ValueRefError",
    "RuleActionError",
    "DocumentValidationError",
    "DocumentLoadError",
    # Ontology
    "ExecutionContext",
    "DocumentModel",
    "JSONObject",
    "JSONValue",
    # Paths
    "MISSING",
    "parse_path",
    "get_path",
    "set_path",
    "remove_path",
    "deep_copy",
    "strip_prefix",
]
