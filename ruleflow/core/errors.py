"""Exception hierarchy for the step execution engine."""

from __future__ import annotations

from typing import Any


class RuleflowError(Exception):
    """Base class for all engine errors."""


class PathSyntaxError(RuleflowError):
    """A dotted path could not be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path '{path}': {reason}")


class PathWriteError(RuleflowError):
    """A value could not be written at a path (e.g. parent is not an object)."""


class ConditionDepthError(RuleflowError):
    """A condition tree is nested deeper than the configured limit."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Max condition depth exceeded: {max_depth}")


class TransformError(RuleflowError):
    """A transform could not be applied to a mapped value."""


class TransformSyntaxError(TransformError):
    """A transform expression is not of the form ``name(...)``."""

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f"Invalid transform expression: {expression}")


class ValueRefError(RuleflowError):
    """A ValueRef string cannot be resolved in the current mapping direction."""


class RuleActionError(RuleflowError):
    """Raised by a ``throwError`` rule action; stops the rule batch."""

    def __init__(self, message: str, code: str | None = None):
        self.code = code
        super().__init__(message)


class DocumentValidationError(RuleflowError):
    """One or more documents failed setup validation."""

    def __init__(self, issues: list[Any]):
        self.issues = issues
        details = "; ".join(f"{issue.path}: {issue.message}" for issue in issues)
        super().__init__(f"Document validation failed: {details}")


class DocumentLoadError(RuleflowError):
    """A document file could not be read or parsed."""
