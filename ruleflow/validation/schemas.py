"""Validation result models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from ruleflow.core.ontology.types import DocumentModel

Severity = Literal["error", "warning"]


class ValidationIssue(DocumentModel):
    """A single problem found in a document."""

    path: str = Field(..., description="Location in the document, e.g. states.start.on.next.to")
    message: str
    severity: Severity = "error"


class ValidationResult(DocumentModel):
    """Outcome of validating one or more documents."""

    valid: bool = True
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationResult:
        return cls(valid=not any(issue.severity == "error" for issue in issues), issues=issues)
