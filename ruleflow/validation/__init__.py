"""Validation domain - setup checks for flow, rule, API and UI documents."""

from .schemas import Severity, ValidationIssue, ValidationResult
from .service import (
    check_condition,
    check_dynamic_value,
    check_path,
    validate_flow,
    validate_rule_set,
    validate_api_mapping,
    validate_ui_schema,
    validate_bundle,
    raise_for_issues,
    assert_flow,
    assert_rule_set,
    assert_api_mapping,
    assert_bundle,
)

__all__ = [
    # Results
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    # Checks
    "check_condition",
    "check_dynamic_value",
    "check_path",
    "validate_flow",
    "validate_rule_set",
    "validate_api_mapping",
    "validate_ui_schema",
    "validate_bundle",
    # Assertions
    "raise_for_issues",
    "assert_flow",
    "assert_rule_set",
    "assert_api_mapping",
    "assert_bundle",
]
