"""Setup validation of flow, rule set, API mapping and UI schema documents.

Structural checks come from the pydantic models; the checks here cover what
a model cannot see on its own: references between states, path syntax,
operator and transform names, and links between documents.

Only structural problems are errors. Path, operator, depth, ValueRef and
transform problems are warnings: at step time they are isolated per rule or
per mapping entry and recorded in the trace.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from ruleflow.api_orchestrator.schemas import ApiMapping
from ruleflow.conditions.evaluator import DEFAULT_MAX_DEPTH, OPERATORS
from ruleflow.conditions.schemas import (
    AllCondition,
    AnyCondition,
    CompareCondition,
    Condition,
    NotCondition,
    PathOperand,
    ValueOperand,
)
from ruleflow.conditions.values import VALUE_TRANSFORMS
from ruleflow.core.errors import DocumentValidationError, PathSyntaxError, TransformError
from ruleflow.core.paths import parse_path
from ruleflow.flow.schemas import FlowSchema
from ruleflow.mapping.schemas import MappingSource
from ruleflow.mapping.service import LITERAL_PREFIX, RESPONSE_PREFIX
from ruleflow.mapping.transforms import TRANSFORMS, parse_transform
from ruleflow.rules.schemas import (
    AddItemAction,
    MapFieldAction,
    RemoveFieldAction,
    Rule,
    RuleSet,
    SetContextAction,
    SetFieldAction,
)
from .schemas import Severity, ValidationIssue, ValidationResult

ModelT = TypeVar("ModelT", bound=BaseModel)


def _issue(path: str, message: str, severity: Severity = "error") -> ValidationIssue:
    return ValidationIssue(path=path, message=message, severity=severity)


def _join(prefix: str, path: str) -> str:
    if not prefix:
        return path
    return f"{prefix}.{path}" if path else prefix


def _coerce(
    model: type[ModelT], document: Any, prefix: str = ""
) -> tuple[ModelT | None, list[ValidationIssue]]:
    """Parse a raw document into ``model``, turning pydantic errors into issues."""
    if isinstance(document, model):
        return document, []
    try:
        return model.model_validate(document), []
    except ValidationError as e:
        return None, [
            _issue(_join(prefix, ".".join(str(part) for part in error["loc"])), error["msg"])
            for error in e.errors()
        ]


# =============================================================================
# Paths, Conditions, Values
# =============================================================================


def check_path(path: str, where: str, prefixes: Iterable[str] = ("data.", "context.")) -> list[ValidationIssue]:
    """Check that a path parses once its target prefix is removed."""
    for prefix in prefixes:
        if path.startswith(prefix):
            path = path[len(prefix):]
            break
    try:
        parse_path(path)
    except PathSyntaxError as e:
        return [_issue(where, str(e), "warning")]
    return []


def check_dynamic_value(value: Any, where: str) -> list[ValidationIssue]:
    """Check ``$path`` references and ``$transform`` names inside a value."""
    if not isinstance(value, dict):
        return []
    if isinstance(value.get("$path"), str):
        return check_path(value["$path"], _join(where, "$path"))
    if isinstance(value.get("$transform"), str):
        issues = []
        if value["$transform"] not in VALUE_TRANSFORMS:
            issues.append(
                _issue(_join(where, "$transform"), f"Unknown value transform: {value['$transform']}", "warning")
            )
        for index, arg in enumerate(value.get("args") or []):
            issues.extend(check_dynamic_value(arg, _join(where, f"args[{index}]")))
        return issues
    return []


def check_condition(
    condition: Condition, where: str, max_depth: int = DEFAULT_MAX_DEPTH, depth: int = 0
) -> list[ValidationIssue]:
    """Walk a condition tree checking depth, operators and operand paths."""
    if depth > max_depth:
        return [_issue(where, f"Condition nested deeper than {max_depth}", "warning")]

    issues: list[ValidationIssue] = []
    if isinstance(condition, AllCondition):
        for index, child in enumerate(condition.all):
            issues.extend(check_condition(child, _join(where, f"all[{index}]"), max_depth, depth + 1))
    elif isinstance(condition, AnyCondition):
        for index, child in enumerate(condition.any):
            issues.extend(check_condition(child, _join(where, f"any[{index}]"), max_depth, depth + 1))
    elif isinstance(condition, NotCondition):
        issues.extend(check_condition(condition.not_, _join(where, "not"), max_depth, depth + 1))
    elif isinstance(condition, CompareCondition):
        if condition.op not in OPERATORS:
            issues.append(_issue(_join(where, "op"), f"Unknown operator: {condition.op}", "warning"))
        if condition.right is None and condition.op not in ("exists",):
            issues.append(
                _issue(_join(where, "right"), f"Operator '{condition.op}' needs a right operand", "warning")
            )
        for side in ("left", "right"):
            operand = getattr(condition, side)
            if isinstance(operand, PathOperand):
                issues.extend(check_path(operand.path, _join(where, f"{side}.path")))
            elif isinstance(operand, ValueOperand):
                issues.extend(check_dynamic_value(operand.value, _join(where, f"{side}.value")))
    return issues


# =============================================================================
# Flow
# =============================================================================


def validate_flow(
    flow: FlowSchema | Mapping[str, Any],
    api_mappings_by_id: Mapping[str, Any] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ValidationResult:
    """Check state references, guards and (optionally) API links of a flow."""
    model, issues = _coerce(FlowSchema, flow)
    if model is None:
        return ValidationResult.from_issues(issues)

    if model.initial_state not in model.states:
        issues.append(_issue("initialState", f"Initial state '{model.initial_state}' is not defined"))

    for state_id, state in model.states.items():
        if not state.ui_page_id:
            issues.append(_issue(f"states.{state_id}.uiPageId", "uiPageId must not be empty"))
        for event, transition in state.on.items():
            where = f"states.{state_id}.on.{event}"
            if transition.to not in model.states:
                issues.append(_issue(f"{where}.to", f"Transition target '{transition.to}' is not defined"))
            if transition.guard is not None:
                issues.extend(check_condition(transition.guard, f"{where}.guard", max_depth))
            if (
                transition.api_call
                and api_mappings_by_id is not None
                and transition.api_call.api_id not in api_mappings_by_id
            ):
                issues.append(
                    _issue(
                        f"{where}.apiCall.apiId",
                        f"No API mapping for '{transition.api_call.api_id}'",
                        "warning",
                    )
                )

    return ValidationResult.from_issues(issues)


# =============================================================================
# Rules
# =============================================================================


def _check_action_paths(action: Any, where: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if isinstance(action, SetFieldAction):
        issues.extend(check_path(action.path, f"{where}.path", ("data.",)))
        issues.extend(check_dynamic_value(action.value, f"{where}.value"))
    elif isinstance(action, SetContextAction):
        issues.extend(check_path(action.path, f"{where}.path", ("context.",)))
        issues.extend(check_dynamic_value(action.value, f"{where}.value"))
    elif isinstance(action, (RemoveFieldAction, AddItemAction)):
        issues.extend(check_path(action.path, f"{where}.path"))
        if isinstance(action, AddItemAction):
            issues.extend(check_dynamic_value(action.value, f"{where}.value"))
    elif isinstance(action, MapFieldAction):
        issues.extend(check_path(action.from_, f"{where}.from"))
        issues.extend(check_path(action.to, f"{where}.to"))
    return issues


def validate_rule_set(
    rules: RuleSet | Iterable[Rule] | Mapping[str, Any],
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_rules: int | None = None,
) -> ValidationResult:
    """Check rule id uniqueness, conditions and action paths."""
    if isinstance(rules, (RuleSet, Mapping)):
        model, issues = _coerce(RuleSet, rules)
    else:
        model, issues = _coerce(RuleSet, {"version": "runtime", "rules": list(rules)})
    if model is None:
        return ValidationResult.from_issues(issues)

    counts = Counter(rule.rule_id for rule in model.rules)
    for rule_id, count in counts.items():
        if count > 1:
            issues.append(_issue(f"rules[{rule_id}]", f"Duplicate ruleId '{rule_id}' ({count} rules)"))
    if max_rules is not None and len(model.rules) > max_rules:
        issues.append(
            _issue("rules", f"{len(model.rules)} rules exceed the limit of {max_rules}", "warning")
        )

    for index, rule in enumerate(model.rules):
        where = f"rules[{index}]"
        if not rule.rule_id:
            issues.append(_issue(f"{where}.ruleId", "ruleId must not be empty"))
        issues.extend(check_condition(rule.when, f"{where}.when", max_depth))
        for position, action in enumerate(rule.actions):
            issues.extend(_check_action_paths(action, f"{where}.actions[{position}]"))

    return ValidationResult.from_issues(issues)


# =============================================================================
# API Mappings
# =============================================================================


def _check_source(source: MappingSource, where: str, response: bool) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    ref = source.from_
    if not ref:
        issues.append(_issue(f"{where}.from", "ValueRef must not be empty", "warning"))
    elif ref.startswith(RESPONSE_PREFIX) or ref == "response":
        if not response:
            issues.append(_issue(f"{where}.from", f"'{ref}' can only be used in a response map", "warning"))
        elif ref != "response":
            issues.extend(check_path(ref, f"{where}.from", (RESPONSE_PREFIX,)))
    elif not ref.startswith(LITERAL_PREFIX):
        issues.extend(check_path(ref, f"{where}.from"))

    if source.transform:
        try:
            name, _ = parse_transform(source.transform)
        except TransformError as e:
            issues.append(_issue(f"{where}.transform", str(e), "warning"))
        else:
            if name not in TRANSFORMS:
                issues.append(_issue(f"{where}.transform", f"Unsupported transform: {name}", "warning"))
    return issues


def validate_api_mapping(mapping: ApiMapping | Mapping[str, Any]) -> ValidationResult:
    """Check endpoint, ValueRefs, transforms and response target paths."""
    model, issues = _coerce(ApiMapping, mapping)
    if model is None:
        return ValidationResult.from_issues(issues)

    if not model.endpoint.strip():
        issues.append(_issue("endpoint", "endpoint must not be empty"))
    if model.method == "GET" and model.request_map.body:
        issues.append(_issue("requestMap.body", "GET requests are sent without a body", "warning"))

    for part in ("query", "headers", "body"):
        for key, source in (getattr(model.request_map, part) or {}).items():
            issues.extend(_check_source(source, f"requestMap.{part}.{key}", response=False))

    for target in ("data", "context"):
        for key, source in (getattr(model.response_map, target) or {}).items():
            where = f"responseMap.{target}.{key}"
            issues.extend(check_path(key, where, (f"{target}.",)))
            issues.extend(_check_source(source, where, response=True))

    return ValidationResult.from_issues(issues)


# =============================================================================
# UI Schemas & Bundles
# =============================================================================


def validate_ui_schema(schema: Any, page_id: str | None = None) -> ValidationResult:
    """UI schemas are opaque to the engine; only their page id is checked."""
    if not isinstance(schema, Mapping):
        return ValidationResult.from_issues([_issue("", "UI schema must be an object")])
    issues: list[ValidationIssue] = []
    schema_page_id = schema.get("pageId")
    if not isinstance(schema_page_id, str) or not schema_page_id:
        issues.append(_issue("pageId", "pageId must be a non-empty string"))
    elif page_id is not None and schema_page_id != page_id:
        issues.append(
            _issue("pageId", f"pageId '{schema_page_id}' does not match key '{page_id}'", "warning")
        )
    return ValidationResult.from_issues(issues)


def _prefixed(result: ValidationResult, prefix: str) -> list[ValidationIssue]:
    return [
        issue.model_copy(update={"path": _join(prefix, issue.path)}) for issue in result.issues
    ]


def validate_bundle(
    flow: FlowSchema | Mapping[str, Any],
    rules: RuleSet | Iterable[Rule] | Mapping[str, Any],
    api_mappings_by_id: Mapping[str, Any] | None = None,
    ui_schemas_by_id: Mapping[str, Any] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_rules: int | None = None,
) -> ValidationResult:
    """Validate every document of an application and the links between them."""
    api_mappings_by_id = api_mappings_by_id or {}
    issues = _prefixed(validate_flow(flow, api_mappings_by_id, max_depth), "flow")
    issues.extend(_prefixed(validate_rule_set(rules, max_depth, max_rules), "rules"))

    for api_id, mapping in api_mappings_by_id.items():
        where = f"apiMappings.{api_id}"
        result = validate_api_mapping(mapping)
        issues.extend(_prefixed(result, where))
        declared = mapping.api_id if isinstance(mapping, ApiMapping) else (
            mapping.get("apiId") if isinstance(mapping, Mapping) else None
        )
        if declared is not None and declared != api_id:
            issues.append(_issue(f"{where}.apiId", f"apiId '{declared}' does not match key '{api_id}'", "warning"))

    if ui_schemas_by_id is not None:
        for page_id, schema in ui_schemas_by_id.items():
            issues.extend(_prefixed(validate_ui_schema(schema, page_id), f"uiSchemas.{page_id}"))
        flow_model, _ = _coerce(FlowSchema, flow)
        if flow_model is not None:
            for state_id, state in flow_model.states.items():
                if state.ui_page_id not in ui_schemas_by_id:
                    issues.append(
                        _issue(
                            f"flow.states.{state_id}.uiPageId",
                            f"No UI schema for page '{state.ui_page_id}'",
                            "warning",
                        )
                    )

    return ValidationResult.from_issues(issues)


# =============================================================================
# Assertions
# =============================================================================


def raise_for_issues(result: ValidationResult) -> ValidationResult:
    """Raise ``DocumentValidationError`` when the result holds errors."""
    if not result.valid:
        raise DocumentValidationError(result.errors)
    return result


def assert_flow(flow: FlowSchema | Mapping[str, Any], **kwargs: Any) -> ValidationResult:
    return raise_for_issues(validate_flow(flow, **kwargs))


def assert_rule_set(rules: RuleSet | Iterable[Rule] | Mapping[str, Any], **kwargs: Any) -> ValidationResult:
    return raise_for_issues(validate_rule_set(rules, **kwargs))


def assert_api_mapping(mapping: ApiMapping | Mapping[str, Any]) -> ValidationResult:
    return raise_for_issues(validate_api_mapping(mapping))


def assert_bundle(
    flow: FlowSchema | Mapping[str, Any],
    rules: RuleSet | Iterable[Rule] | Mapping[str, Any],
    api_mappings_by_id: Mapping[str, Any] | None = None,
    ui_schemas_by_id: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> ValidationResult:
    return raise_for_issues(validate_bundle(flow, rules, api_mappings_by_id, ui_schemas_by_id, **kwargs))
