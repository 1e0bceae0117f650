"""Rule engine - scope filtering, priority ordering and action application."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from ruleflow.conditions.evaluator import DEFAULT_MAX_DEPTH, explain_condition
from ruleflow.conditions.values import resolve_dynamic_value
from ruleflow.core.errors import RuleActionError
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.paths import MISSING, deep_copy, get_path, remove_path, set_path, strip_prefix
from ruleflow.observability.trace import (
    ActionDiff,
    AppliedAction,
    RuleError,
    RuleEvent,
    RulesTrace,
)
from ruleflow.observability.tracelog import log_rules_trace
from .schemas import (
    Action,
    AddItemAction,
    EmitEventAction,
    MapFieldAction,
    RemoveFieldAction,
    Rule,
    RuleScope,
    RuleSet,
    SetContextAction,
    SetFieldAction,
    ThrowErrorAction,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RULES = 1000
DEFAULT_TIMEOUT_MS = 100


@dataclass
class RulesResult:
    """Output of one rule batch: new data, new context and the trace."""

    data: dict[str, Any]
    context: ExecutionContext
    trace: RulesTrace


def rule_list(rules: RuleSet | Iterable[Rule]) -> list[Rule]:
    """Accept a RuleSet or a plain list of rules."""
    if isinstance(rules, RuleSet):
        return list(rules.rules)
    return list(rules)


def matches_scope(scope: RuleScope | None, context: ExecutionContext) -> bool:
    """Check whether a rule's scope admits the given context."""
    if scope is None:
        return True
    if scope.countries and context.country not in scope.countries:
        return False
    if scope.tenants and context.tenant_id not in scope.tenants:
        return False
    if scope.orgs and context.org_id not in scope.orgs:
        return False
    if scope.programs and context.program_id not in scope.programs:
        return False
    if scope.issuers and context.issuer_id not in scope.issuers:
        return False
    if scope.roles and not context.all_roles().intersection(scope.roles):
        return False
    return True


def order_rules(rules: list[Rule], context: ExecutionContext) -> list[Rule]:
    """In-scope rules by priority descending; ties keep declaration order."""
    scoped = [rule for rule in rules if matches_scope(rule.scope, context)]
    return sorted(scoped, key=lambda rule: -rule.priority)


def apply_rules(
    rules: RuleSet | Iterable[Rule],
    data: dict[str, Any],
    context: ExecutionContext,
    *,
    max_rules: int = DEFAULT_MAX_RULES,
    max_depth: int = DEFAULT_MAX_DEPTH,
    timeout_ms: int | None = DEFAULT_TIMEOUT_MS,
    mode: Literal["apply", "predicate"] = "apply",
    log_trace: bool = False,
) -> RulesResult:
    """Evaluate rules in priority order and apply the actions of matches.

    Each matching rule sees the writes of the rules applied before it. A rule
    that fails while evaluating or applying is recorded in ``trace.errors``
    and contributes no writes; the batch continues with the next rule. A
    ``throwError`` action stops the batch.

    Args:
        rules: RuleSet or list of rules.
        data: Data snapshot; never mutated.
        context: Execution context; never mutated.
        max_rules: Stop after this many rules (recorded as an error).
        max_depth: Maximum condition nesting.
        timeout_ms: Stop before the next rule once this budget is spent
            (recorded as an error). ``None`` disables the check.
        mode: ``"predicate"`` records matches without applying actions.
        log_trace: Log a trace summary when done.

    Returns:
        RulesResult with new data, a (possibly replaced) context and the trace.
    """
    started = time.perf_counter()
    trace = RulesTrace()
    work_data = deep_copy(data)
    work_context = context.to_document()
    context_changed = False

    ordered = order_rules(rule_list(rules), context)

    for index, rule in enumerate(ordered):
        if index >= max_rules:
            trace.errors.append(RuleError(message=f"Max rules limit reached: {max_rules}"))
            break
        if timeout_ms is not None and (time.perf_counter() - started) * 1000 > timeout_ms:
            trace.errors.append(RuleError(message=f"Rules evaluation timeout after {timeout_ms}ms"))
            break
        trace.rules_considered.append(rule.rule_id)

        try:
            outcome = explain_condition(
                rule.when, work_data, work_context, node_id=rule.rule_id, max_depth=max_depth
            )
            trace.condition_results[rule.rule_id] = outcome.result
            for step in outcome.steps:
                trace.condition_results[step.node] = step.result
            trace.condition_steps[rule.rule_id] = outcome.steps
            trace.reads_by_rule_id[rule.rule_id] = outcome.reads
            for message in outcome.errors:
                trace.errors.append(RuleError(rule_id=rule.rule_id, message=message))

            if not outcome.result:
                continue
            trace.rules_matched.append(rule.rule_id)
            if mode != "apply" or not rule.actions:
                continue

            batch = _ActionBatch(rule.rule_id, work_data, work_context)
            for action in rule.actions:
                batch.apply(action)
            if batch.context_changed:
                # raises on context writes that break the model
                ExecutionContext.from_document(batch.context)

            work_data, work_context = batch.data, batch.context
            context_changed = context_changed or batch.context_changed
            trace.actions_applied.extend(batch.applied)
            trace.action_diffs.extend(batch.diffs)
            trace.events.extend(batch.events)
        except RuleActionError as e:
            logger.warning("Rule %s raised: %s", rule.rule_id, e)
            trace.errors.append(RuleError(rule_id=rule.rule_id, message=str(e), code=e.code))
            break
        except Exception as e:
            logger.warning("Rule %s failed: %s", rule.rule_id, e)
            trace.errors.append(RuleError(rule_id=rule.rule_id, message=str(e)))

    updated_context = ExecutionContext.from_document(work_context) if context_changed else context
    trace.duration_ms = round((time.perf_counter() - started) * 1000, 3)
    if log_trace:
        log_rules_trace(trace)

    return RulesResult(data=work_data, context=updated_context, trace=trace)


class _ActionBatch:
    """Applies one rule's actions to staged copies so a failure leaves no writes."""

    def __init__(self, rule_id: str, data: dict[str, Any], context: dict[str, Any]):
        self.rule_id = rule_id
        self.data = deep_copy(data)
        self.context = deep_copy(context)
        self.context_changed = False
        self.applied: list[AppliedAction] = []
        self.diffs: list[ActionDiff] = []
        self.events: list[RuleEvent] = []

    def apply(self, action: Action) -> None:
        if isinstance(action, SetFieldAction):
            self._write("data", strip_prefix(action.path, "data."), action.value)
        elif isinstance(action, SetContextAction):
            self._write("context", strip_prefix(action.path, "context."), action.value)
        elif isinstance(action, RemoveFieldAction):
            target, path = _target(action.path)
            document = self._document(target)
            before = get_path(document, path)
            remove_path(document, path)
            self._diff(target, path, before, get_path(document, path))
        elif isinstance(action, AddItemAction):
            target, path = _target(action.path)
            document = self._document(target)
            before = deep_copy(get_path(document, path))
            current = get_path(document, path)
            item = deep_copy(self._resolve(action.value))
            if isinstance(current, list):
                current.append(item)
            else:
                set_path(document, path, [item])
            self._diff(target, path, before, get_path(document, path))
        elif isinstance(action, MapFieldAction):
            source_target, source_path = _target(action.from_)
            source = self.context if source_target == "context" else self.data
            value = get_path(source, source_path)
            if value is not MISSING:
                target, path = _target(action.to)
                self._write(target, path, deep_copy(value), resolve=False)
        elif isinstance(action, EmitEventAction):
            self.events.append(
                RuleEvent(rule_id=self.rule_id, event=action.event, payload=deep_copy(action.payload))
            )
        elif isinstance(action, ThrowErrorAction):
            raise RuleActionError(action.message, action.code)
        self.applied.append(
            AppliedAction(rule_id=self.rule_id, action=action.model_dump(mode="json", by_alias=True))
        )

    def _write(self, target: str, path: str, value: Any, resolve: bool = True) -> None:
        document = self._document(target)
        resolved = self._resolve(value) if resolve else value
        before = deep_copy(get_path(document, path))
        set_path(document, path, None if resolved is MISSING else deep_copy(resolved))
        self._diff(target, path, before, get_path(document, path))

    def _resolve(self, value: Any) -> Any:
        return resolve_dynamic_value(value, self.data, self.context)

    def _document(self, target: str) -> dict[str, Any]:
        if target == "context":
            self.context_changed = True
            return self.context
        return self.data

    def _diff(self, target: str, path: str, before: Any, after: Any) -> None:
        self.diffs.append(
            ActionDiff(
                rule_id=self.rule_id,
                target=target,
                path=path,
                before=None if before is MISSING else before,
                after=None if after is MISSING else deep_copy(after),
            )
        )


def _target(path: str) -> tuple[str, str]:
    if path.startswith("context."):
        return "context", path[len("context."):]
    return "data", strip_prefix(path, "data.")
