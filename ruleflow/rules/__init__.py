"""Rules domain - rule set models and the rule engine."""

from .schemas import (
    SetFieldAction,
    SetContextAction,
    RemoveFieldAction,
    AddItemAction,
    MapFieldAction,
    EmitEventAction,
    ThrowErrorAction,
    Action,
    RuleScope,
    Rule,
    RuleSet,
)
from .service import (
    DEFAULT_MAX_RULES,
    DEFAULT_TIMEOUT_MS,
    RulesResult,
    apply_rules,
    matches_scope,
    order_rules,
    rule_list,
)

__all__ = [
    # Models
    "SetFieldAction",
    "SetContextAction",
    "RemoveFieldAction",
    "AddItemAction",
    "MapFieldAction",
    "EmitEventAction",
    "ThrowErrorAction",
    "Action",
    "RuleScope",
    "Rule",
    "RuleSet",
    # Engine
    "DEFAULT_MAX_RULES",
    "DEFAULT_TIMEOUT_MS",
    "RulesResult",
    "apply_rules",
    "matches_scope",
    "order_rules",
    "rule_list",
]
