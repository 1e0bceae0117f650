"""Step execution engine for declarative flows, rules and API mappings."""

__version__ = "0.1.0"

from ruleflow.core import (
    ExecutionContext,
    RuleflowError,
    DocumentValidationError,
    Settings,
    get_settings,
)
from ruleflow.flow import FlowSchema
from ruleflow.rules import Rule, RuleSet
from ruleflow.api_orchestrator import ApiMapping, create_httpx_fetch
from ruleflow.observability import RuntimeTrace
from ruleflow.runtime import StepResult, execute_step, execute_step_sync
from ruleflow.documents import ApplicationBundle, DocumentLoader

__all__ = [
    "__version__",
    # Documents
    "ExecutionContext",
    "FlowSchema",
    "Rule",
    "RuleSet",
    "ApiMapping",
    "ApplicationBundle",
    "DocumentLoader",
    # Runtime
    "StepResult",
    "RuntimeTrace",
    "execute_step",
    "execute_step_sync",
    "create_httpx_fetch",
    # Infrastructure
    "RuleflowError",
    "DocumentValidationError",
    "Settings",
    "get_settings",
]
