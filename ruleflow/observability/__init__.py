"""Observability - trace models and trace logging."""

from .trace import (
    FlowReason,
    ConditionStep,
    ConditionRead,
    FlowTrace,
    RuleError,
    RuleEvent,
    AppliedAction,
    ActionDiff,
    RulesTrace,
    ApiRequestTrace,
    ApiResponseTrace,
    ApiTrace,
    TraceContext,
    RuntimeTrace,
    utc_now_iso,
)
from .tracelog import configure_logging, log_runtime_trace, log_rules_trace, TRACE_LOGGER_NAME

__all__ = [
    # Trace models
    "FlowReason",
    "ConditionStep",
    "ConditionRead",
    "FlowTrace",
    "RuleError",
    "RuleEvent",
    "AppliedAction",
    "ActionDiff",
    "RulesTrace",
    "ApiRequestTrace",
    "ApiResponseTrace",
    "ApiTrace",
    "TraceContext",
    "RuntimeTrace",
    "utc_now_iso",
    # Logging
    "configure_logging",
    "log_runtime_trace",
    "log_rules_trace",
    "TRACE_LOGGER_NAME",
]
