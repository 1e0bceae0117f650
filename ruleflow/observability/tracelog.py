"""Logging setup and structured trace logging."""

from __future__ import annotations

import json
import logging

from .trace import RulesTrace, RuntimeTrace

TRACE_LOGGER_NAME = "ruleflow.trace"

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a stream handler on the ``ruleflow`` logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger("ruleflow")
    root.setLevel(level if isinstance(level, int) else level.upper())
    if not any(getattr(handler, "_ruleflow", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._ruleflow = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def log_runtime_trace(trace: RuntimeTrace, logger: logging.Logger | None = None) -> None:
    """Emit a runtime trace as one JSON line; WARNING when it holds errors."""
    logger = logger or logging.getLogger(TRACE_LOGGER_NAME)
    level = logging.WARNING if trace.has_errors else logging.INFO
    logger.log(
        level,
        "runtime.trace %s",
        json.dumps(trace.to_json_dict(), sort_keys=True, default=str),
    )


def log_rules_trace(trace: RulesTrace, logger: logging.Logger | None = None) -> None:
    """Emit a rules trace summary as one JSON line."""
    logger = logger or logging.getLogger(TRACE_LOGGER_NAME)
    summary = {
        "considered": len(trace.rules_considered),
        "matched": trace.rules_matched,
        "errors": [error.to_json_dict() for error in trace.errors],
        "durationMs": trace.duration_ms,
    }
    level = logging.WARNING if trace.errors else logging.DEBUG
    logger.log(level, "rules.trace %s", json.dumps(summary, sort_keys=True))
