"""Flow resolver - state and transition lookup with guard evaluation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from ruleflow.conditions.evaluator import DEFAULT_MAX_DEPTH, explain_condition
from ruleflow.core.errors import ConditionDepthError
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.observability.trace import FlowReason, FlowTrace
from .schemas import FlowSchema, Transition

logger = logging.getLogger(__name__)


@dataclass
class TransitionResolution:
    """Where an event leads from a state, and why."""

    next_state_id: str
    reason: FlowReason
    trace: FlowTrace
    transition: Transition | None = None

    @property
    def api_id(self) -> str | None:
        """API mapping to call, only when the transition fired."""
        if self.reason == "ok" and self.transition and self.transition.api_call:
            return self.transition.api_call.api_id
        return None


def resolve_transition(
    flow: FlowSchema,
    state_id: str,
    event: str,
    data: dict[str, Any],
    context: ExecutionContext,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TransitionResolution:
    """Resolve ``event`` against ``state_id``.

    Reasons:
        error: unknown state, or the guard could not be evaluated.
        no_transition: the state has no entry for the event.
        guard_failed: the guard evaluated to false or raised.
        ok: the transition fires and the next state is ``transition.to``.

    The state is unchanged for every reason except ``ok``.
    """
    started = time.perf_counter()
    state = flow.states.get(state_id)
    trace = FlowTrace(
        event=event,
        from_state_id=state_id,
        to_state_id=state_id,
        ui_page_id=state.ui_page_id if state else state_id,
    )

    def finish(reason: FlowReason, transition: Transition | None = None) -> TransitionResolution:
        trace.reason = reason
        trace.duration_ms = round((time.perf_counter() - started) * 1000, 3)
        logger.debug("flow %s --%s--> %s (%s)", state_id, event, trace.to_state_id, reason)
        return TransitionResolution(
            next_state_id=trace.to_state_id,
            reason=reason,
            trace=trace,
            transition=transition,
        )

    if state is None:
        trace.error_message = f"Unknown state: {state_id}"
        return finish("error")

    transition = state.on.get(event)
    if transition is None:
        return finish("no_transition")

    if transition.guard is not None:
        try:
            outcome = explain_condition(
                transition.guard, data, context, node_id="guard", max_depth=max_depth
            )
        except ConditionDepthError as e:
            trace.error_message = str(e)
            return finish("error", transition)
        except Exception as e:
            logger.warning("Guard for %s --%s--> failed: %s", state_id, event, e)
            trace.guard_result = False
            trace.error_message = f"Guard evaluation failed: {e}"
            return finish("guard_failed", transition)

        trace.guard_result = outcome.result
        trace.guard_steps = outcome.steps
        if outcome.errors:
            trace.error_message = "; ".join(outcome.errors)
        if not outcome.result:
            return finish("guard_failed", transition)

    target = flow.states.get(transition.to)
    trace.to_state_id = transition.to
    trace.ui_page_id = target.ui_page_id if target else transition.to
    if transition.api_call:
        trace.api_id = transition.api_call.api_id
    return finish("ok", transition)
