"""Runtime domain - the step orchestrator and its HTTP endpoint."""

from .router import router
from .schemas import ExecuteStepRequest, ExecuteStepResponse
from .service import (
    MAX_EVENT_LENGTH,
    StepResult,
    execute_step,
    execute_step_sync,
    sanitize_event,
)

__all__ = [
    # Router
    "router",
    # Schemas
    "ExecuteStepRequest",
    "ExecuteStepResponse",
    # Service
    "MAX_EVENT_LENGTH",
    "StepResult",
    "execute_step",
    "execute_step_sync",
    "sanitize_event",
]
