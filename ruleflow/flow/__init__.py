"""Flow domain - flow graph models and the transition resolver."""

from .schemas import ApiCallRef, Transition, FlowState, FlowSchema
from .service import TransitionResolution, resolve_transition

__all__ = [
    "ApiCallRef",
    "Transition",
    "FlowState",
    "FlowSchema",
    "TransitionResolution",
    "resolve_transition",
]
