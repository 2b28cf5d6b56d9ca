"""Execution dispatcher: run a plan now or emit it as a script."""

from .models import ActionOutcome, DispatchMode, DispatchResult, DispatchStatus, OutcomeStatus
from .dispatcher import dispatch, execute_plan
from .script import emit_script, render_script, script_name
from .lifecycle import RunLifecycle, RunPhase

__all__ = [
    "ActionOutcome",
    "DispatchMode",
    "DispatchResult",
    "DispatchStatus",
    "OutcomeStatus",
    "dispatch",
    "execute_plan",
    "emit_script",
    "render_script",
    "script_name",
    "RunLifecycle",
    "RunPhase",
]
