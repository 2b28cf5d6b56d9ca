"""Run lifecycle state machine."""

from enum import Enum
from typing import Dict, FrozenSet, List
from ..utils.errors import GcpToolsError
from ..utils.logging import get_logger

logger = get_logger("dispatch.lifecycle")


class RunPhase(str, Enum):
    PARSED = "PARSED"
    STATE_FETCHED = "STATE_FETCHED"
    PLANNED = "PLANNED"
    EXECUTED = "EXECUTED"
    SCRIPT_EMITTED = "SCRIPT_EMITTED"
    DONE = "DONE"
    FAILED = "FAILED"


TRANSITIONS: Dict[RunPhase, FrozenSet[RunPhase]] = {
    RunPhase.PARSED: frozenset({RunPhase.STATE_FETCHED}),
    RunPhase.STATE_FETCHED: frozenset({RunPhase.PLANNED, RunPhase.DONE, RunPhase.FAILED}),
    RunPhase.PLANNED: frozenset({RunPhase.EXECUTED, RunPhase.SCRIPT_EMITTED, RunPhase.DONE, RunPhase.FAILED}),
    RunPhase.EXECUTED: frozenset({RunPhase.DONE, RunPhase.FAILED}),
    RunPhase.SCRIPT_EMITTED: frozenset({RunPhase.DONE}),
    RunPhase.DONE: frozenset(),
    RunPhase.FAILED: frozenset(),
}


class RunLifecycle:
    """
    Tracks one run: parsed -> state fetched -> planned -> executed or
    script emitted -> done.
    
    STATE_FETCHED and PLANNED may go straight to DONE when the operator
    aborts at a prompt or only asked to see the plan.
    """
    
    def __init__(self):
        self.phase = RunPhase.PARSED
        self.history: List[RunPhase] = [RunPhase.PARSED]
    
    def advance(self, phase: RunPhase) -> RunPhase:
        """
        Move to phase.
        
        Raises:
            GcpToolsError: If the transition is not allowed
        """
        if phase not in TRANSITIONS[self.phase]:
            raise GcpToolsError(f"Illegal run transition: {self.phase.value} -> {phase.value}")
        logger.debug(f"Run phase {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)
        return phase
    
    @property
    def finished(self) -> bool:
        return self.phase in (RunPhase.DONE, RunPhase.FAILED)
