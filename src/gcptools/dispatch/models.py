"""Pydantic models for dispatch modes and results."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from ..plan.models import Action


class DispatchMode(str, Enum):
    """How a plan is carried out."""
    EXECUTE = "execute"
    EMIT_MINIMAL = "minimal"
    EMIT_FULL = "full"
    
    @classmethod
    def from_choice(cls, choice: str) -> "DispatchMode":
        """Map an operator answer (``y``/``n``/``f`` or a mode value) to a mode."""
        value = (choice or "").strip().lower()
        letters = {"y": cls.EXECUTE, "n": cls.EMIT_MINIMAL, "f": cls.EMIT_FULL}
        if value in letters:
            return letters[value]
        return cls(value)


class DispatchStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    NOT_ATTEMPTED = "NOT_ATTEMPTED"


class ActionOutcome(BaseModel):
    """What happened to one action."""
    action: Action
    status: OutcomeStatus = OutcomeStatus.NOT_ATTEMPTED
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""


class DispatchResult(BaseModel):
    """Result of dispatching a plan."""
    mode: DispatchMode
    status: DispatchStatus = DispatchStatus.SUCCEEDED
    outcomes: List[ActionOutcome] = Field(default_factory=list)
    script_path: Optional[str] = Field(None, description="Generated script, for EMIT modes")
    error: Optional[str] = None
    
    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)
    
    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCEEDED)
    
    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)
    
    @property
    def not_attempted(self) -> int:
        return self._count(OutcomeStatus.NOT_ATTEMPTED)
    
    @property
    def ok(self) -> bool:
        return self.status == DispatchStatus.SUCCEEDED
