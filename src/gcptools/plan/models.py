"""Pydantic models for field deltas, actions and plans."""

import shlex
from enum import Enum, IntEnum
from typing import Any, List, Optional, Set
from pydantic import BaseModel, Field
from ..locator.models import ResourceIdentity


class Comparator(str, Enum):
    """How a tracked field's current and desired values are compared."""
    EXACT = "EXACT"
    SET = "SET"
    GREATER_THAN = "GREATER_THAN"
    PRESENCE = "PRESENCE"


class Classification(str, Enum):
    """Why an action is in a plan."""
    REQUIRED = "REQUIRED"
    DECLARATIVE = "DECLARATIVE"


class Idempotency(str, Enum):
    """Whether re-running an action is harmless."""
    SAFE_REPEAT = "SAFE_REPEAT"
    STATEFUL = "STATEFUL"


class ActionTier(IntEnum):
    """Dependency tiers; lower tiers always run first."""
    CREATE = 0
    MODIFY = 1
    BIND = 2
    ANNOTATE = 3


class BuildMode(str, Enum):
    """Baseline the desired state is compared against."""
    RECONCILE = "RECONCILE"
    CLONE = "CLONE"


class ShellCommand(BaseModel):
    """
    One provider CLI invocation.
    
    ``segments`` are argv lists joined by pipes. ``skip_if`` is a shell probe;
    when it succeeds the command is skipped, which is how full scripts ignore
    resources that already exist.
    """
    segments: List[List[str]] = Field(..., min_length=1)
    skip_if: Optional[str] = Field(None, description="Shell probe that skips the command when it succeeds")
    
    @classmethod
    def of(cls, *argv: str, skip_if: Optional[str] = None) -> "ShellCommand":
        return cls(segments=[list(argv)], skip_if=skip_if)
    
    @property
    def argv(self) -> List[str]:
        """First segment, for single-command actions."""
        return self.segments[0]
    
    @property
    def is_simple(self) -> bool:
        return len(self.segments) == 1 and not self.skip_if
    
    def arguments(self) -> List[str]:
        """Every argument of every segment."""
        return [arg for segment in self.segments for arg in segment]
    
    def render(self, multiline: bool = False) -> str:
        """Render as a shell command line."""
        if multiline and len(self.segments) == 1:
            command = _render_multiline(self.segments[0])
        else:
            command = " | ".join(shlex.join(segment) for segment in self.segments)
        if self.skip_if:
            return f"{self.skip_if} >/dev/null 2>&1 || {command}"
        return command


def _render_multiline(argv: List[str]) -> str:
    """One flag per line with backslash continuations; short commands stay on one line."""
    flag_count = sum(1 for arg in argv if arg.startswith("--"))
    if flag_count < 4:
        return shlex.join(argv)
    lines: List[List[str]] = [[]]
    for arg in argv:
        if arg.startswith("--") and lines[-1]:
            lines.append([])
        lines[-1].append(shlex.quote(arg))
    return " \\\n  ".join(" ".join(line) for line in lines)


class FieldDelta(BaseModel):
    """Comparison of one tracked field."""
    field: str
    current: Any = None
    desired: Any = None
    comparator: Comparator
    explicit: bool = Field(False, description="Desired value was supplied by the operator")
    differs: bool = False


class Action(BaseModel):
    """One discrete, individually re-runnable step of a plan."""
    key: str = Field(..., description="Template key, unique within a plan")
    description: str
    fields: List[str] = Field(default_factory=list, description="Tracked fields this action reconciles")
    commands: List[ShellCommand] = Field(default_factory=list)
    tier: ActionTier = ActionTier.MODIFY
    classification: Classification = Classification.REQUIRED
    idempotency: Idempotency = Idempotency.SAFE_REPEAT
    depends_on: List[str] = Field(default_factory=list)
    
    def arguments(self) -> List[str]:
        return [arg for command in self.commands for arg in command.arguments()]


class Plan(BaseModel):
    """Minimal and full action lists for one resource identity."""
    identity: ResourceIdentity
    mode: BuildMode = BuildMode.RECONCILE
    minimal: List[Action] = Field(default_factory=list)
    full: List[Action] = Field(default_factory=list)
    deltas: List[FieldDelta] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list)
    
    @property
    def is_noop(self) -> bool:
        return not self.minimal
    
    def changed_deltas(self) -> List[FieldDelta]:
        return [d for d in self.deltas if d.differs]


def fields_covered(actions: List[Action]) -> Set[str]:
    """Union of fields reconciled by actions."""
    covered: Set[str] = set()
    for action in actions:
        covered.update(action.fields)
    return covered
