"""Plan builder: compare desired and current state, derive ordered actions."""

from .models import (
    Action,
    ActionTier,
    BuildMode,
    Classification,
    Comparator,
    FieldDelta,
    Idempotency,
    Plan,
    ShellCommand,
    fields_covered,
)
from .builder import KEEP, UNSET, ActionContext, ActionTemplate, FieldSpec, build_plan
from .ordering import order_actions

__all__ = [
    "Action",
    "ActionTier",
    "BuildMode",
    "Classification",
    "Comparator",
    "FieldDelta",
    "Idempotency",
    "Plan",
    "ShellCommand",
    "fields_covered",
    "KEEP",
    "UNSET",
    "ActionContext",
    "ActionTemplate",
    "FieldSpec",
    "build_plan",
    "order_actions",
]
