"""Descriptor-table driven plan builder."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from .comparators import compare_field
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
from .ordering import order_actions
from ..locator.models import ResourceIdentity
from ..utils.errors import GcpToolsError
from ..utils.logging import get_logger

logger = get_logger("plan.builder")


class _Sentinel:
    def __init__(self, name: str):
        self.name = name
    
    def __repr__(self) -> str:
        return self.name


KEEP = _Sentinel("KEEP")
UNSET = _Sentinel("UNSET")

# A factory returns (description, commands), or None when the action does not apply
ActionDraft = Optional[Tuple[str, List[ShellCommand]]]


@dataclass
class ActionContext:
    """What an action factory sees: the identity, its deltas and the resolved state."""
    identity: ResourceIdentity
    deltas: List[FieldDelta]
    desired: Dict[str, Any]
    current: Optional[Dict[str, Any]]
    classification: Classification
    
    @property
    def fields(self) -> List[str]:
        return [d.field for d in self.deltas]
    
    def value(self, name: str, default: Any = None) -> Any:
        value = self.desired.get(name, default)
        return default if value is None else value
    
    def current_value(self, name: str, default: Any = None) -> Any:
        if not self.current:
            return default
        value = self.current.get(name, default)
        return default if value is None else value
    
    def includes(self, name: str) -> bool:
        return name in self.fields


@dataclass(frozen=True)
class ActionTemplate:
    """
    How one group of fields is reconciled.
    
    ``required`` builds the minimal-plan action from the differing fields;
    ``declarative`` builds the full-plan action from every declared field and
    defaults to ``required``.
    """
    key: str
    tier: ActionTier
    required: Callable[[ActionContext], ActionDraft]
    declarative: Optional[Callable[[ActionContext], ActionDraft]] = None
    depends_on: Tuple[str, ...] = ()
    required_idempotency: Idempotency = Idempotency.SAFE_REPEAT
    declarative_idempotency: Idempotency = Idempotency.SAFE_REPEAT


@dataclass(frozen=True)
class FieldSpec:
    """One row of a descriptor table: a tracked field, its comparator and its action template."""
    name: str
    comparator: Comparator
    template: ActionTemplate
    normalize: Optional[Callable[[Any], Any]] = field(default=None, compare=False)


def resolve_desired(
    fields: Sequence[FieldSpec],
    current: Optional[Dict[str, Any]],
    desired: Dict[str, Any],
) -> Tuple[Dict[str, Any], Dict[str, bool]]:
    """
    Resolve operator input against the baseline.
    
    An omitted field or KEEP means "keep the current value", UNSET clears it.
    Keys that are not tracked fields pass through for the factories.
    
    Returns:
        (resolved values, explicit flag per tracked field)
    """
    resolved = {k: v for k, v in desired.items() if v is not KEEP and v is not UNSET}
    explicit: Dict[str, bool] = {}
    for spec in fields:
        value = desired.get(spec.name, KEEP)
        if value is KEEP:
            resolved[spec.name] = (current or {}).get(spec.name)
            explicit[spec.name] = False
        elif value is UNSET:
            resolved[spec.name] = None
            explicit[spec.name] = True
        else:
            resolved[spec.name] = value
            explicit[spec.name] = True
    return resolved, explicit


def _declares(delta: FieldDelta) -> bool:
    """Presence fields only declare something when they are wanted."""
    if delta.comparator == Comparator.PRESENCE:
        return bool(delta.desired)
    return True


def _materialize(
    template: ActionTemplate,
    classification: Classification,
    ctx: ActionContext,
) -> Optional[Action]:
    if classification == Classification.REQUIRED:
        factory = template.required
        idempotency = template.required_idempotency
    else:
        factory = template.declarative or template.required
        idempotency = template.declarative_idempotency
    
    draft = factory(ctx)
    if draft is None:
        return None
    description, commands = draft
    return Action(
        key=template.key,
        description=description,
        fields=ctx.fields,
        commands=commands,
        tier=template.tier,
        classification=classification,
        idempotency=idempotency,
        depends_on=list(template.depends_on),
    )


def build_plan(
    identity: ResourceIdentity,
    current: Optional[Dict[str, Any]],
    desired: Dict[str, Any],
    fields: Sequence[FieldSpec],
    mode: BuildMode = BuildMode.RECONCILE,
    diagnostics: Optional[List[str]] = None,
) -> Plan:
    """
    Compare desired against current state and derive minimal and full plans.
    
    Args:
        identity: Complete resource identity
        current: Current snapshot, or None when the resource does not exist
        desired: Desired values keyed by field name (omitted = keep current)
        fields: Descriptor table of tracked fields
        mode: RECONCILE compares against ``current``; CLONE compares against absence
        diagnostics: Non-fatal notes to surface with the plan
        
    Returns:
        Plan with ordered minimal (REQUIRED) and full (DECLARATIVE) actions
        
    Raises:
        MissingIdentityFieldError: If the identity is incomplete
        InvalidResizeError: If a growth-only field is not grown
        PlanOrderError: If actions cannot be ordered
    """
    identity.require_complete()
    names = [spec.name for spec in fields]
    if len(names) != len(set(names)):
        raise GcpToolsError(f"Duplicate field names in descriptor table: {names}")
    
    baseline = None if mode == BuildMode.CLONE else current
    resolved, explicit = resolve_desired(fields, baseline, desired)
    
    deltas: List[FieldDelta] = []
    groups: Dict[str, Tuple[ActionTemplate, List[FieldDelta]]] = {}
    for spec in fields:
        current_value = (baseline or {}).get(spec.name)
        delta = compare_field(
            spec.name,
            spec.comparator,
            current_value,
            resolved[spec.name],
            explicit=explicit[spec.name],
            normalize=spec.normalize,
        )
        # Comparators may coerce the desired value (e.g. "100GB" -> 100)
        resolved[spec.name] = delta.desired
        deltas.append(delta)
        template_deltas = groups.setdefault(spec.template.key, (spec.template, []))[1]
        template_deltas.append(delta)
    
    minimal: List[Action] = []
    full: List[Action] = []
    for template, template_deltas in groups.values():
        changed = [d for d in template_deltas if d.differs]
        if changed:
            ctx = ActionContext(identity, changed, resolved, baseline, Classification.REQUIRED)
            action = _materialize(template, Classification.REQUIRED, ctx)
            if action is not None:
                minimal.append(action)
        
        declared = [d for d in template_deltas if _declares(d)]
        if declared:
            ctx = ActionContext(identity, declared, resolved, baseline, Classification.DECLARATIVE)
            action = _materialize(template, Classification.DECLARATIVE, ctx)
            if action is not None:
                full.append(action)
    
    uncovered = fields_covered(minimal) - fields_covered(full)
    if uncovered:
        raise GcpToolsError(f"Full plan does not cover changed fields: {sorted(uncovered)}")
    
    plan = Plan(
        identity=identity,
        mode=mode,
        minimal=order_actions(minimal),
        full=order_actions(full),
        deltas=deltas,
        diagnostics=list(diagnostics or []),
    )
    logger.info(
        f"Built plan for {identity}: {len(plan.minimal)} required, "
        f"{len(plan.full)} declarative action(s), {len(plan.changed_deltas())} changed field(s)"
    )
    return plan
