"""Human-friendly output formatter - converts plans and dispatch results to readable text."""

import json
import os
from typing import Any, List, Optional, Tuple
from ..dispatch.models import DispatchMode, DispatchResult, OutcomeStatus
from ..plan.models import Action, FieldDelta, Plan


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("GCPTOOLS_ASCII", "").lower() in ("1", "true", "yes")


def _symbols(ascii_mode: bool) -> dict:
    if ascii_mode:
        return {"ok": "[OK]", "plan": "*", "warn": "[!]", "fail": "[X]", "skip": "[-]", "arrow": "->", "bullet": "*"}
    return {"ok": "✔", "plan": "\U0001f4cb", "warn": "⚠️ ", "fail": "✖", "skip": "–", "arrow": "→", "bullet": "•"}


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "=" * width
    return [h, f" {title}", h]


def _display(value: Any) -> str:
    if value is None or value == "":
        return "(none)"
    if isinstance(value, dict):
        return ",".join(f"{k}={v}" for k, v in sorted(value.items())) or "(none)"
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(sorted(str(v) for v in value)) or "(none)"
    return str(value)


def format_current_state(rows: List[Tuple[str, str]]) -> List[str]:
    """Label/value rows, aligned."""
    if not rows:
        return []
    width = max(len(label) for label, _ in rows)
    return [f" {label:<{width}} : {value}" for label, value in rows]


def format_deltas(deltas: List[FieldDelta], ascii_mode: bool = False) -> List[str]:
    """Changed fields as ``field: current -> desired``."""
    s = _symbols(ascii_mode)
    changed = [d for d in deltas if d.differs]
    return [f" {d.field}: {_display(d.current)} {s['arrow']} {_display(d.desired)}" for d in changed]


def format_actions(actions: List[Action]) -> List[str]:
    lines = []
    for index, action in enumerate(actions, 1):
        lines.append(f" {index}. {action.description}")
        for command in action.commands:
            lines.append(f"    $ {command.render()}")
    return lines


def format_plan(
    plan: Plan,
    title: str = "",
    current: Optional[List[Tuple[str, str]]] = None,
    ascii_mode: Optional[bool] = None,
) -> str:
    """
    Format a plan for the terminal.
    
    Args:
        plan: Plan to show
        title: Tool title for the header
        current: Optional (label, value) rows describing current state
        ascii_mode: Force ASCII symbols (defaults to GCPTOOLS_ASCII)
        
    Returns:
        Multi-line string
    """
    ascii_mode = _use_ascii(ascii_mode)
    s = _symbols(ascii_mode)
    ident = plan.identity
    lines = _section(title or f"{ident.kind} plan")
    lines += format_current_state([
        ("Project", ident.project),
        ("Location", ident.location),
        ("Parent", ident.parent),
        ("Name", ident.name),
    ])
    
    if current:
        lines += ["", " Current state"] + format_current_state(current)
    
    changes = format_deltas(plan.deltas, ascii_mode)
    if changes:
        lines += ["", " Changes"] + changes
    
    for diagnostic in plan.diagnostics:
        lines.append(f"{s['warn']} {diagnostic}")
    
    lines += [""] + _section(f"{s['plan']} Planned Actions (MINIMAL)")
    if plan.is_noop:
        lines.append(f"{s['ok']} Nothing to change")
    else:
        lines += format_actions(plan.minimal)
    lines.append("")
    return "\n".join(lines)


def format_dispatch_result(result: DispatchResult, ascii_mode: Optional[bool] = None) -> str:
    """Summarise a dispatch result."""
    ascii_mode = _use_ascii(ascii_mode)
    s = _symbols(ascii_mode)
    
    if result.mode != DispatchMode.EXECUTE:
        variant = "FULL" if result.mode == DispatchMode.EMIT_FULL else "MINIMAL"
        return f"{s['ok']} {variant} script created: {result.script_path}\n  Run with: bash {result.script_path}"
    
    if not result.outcomes:
        return f"{s['ok']} Nothing to change"
    
    marks = {
        OutcomeStatus.SUCCEEDED: s["ok"],
        OutcomeStatus.FAILED: s["fail"],
        OutcomeStatus.NOT_ATTEMPTED: s["skip"],
    }
    lines = [f" {marks[o.status]} {o.action.description}" for o in result.outcomes]
    lines.append("")
    lines.append(
        f"{result.succeeded} succeeded, {result.failed} failed, {result.not_attempted} not attempted"
    )
    if result.error:
        lines.append(result.error)
    return "\n".join(lines)


def format_plan_json(plan: Plan, result: Optional[DispatchResult] = None) -> str:
    """Plan (and optional dispatch result) as indented JSON."""
    data = {"plan": plan.model_dump(mode="json")}
    if result is not None:
        data["result"] = result.model_dump(mode="json")
        data["result"]["counts"] = {
            "succeeded": result.succeeded,
            "failed": result.failed,
            "not_attempted": result.not_attempted,
        }
    return json.dumps(data, indent=2)
