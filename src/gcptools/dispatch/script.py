"""Render plans as re-runnable bash scripts."""

import os
import re
from pathlib import Path
from typing import List, Optional
from ..plan.models import Action, Plan
from ..utils.errors import GcpToolsError
from ..utils.logging import get_logger

logger = get_logger("dispatch.script")

DEFAULT_SHEBANG = "#!/usr/bin/env bash"
DEFAULT_STRICT_MODE = "set -euo pipefail"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def script_name(resource: str, variant: str) -> str:
    """``<resource>-apply-<variant>.sh`` with unsafe characters replaced."""
    slug = _UNSAFE_CHARS.sub("-", resource).strip("-") or "resource"
    return f"{slug}-apply-{variant}.sh"


def render_script(
    plan: Plan,
    actions: List[Action],
    variant: str,
    shebang: str = DEFAULT_SHEBANG,
    strict_mode: str = DEFAULT_STRICT_MODE,
) -> str:
    """
    Render actions as a bash script.
    
    Output depends only on its inputs, so the same plan always renders the
    same bytes.
    """
    identity = plan.identity
    lines = [
        shebang,
        strict_mode,
        "",
        f"# {variant} plan for {identity.kind} {identity.name}",
        f"# project:  {identity.project}",
        f"# location: {identity.location}",
        f"# parent:   {identity.parent}",
    ]
    for diagnostic in plan.diagnostics:
        lines.append(f"# WARNING: {diagnostic}")
    lines.append("")
    
    if not actions:
        lines.append("# Nothing to change")
        lines.append("")
    for action in actions:
        lines.append(f"# {action.description}")
        for command in action.commands:
            lines.append(command.render(multiline=True))
        lines.append("")
    
    return "\n".join(lines)


def write_script(content: str, output_dir: str, filename: str) -> Path:
    """
    Write an executable script.
    
    Raises:
        GcpToolsError: If the file cannot be written
    """
    directory = Path(output_dir)
    path = directory / filename
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
        os.chmod(path, 0o755)
    except OSError as e:
        raise GcpToolsError(f"Could not write script {path}: {e}")
    logger.info(f"Wrote script {path}")
    return path


def emit_script(
    plan: Plan,
    full: bool,
    output_dir: str = ".",
    resource: Optional[str] = None,
    shebang: str = DEFAULT_SHEBANG,
    strict_mode: str = DEFAULT_STRICT_MODE,
) -> Path:
    """Render and write the minimal or full variant of a plan."""
    variant = "full" if full else "minimal"
    actions = plan.full if full else plan.minimal
    content = render_script(plan, actions, variant, shebang=shebang, strict_mode=strict_mode)
    return write_script(content, output_dir, script_name(resource or plan.identity.name, variant))
