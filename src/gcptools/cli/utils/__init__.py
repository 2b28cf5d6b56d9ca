"""CLI utilities package."""

import sys
from typing import Any, Callable, Dict, Optional
import click
from ...config import ToolSettings, load_settings
from ...dispatch import DispatchMode, RunLifecycle, RunPhase, dispatch
from ...operations.base import Operation
from ...presentation.human_formatter import format_dispatch_result, format_plan, format_plan_json
from ...state.provider import StateProvider
from ...state.runner import CommandRunner
from ...utils.errors import GcpToolsError
from ...utils.logging import get_logger
from ..prompts import ClickDecisionPort, DecisionPort
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")

ABORT_MESSAGE = "No value entered. Exiting without making changes or generating a script."


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    error = f"❌ Error: {message}"
    if suggestion:
        error += f"\n💡 Tip: {suggestion}"
    return error


def plan_options(f):
    """Options shared by every plan-producing command."""
    f = click.option('--output-dir', type=click.Path(file_okay=False),
                     help='Directory for generated scripts (default from config)')(f)
    f = click.option('--json', 'as_json', is_flag=True, help='Print the plan as JSON')(f)
    f = click.option('--dry-run', is_flag=True, help='Print the plan and exit without executing or writing a script')(f)
    f = click.option('--mode', type=click.Choice([m.value for m in DispatchMode]),
                     help='Skip the prompt: execute now, or write the minimal or full script')(f)
    return f


def run_operation(
    operation: Operation,
    values: Dict[str, Any],
    decisions: DecisionPort,
    settings: ToolSettings,
    runner: CommandRunner,
    mode: Optional[str] = None,
    dry_run: bool = False,
    as_json: bool = False,
    output_dir: Optional[str] = None,
    lifecycle: Optional[RunLifecycle] = None,
) -> int:
    """
    Shared run flow - every command calls this.
    
    Fetch state, ask for missing values, build and show the plan, pick a
    mode, then dispatch.
    
    Returns:
        Exit code: 0 for success, no-op or operator abort; 1 for a failed action
    
    Raises:
        GcpToolsError: On parse, fetch, validation or script write errors
    """
    lifecycle = lifecycle or RunLifecycle()
    try:
        operation.fetch_state()
    except GcpToolsError:
        # a failed fetch still ends the fetch stage
        lifecycle.advance(RunPhase.STATE_FETCHED)
        lifecycle.advance(RunPhase.FAILED)
        raise
    lifecycle.advance(RunPhase.STATE_FETCHED)
    
    try:
        while True:
            pending = operation.value_prompts(values)
            if not pending:
                break
            answer = decisions.ask_value(pending[0])
            if answer is None:
                click.echo(ABORT_MESSAGE, err=True)
                lifecycle.advance(RunPhase.DONE)
                return 0
            values[pending[0].name] = answer
        plan = operation.plan(values)
    except GcpToolsError:
        lifecycle.advance(RunPhase.FAILED)
        raise
    lifecycle.advance(RunPhase.PLANNED)
    
    if as_json and (dry_run or mode is None):
        click.echo(format_plan_json(plan))
        lifecycle.advance(RunPhase.DONE)
        return 0
    if not as_json:
        click.echo(format_plan(plan, title=operation.title, current=operation.current_summary()))
    
    if dry_run or (not plan.minimal and not plan.full):
        lifecycle.advance(RunPhase.DONE)
        return 0
    
    chosen = DispatchMode(mode) if mode else decisions.choose_mode()
    if chosen is None:
        click.echo("Exiting without changes.", err=True)
        lifecycle.advance(RunPhase.DONE)
        return 0
    
    try:
        result = dispatch(
            plan,
            chosen,
            runner=runner,
            output_dir=output_dir or settings.output_dir,
            settings=settings,
            resource=operation.script_resource(values),
        )
    except GcpToolsError:
        lifecycle.advance(RunPhase.FAILED)
        raise
    lifecycle.advance(RunPhase.EXECUTED if chosen == DispatchMode.EXECUTE else RunPhase.SCRIPT_EMITTED)
    
    if as_json:
        click.echo(format_plan_json(plan, result))
    else:
        click.echo(format_dispatch_result(result))
    
    if not result.ok:
        lifecycle.advance(RunPhase.FAILED)
        return 1
    lifecycle.advance(RunPhase.DONE)
    return 0


def run_command(
    ctx: click.Context,
    build: Callable[[StateProvider, ToolSettings], Operation],
    values: Dict[str, Any],
    mode: Optional[str],
    dry_run: bool,
    as_json: bool,
    output_dir: Optional[str],
) -> None:
    """
    Load settings, build the operation and run it, mapping errors to exit codes.
    
    ``ctx.obj`` may carry a ``runner`` and a ``decisions`` port, which tests use
    to replace the subprocess runner and the interactive prompts.
    """
    obj = ctx.ensure_object(dict)
    try:
        settings = load_settings(obj.get("config_path"))
        runner = obj.get("runner") or CommandRunner(timeout=settings.command_timeout)
        provider = StateProvider(runner, gcloud_bin=settings.gcloud_bin, kubectl_bin=settings.kubectl_bin)
        operation = build(provider, settings)
        decisions = obj.get("decisions") or ClickDecisionPort()
        code = run_operation(
            operation,
            values,
            decisions,
            settings,
            runner,
            mode=mode,
            dry_run=dry_run,
            as_json=as_json,
            output_dir=output_dir,
        )
    except GcpToolsError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except click.exceptions.Abort:
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Operation failed: {e}"), err=True)
        sys.exit(1)
    
    if code:
        sys.exit(code)


__all__ = ["ABORT_MESSAGE", "resolve_file_path", "format_error", "plan_options", "run_operation", "run_command"]
