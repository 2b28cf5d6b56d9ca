"""Execute a plan in-process or serialize it to a script."""

from typing import Optional
from .models import ActionOutcome, DispatchMode, DispatchResult, DispatchStatus, OutcomeStatus
from .script import DEFAULT_SHEBANG, DEFAULT_STRICT_MODE, emit_script
from ..plan.models import Action, Plan, ShellCommand
from ..state.runner import CommandResult, CommandRunner
from ..utils.errors import ActionExecutionError
from ..utils.logging import get_logger

logger = get_logger("dispatch.dispatcher")


def _run_command(runner: CommandRunner, command: ShellCommand) -> CommandResult:
    if command.is_simple:
        return runner.run(command.argv)
    # Pipelines and guarded commands need a shell
    return runner.run(["bash", "-o", "pipefail", "-c", command.render()])


def _run_action(runner: CommandRunner, action: Action) -> ActionOutcome:
    """Run an action's commands in order, stopping at the first failure."""
    stdout, stderr = [], []
    for command in action.commands:
        result = _run_command(runner, command)
        stdout.append(result.stdout)
        stderr.append(result.stderr)
        if not result.ok:
            return ActionOutcome(
                action=action,
                status=OutcomeStatus.FAILED,
                returncode=result.returncode,
                stdout="".join(stdout),
                stderr="".join(stderr),
            )
    return ActionOutcome(
        action=action,
        status=OutcomeStatus.SUCCEEDED,
        returncode=0,
        stdout="".join(stdout),
        stderr="".join(stderr),
    )


def execute_plan(plan: Plan, runner: CommandRunner) -> DispatchResult:
    """
    Run the minimal actions in order, fail-fast, never retrying.
    
    Actions after a failure are reported as NOT_ATTEMPTED.
    """
    result = DispatchResult(mode=DispatchMode.EXECUTE)
    failed = False
    for action in plan.minimal:
        if failed:
            result.outcomes.append(ActionOutcome(action=action))
            continue
        
        logger.info(f"Executing: {action.description}")
        outcome = _run_action(runner, action)
        result.outcomes.append(outcome)
        if outcome.status == OutcomeStatus.FAILED:
            failed = True
            error = ActionExecutionError(
                action.description,
                succeeded=result.succeeded,
                returncode=outcome.returncode or 1,
                stderr=outcome.stderr,
            )
            logger.error(str(error))
            result.status = DispatchStatus.FAILED
            result.error = str(error)
    
    if not plan.minimal:
        logger.info("Nothing to change")
    return result


def dispatch(
    plan: Plan,
    mode: DispatchMode,
    runner: Optional[CommandRunner] = None,
    output_dir: str = ".",
    settings=None,
    resource: Optional[str] = None,
) -> DispatchResult:
    """
    Carry out a plan in the chosen mode.
    
    Args:
        plan: Plan from build_plan
        mode: EXECUTE runs minimal actions now; EMIT_MINIMAL/EMIT_FULL write a script
        runner: Command runner for EXECUTE
        output_dir: Directory for generated scripts
        settings: Optional ToolSettings (timeout, script header lines)
        resource: Script file name stem, defaults to the identity name
        
    Returns:
        DispatchResult. A failed action is reported in the result, not raised.
        
    Raises:
        GcpToolsError: If a script cannot be written
    """
    mode = DispatchMode(mode)
    if mode == DispatchMode.EXECUTE:
        if runner is None:
            timeout = settings.command_timeout if settings is not None else None
            runner = CommandRunner(timeout=timeout)
        return execute_plan(plan, runner)
    
    shebang = settings.shebang if settings is not None else DEFAULT_SHEBANG
    strict_mode = settings.strict_mode if settings is not None else DEFAULT_STRICT_MODE
    full = mode == DispatchMode.EMIT_FULL
    path = emit_script(
        plan,
        full=full,
        output_dir=output_dir,
        resource=resource,
        shebang=shebang,
        strict_mode=strict_mode,
    )
    actions = plan.full if full else plan.minimal
    return DispatchResult(
        mode=mode,
        outcomes=[ActionOutcome(action=a) for a in actions],
        script_path=str(path),
    )
