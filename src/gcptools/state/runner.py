"""Blocking subprocess wrapper shared by the state provider and the dispatcher."""

import subprocess
from typing import List, Optional
from pydantic import BaseModel, Field
from ..utils.logging import get_logger

logger = get_logger("state.runner")


class CommandResult(BaseModel):
    """Outcome of one external command."""
    argv: List[str] = Field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    
    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class CommandRunner:
    """Runs provider CLI commands synchronously, one at a time."""
    
    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
    
    def run(self, argv: List[str], input_text: Optional[str] = None) -> CommandResult:
        """
        Run argv and capture its output.
        
        A missing executable is reported as exit code 127 and a timeout as
        exit code 124, mirroring the shell, so callers only inspect the result.
        """
        logger.debug(f"Running: {' '.join(argv)}")
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                input=input_text,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(argv=list(argv), returncode=127, stderr=str(e))
        except subprocess.TimeoutExpired:
            logger.warning(f"Command timed out after {self.timeout}s: {argv[0]}")
            return CommandResult(
                argv=list(argv),
                returncode=124,
                stderr=f"Timed out after {self.timeout}s",
                timed_out=True,
            )
        
        return CommandResult(
            argv=list(argv),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
