"""Decision port: how a run asks the operator for values and an execution mode."""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import click
from ..dispatch.models import DispatchMode
from ..operations.base import ValuePrompt

MODE_PROMPT = "Proceed? (y=execute | n=minimal script | f=full-force script)"
MODE_CHOICES = ("y", "n", "f")


class DecisionPort(ABC):
    """
    Interface for operator decisions.
    
    Value prompts come first; exactly one mode prompt follows. ``None`` from
    either method means the operator aborted.
    """
    
    @abstractmethod
    def ask_value(self, prompt: ValuePrompt) -> Optional[str]:
        pass
    
    @abstractmethod
    def choose_mode(self) -> Optional[DispatchMode]:
        pass


class ClickDecisionPort(DecisionPort):
    """Interactive prompts on the terminal."""
    
    def _ask(self, text: str, default: Optional[str], choices) -> Optional[str]:
        while True:
            answer = click.prompt(
                text,
                default=default if default is not None else "",
                show_default=default is not None,
                show_choices=False,
            ).strip()
            if not answer:
                return None
            if not choices or answer.lower() in choices:
                return answer.lower() if choices else answer
            click.echo(f"Please answer one of: {', '.join(choices)}", err=True)
    
    def ask_value(self, prompt: ValuePrompt) -> Optional[str]:
        text = prompt.text
        if prompt.choices:
            text = f"{text} [{'/'.join(prompt.choices)}]"
        return self._ask(text, prompt.default, prompt.choices)
    
    def choose_mode(self) -> Optional[DispatchMode]:
        answer = self._ask(MODE_PROMPT, None, MODE_CHOICES)
        return DispatchMode.from_choice(answer) if answer else None


class FixedDecisionPort(DecisionPort):
    """Pre-recorded answers, for non-interactive runs and tests."""
    
    def __init__(self, values: Optional[Dict[str, str]] = None, mode: Optional[str] = None):
        self.values = dict(values or {})
        self.mode = mode
        self.asked = []
    
    def ask_value(self, prompt: ValuePrompt) -> Optional[str]:
        self.asked.append(prompt.name)
        answer = self.values.get(prompt.name, prompt.default)
        return answer or None
    
    def choose_mode(self) -> Optional[DispatchMode]:
        self.asked.append("mode")
        return DispatchMode.from_choice(self.mode) if self.mode else None
