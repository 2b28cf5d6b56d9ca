"""State provider: read current resource state through the provider CLIs."""

from .runner import CommandRunner, CommandResult
from .provider import StateProvider, is_not_found

__all__ = ["CommandRunner", "CommandResult", "StateProvider", "is_not_found"]
