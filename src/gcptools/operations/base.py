"""Abstract base class for lifecycle operations."""

import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from ..config import ToolSettings
from ..locator.models import ResourceIdentity
from ..plan.builder import FieldSpec, build_plan
from ..plan.models import BuildMode, Plan
from ..state.provider import StateProvider
from ..utils.logging import get_logger

logger = get_logger("operations.base")


@dataclass
class ValuePrompt:
    """A value the operator must supply before a plan can be built."""
    name: str
    text: str
    default: Optional[str] = None
    choices: List[str] = field(default_factory=list)


class Operation(ABC):
    """
    Interface for one lifecycle tool.
    
    A run calls, in order:
    - fetch_state() once, before any prompt
    - value_prompts(values) repeatedly until it returns nothing
    - plan(values), which resolves value-dependent state and builds the plan
    
    Operations only read state. Every change goes through the returned plan.
    """
    
    title = ""
    build_mode = BuildMode.RECONCILE
    
    def __init__(self, identity: ResourceIdentity, provider: StateProvider, settings: Optional[ToolSettings] = None):
        self.identity = identity
        self.provider = provider
        self.settings = settings or ToolSettings()
        self.current: Optional[Dict[str, Any]] = None
        self.diagnostics: List[str] = []
    
    @abstractmethod
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        """
        Fetch current state for the parsed identity.
        
        Returns:
            Snapshot dict, or None when the resource does not exist
            
        Raises:
            StateFetchError: If the provider call fails
        """
        pass
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        """Prompts for values still missing, in the order they should be asked."""
        return []
    
    def resolve(self, values: Dict[str, Any]) -> None:
        """Fetch state that depends on operator values and validate them."""
        pass
    
    @abstractmethod
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        """Descriptor table for this run."""
        pass
    
    @abstractmethod
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Desired values keyed by field name; omitted fields keep their current value."""
        pass
    
    def target_identity(self, values: Dict[str, Any]) -> ResourceIdentity:
        """Identity the plan acts on; differs from the parsed one for clones and replication."""
        return self.identity
    
    def script_resource(self, values: Dict[str, Any]) -> str:
        """File name stem for generated scripts."""
        return self.target_identity(values).name
    
    def current_summary(self) -> List[Tuple[str, str]]:
        """(label, value) rows describing current state for display."""
        return []
    
    def plan(self, values: Dict[str, Any]) -> Plan:
        """Resolve, then build the plan from the descriptor table."""
        self.resolve(values)
        return build_plan(
            self.target_identity(values),
            self.current,
            self.desired_state(values),
            self.field_specs(values),
            mode=self.build_mode,
            diagnostics=self.diagnostics,
        )
    
    # Helpers shared by the tool implementations
    
    @property
    def gcloud(self) -> str:
        return self.settings.gcloud_bin
    
    @property
    def kubectl(self) -> str:
        return self.settings.kubectl_bin
    
    def probe(self, *argv: str) -> str:
        """Shell probe string for ShellCommand.skip_if."""
        return shlex.join(argv)
