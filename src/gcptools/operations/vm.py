"""Compute Engine VM machine type and service account changes."""

from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from .base import Operation, ValuePrompt
from ..locator.url_parser import project_of_service_account
from ..plan.builder import ActionContext, ActionTemplate, FieldSpec
from ..plan.models import ActionTier, Comparator, Idempotency, ShellCommand
from ..state.snapshots import normalize_instance
from ..utils.errors import StateFetchError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("operations.vm")

STANDARD_SA_SUFFIXES = (".iam.gserviceaccount.com", "-compute@developer.gserviceaccount.com")


class _InstanceOperation(Operation):
    """Shared instance plumbing: describe, stop and start."""
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        ident = self.identity
        raw = self.provider.describe_instance(ident.project, ident.location, ident.name)
        if raw is None:
            raise StateFetchError(f"Instance {ident.name} not found in {ident.project}/{ident.location}")
        self.instance = normalize_instance(raw)
        self.current = self._snapshot()
        return self.current
    
    @abstractmethod
    def _snapshot(self) -> Dict[str, Any]:
        """Tracked fields of self.instance for this change."""
        pass
    
    def current_summary(self) -> List[Tuple[str, str]]:
        instance = self.instance
        return [
            ("Machine type", instance.machine_type),
            ("Status", instance.status),
            ("CPU platform", instance.cpu_platform or "N/A"),
            ("Service account", instance.service_account or "None"),
        ]
    
    def _instance_argv(self, ident, verb: str, *extra: str) -> List[str]:
        return [
            self.gcloud, "compute", "instances", verb, ident.name,
            f"--project={ident.project}",
            f"--zone={ident.location}",
            *extra,
        ]
    
    def _restart_around(self, ident, change: ShellCommand, full: bool) -> List[ShellCommand]:
        """Stop, change, start. Minimal plans only stop and restart a VM that is running."""
        running = full or self.instance.running
        commands = []
        if running:
            commands.append(ShellCommand.of(*self._instance_argv(ident, "stop", "--quiet")))
        commands.append(change)
        if running:
            commands.append(ShellCommand.of(*self._instance_argv(ident, "start", "--quiet")))
        return commands


class VmResize(_InstanceOperation):
    """Change a VM's machine type."""
    
    title = "VM machine type change"
    
    def _snapshot(self) -> Dict[str, Any]:
        return {"machine_type": self.instance.machine_type, "status": self.instance.status}
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if values.get("machine_type"):
            return []
        return [ValuePrompt(
            "machine_type",
            f"New machine type (current: {self.instance.machine_type}; "
            f"list with: gcloud compute machine-types list --zones={self.identity.location})",
        )]
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {"machine_type": values["machine_type"].strip()}
    
    def _set_machine_type(self, ctx: ActionContext, full: bool):
        ident = ctx.identity
        machine_type = ctx.value("machine_type")
        change = ShellCommand.of(*self._instance_argv(ident, "set-machine-type", f"--machine-type={machine_type}", "--quiet"))
        return f"Change machine type of {ident.name} to {machine_type}", self._restart_around(ident, change, full)
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        template = ActionTemplate(
            "machine_type", ActionTier.MODIFY,
            required=lambda ctx: self._set_machine_type(ctx, full=False),
            declarative=lambda ctx: self._set_machine_type(ctx, full=True),
        )
        return [FieldSpec("machine_type", Comparator.EXACT, template)]


class VmServiceAccount(_InstanceOperation):
    """Change a VM's service account, creating the account when it does not exist."""
    
    title = "VM service account change"
    
    def _snapshot(self) -> Dict[str, Any]:
        return {"service_account": self.instance.service_account, "status": self.instance.status}
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if values.get("service_account"):
            return []
        return [ValuePrompt("service_account", f"New service account email (current: {self.instance.service_account or 'None'})")]
    
    def _account_project(self, email: str) -> str:
        return project_of_service_account(email) or self.identity.project
    
    def resolve(self, values: Dict[str, Any]) -> None:
        email = values["service_account"].strip()
        if "@" not in email:
            raise ValidationError(f"Invalid service account email: {email}")
        values["service_account"] = email
        self.creatable = email.endswith(".iam.gserviceaccount.com")
        if not email.endswith(STANDARD_SA_SUFFIXES):
            self.diagnostics.append(f"{email} does not look like a standard service account email")
        
        exists = True
        if self.creatable:
            exists = self.provider.describe_service_account(self._account_project(email), email) is not None
        self.current = dict(self.current or {}, service_account_exists=exists)
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "service_account": values["service_account"],
            "service_account_exists": self.creatable,
        }
    
    def _create_account(self, ctx: ActionContext, full: bool):
        email = ctx.value("service_account")
        project = self._account_project(email)
        name = email.split("@", 1)[0]
        argv = [
            self.gcloud, "iam", "service-accounts", "create", name,
            f"--project={project}",
            f"--display-name={name}",
            "--description=Service account for VM (auto-created)",
        ]
        skip_if = None
        if full:
            skip_if = self.probe(self.gcloud, "iam", "service-accounts", "describe", email, f"--project={project}")
        return f"Create service account {email}", [ShellCommand.of(*argv, skip_if=skip_if)]
    
    def _set_account(self, ctx: ActionContext, full: bool):
        ident = ctx.identity
        email = ctx.value("service_account")
        change = ShellCommand.of(*self._instance_argv(
            ident, "set-service-account",
            f"--service-account={email}",
            f"--scopes={self.settings.vm_scopes}",
        ))
        return f"Set service account of {ident.name} to {email}", self._restart_around(ident, change, full)
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        create = ActionTemplate(
            "service_account_exists", ActionTier.CREATE,
            required=lambda ctx: self._create_account(ctx, full=False),
            declarative=lambda ctx: self._create_account(ctx, full=True),
            required_idempotency=Idempotency.STATEFUL,
        )
        assign = ActionTemplate(
            "service_account", ActionTier.MODIFY,
            required=lambda ctx: self._set_account(ctx, full=False),
            declarative=lambda ctx: self._set_account(ctx, full=True),
            depends_on=("service_account_exists",),
        )
        return [
            FieldSpec("service_account_exists", Comparator.PRESENCE, create),
            FieldSpec("service_account", Comparator.EXACT, assign),
        ]
