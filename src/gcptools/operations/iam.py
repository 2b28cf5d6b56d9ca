"""Project-level IAM role replication and batch role application."""

from typing import Any, Dict, List, Optional, Tuple
from .base import Operation, ValuePrompt
from ..locator.input_files import validate_principal
from ..locator.models import ResourceIdentity, ResourceKind
from ..plan.builder import ActionContext, ActionTemplate, FieldSpec
from ..plan.models import ActionTier, Comparator, ShellCommand
from ..utils.errors import StateFetchError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("operations.iam")

GLOBAL = "global"


def binding_command(gcloud: str, project: str, member: str, role: str) -> ShellCommand:
    """``gcloud projects add-iam-policy-binding`` without a condition."""
    return ShellCommand.of(
        gcloud, "projects", "add-iam-policy-binding", project,
        f"--member={member}",
        f"--role={role}",
        "--condition=None",
        "--quiet",
    )


class IamReplicate(Operation):
    """
    Copy a principal's unconditional project roles.
    
    The target is either another principal in the same project or the same
    principal in another project. Conditional bindings are not replicated.
    """
    
    title = "IAM role replicator"
    
    def __init__(self, identity, provider, settings=None):
        super().__init__(identity, provider, settings)
        self.source_roles: List[str] = []
    
    @property
    def source_project(self) -> str:
        return self.identity.parent
    
    @property
    def source_principal(self) -> str:
        return self.identity.name
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        self.source_roles = self.provider.get_principal_roles(self.source_project, self.source_principal)
        if not self.source_roles:
            raise StateFetchError(f"No roles found for {self.source_principal} in project {self.source_project}")
        return None
    
    def current_summary(self) -> List[Tuple[str, str]]:
        return [("Source role", role) for role in self.source_roles]
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if values.get("target_principal") or values.get("target_project"):
            return []
        if not values.get("replicate_to"):
            return [ValuePrompt(
                "replicate_to",
                "Replicate to another principal (same project) or the same principal (another project)?",
                choices=["principal", "project"],
            )]
        if values["replicate_to"] == "principal":
            return [ValuePrompt("target_principal", "Target principal (user:/group:/serviceAccount:)")]
        return [ValuePrompt("target_project", "Target project ID")]
    
    def _target(self, values: Dict[str, Any]) -> Tuple[str, str]:
        project = (values.get("target_project") or self.source_project).strip()
        principal = (values.get("target_principal") or self.source_principal).strip()
        return project, principal
    
    def resolve(self, values: Dict[str, Any]) -> None:
        project, principal = self._target(values)
        validate_principal(principal)
        if (project, principal) == (self.source_project, self.source_principal):
            raise ValidationError("Target must differ from the source principal or project")
        target_roles = set(self.provider.get_principal_roles(project, principal))
        self.current = {role: role in target_roles for role in self.source_roles}
    
    def target_identity(self, values: Dict[str, Any]) -> ResourceIdentity:
        project, principal = self._target(values)
        return ResourceIdentity(
            kind=ResourceKind.IAM_PRINCIPAL,
            project=project,
            location=GLOBAL,
            parent=self.source_project,
            name=principal,
        )
    
    def script_resource(self, values: Dict[str, Any]) -> str:
        project, _ = self._target(values)
        return f"iam-{project}"
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {role: True for role in self.source_roles}
    
    def _grant(self, role: str):
        def factory(ctx: ActionContext):
            ident = ctx.identity
            return f"Grant {role} to {ident.name} on {ident.project}", [
                binding_command(self.gcloud, ident.project, ident.name, role)
            ]
        return factory
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        return [
            FieldSpec(role, Comparator.PRESENCE, ActionTemplate(role, ActionTier.BIND, self._grant(role)))
            for role in self.source_roles
        ]


class IamBatchApply(Operation):
    """
    Grant every role in a roles file on every project in a projects file.
    
    Identity mapping: project is the comma-joined project ids, parent and
    name are the member.
    """
    
    title = "IAM roles apply"
    
    def __init__(self, identity, provider, settings=None, roles: Optional[List[str]] = None, projects: Optional[List[str]] = None):
        super().__init__(identity, provider, settings)
        self.roles = list(dict.fromkeys(roles or []))
        self.projects = list(dict.fromkeys(projects or []))
        if not self.roles:
            raise ValidationError("No roles to apply")
        if not self.projects:
            raise ValidationError("No projects to apply roles to")
    
    @classmethod
    def for_member(cls, member: str, roles: List[str], projects: List[str], provider, settings=None) -> "IamBatchApply":
        member = validate_principal(member)
        identity = ResourceIdentity(
            kind=ResourceKind.IAM_BATCH,
            project=",".join(dict.fromkeys(projects)),
            location=GLOBAL,
            parent=member,
            name=member,
        )
        return cls(identity, provider, settings, roles=roles, projects=projects)
    
    @property
    def member(self) -> str:
        return self.identity.name
    
    @staticmethod
    def field_name(project: str, role: str) -> str:
        return f"{project}:{role}"
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        current = {}
        for project in self.projects:
            granted = set(self.provider.get_principal_roles(project, self.member))
            for role in self.roles:
                current[self.field_name(project, role)] = role in granted
        self.current = current
        return current
    
    def current_summary(self) -> List[Tuple[str, str]]:
        rows = [("Member", self.member), ("Projects", str(len(self.projects))), ("Roles", str(len(self.roles)))]
        total = len(self.projects) * len(self.roles)
        granted = sum(1 for present in (self.current or {}).values() if present)
        rows.append(("Already granted", f"{granted}/{total}"))
        return rows
    
    def script_resource(self, values: Dict[str, Any]) -> str:
        return "iam-roles"
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {self.field_name(p, r): True for p in self.projects for r in self.roles}
    
    def _grant(self, project: str, role: str):
        def factory(ctx: ActionContext):
            return f"Grant {role} to {self.member} on {project}", [
                binding_command(self.gcloud, project, self.member, role)
            ]
        return factory
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        specs = []
        for project in self.projects:
            for role in self.roles:
                name = self.field_name(project, role)
                template = ActionTemplate(name, ActionTier.BIND, self._grant(project, role))
                specs.append(FieldSpec(name, Comparator.PRESENCE, template))
        return specs
