"""Bind a Kubernetes service account to a GCP service account (Workload Identity)."""

from typing import Any, Dict, List, Optional, Tuple
from .base import Operation
from ..locator.url_parser import gsa_email
from ..plan.builder import ActionContext, ActionTemplate, FieldSpec
from ..plan.models import ActionTier, Comparator, Idempotency, ShellCommand
from ..utils.logging import get_logger

logger = get_logger("operations.workload_identity")

TRACKED = ("namespace", "ksa", "gsa", "iam_binding", "annotation")


def workload_member(project: str, namespace: str, ksa: str) -> str:
    """IAM member string for a Kubernetes service account."""
    return f"serviceAccount:{project}.svc.id.goog[{namespace}/{ksa}]"


def policy_has_binding(policy: Optional[Dict[str, Any]], role: str, member: str) -> bool:
    for binding in (policy or {}).get("bindings") or []:
        if binding.get("role") == role and member in (binding.get("members") or []):
            return True
    return False


class WorkloadIdentityBind(Operation):
    """
    Ensure namespace, KSA, GSA, IAM binding and KSA annotation all exist.
    
    Identity mapping: location is the namespace, parent is the Kubernetes
    service account and name is the GCP service account id.
    """
    
    title = "GKE Workload Identity bind"
    
    @property
    def email(self) -> str:
        return gsa_email(self.identity)
    
    @property
    def member(self) -> str:
        ident = self.identity
        return workload_member(ident.project, ident.location, ident.parent)
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        ident = self.identity
        namespace, ksa = ident.location, ident.parent
        
        namespace_exists = self.provider.describe_namespace(namespace) is not None
        ksa_doc = self.provider.describe_k8s_service_account(namespace, ksa) if namespace_exists else None
        annotations = ((ksa_doc or {}).get("metadata") or {}).get("annotations") or {}
        annotation = annotations.get(self.settings.workload_identity_annotation) == self.email
        
        gsa_exists = self.provider.describe_service_account(ident.project, self.email) is not None
        policy = self.provider.get_service_account_policy(ident.project, self.email) if gsa_exists else None
        binding = policy_has_binding(policy, self.settings.workload_identity_role, self.member)
        
        self.current = {
            "namespace": namespace_exists,
            "ksa": ksa_doc is not None,
            "gsa": gsa_exists,
            "iam_binding": binding,
            "annotation": annotation,
        }
        logger.info(f"Workload identity state for {ident}: {self.current}")
        return self.current
    
    def current_summary(self) -> List[Tuple[str, str]]:
        labels = {
            "namespace": f"Namespace {self.identity.location}",
            "ksa": f"KSA {self.identity.parent}",
            "gsa": f"GSA {self.email}",
            "iam_binding": "IAM binding",
            "annotation": "KSA annotation",
        }
        state = self.current or {}
        return [(labels[key], "exists" if state.get(key) else "missing") for key in TRACKED]
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {key: True for key in TRACKED}
    
    def script_resource(self, values: Dict[str, Any]) -> str:
        return f"{self.identity.location}-workload-identity"
    
    # Action factories
    
    def _apply_pipeline(self, *create_argv: str) -> ShellCommand:
        """``kubectl create ... --dry-run=client -o yaml | kubectl apply -f -``."""
        return ShellCommand(segments=[
            [*create_argv, "--dry-run=client", "-o", "yaml"],
            [self.kubectl, "apply", "-f", "-"],
        ])
    
    def _namespace(self, ctx: ActionContext, full: bool):
        ns = ctx.identity.location
        argv = [self.kubectl, "create", "namespace", ns]
        command = self._apply_pipeline(*argv) if full else ShellCommand.of(*argv)
        return f"Create namespace {ns}", [command]
    
    def _ksa(self, ctx: ActionContext, full: bool):
        ns, ksa = ctx.identity.location, ctx.identity.parent
        argv = [self.kubectl, "create", "serviceaccount", ksa, "-n", ns]
        command = self._apply_pipeline(*argv) if full else ShellCommand.of(*argv)
        return f"Create Kubernetes service account {ns}/{ksa}", [command]
    
    def _gsa(self, ctx: ActionContext, full: bool):
        ident = ctx.identity
        argv = [
            self.gcloud, "iam", "service-accounts", "create", ident.name,
            "--project", ident.project,
            "--display-name", f"GKE Workload Identity - {ident.name}",
        ]
        skip_if = None
        if full:
            skip_if = self.probe(self.gcloud, "iam", "service-accounts", "describe", self.email, "--project", ident.project)
        return f"Create GCP service account {self.email}", [ShellCommand.of(*argv, skip_if=skip_if)]
    
    def _binding(self, ctx: ActionContext):
        ident = ctx.identity
        argv = [
            self.gcloud, "iam", "service-accounts", "add-iam-policy-binding", self.email,
            "--project", ident.project,
            "--role", self.settings.workload_identity_role,
            "--member", self.member,
        ]
        return f"Grant {self.settings.workload_identity_role} on {self.email} to {ident.location}/{ident.parent}", [ShellCommand.of(*argv)]
    
    def _annotation(self, ctx: ActionContext):
        ns, ksa = ctx.identity.location, ctx.identity.parent
        argv = [
            self.kubectl, "annotate", "serviceaccount", ksa, "-n", ns,
            f"{self.settings.workload_identity_annotation}={self.email}",
            "--overwrite",
        ]
        return f"Annotate {ns}/{ksa} with {self.email}", [ShellCommand.of(*argv)]
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        namespace = ActionTemplate(
            "namespace", ActionTier.CREATE,
            required=lambda ctx: self._namespace(ctx, full=False),
            declarative=lambda ctx: self._namespace(ctx, full=True),
            required_idempotency=Idempotency.STATEFUL,
        )
        ksa = ActionTemplate(
            "ksa", ActionTier.CREATE,
            required=lambda ctx: self._ksa(ctx, full=False),
            declarative=lambda ctx: self._ksa(ctx, full=True),
            depends_on=("namespace",),
            required_idempotency=Idempotency.STATEFUL,
        )
        gsa = ActionTemplate(
            "gsa", ActionTier.CREATE,
            required=lambda ctx: self._gsa(ctx, full=False),
            declarative=lambda ctx: self._gsa(ctx, full=True),
            required_idempotency=Idempotency.STATEFUL,
        )
        binding = ActionTemplate("iam_binding", ActionTier.BIND, self._binding, depends_on=("gsa", "ksa"))
        annotation = ActionTemplate("annotation", ActionTier.ANNOTATE, self._annotation, depends_on=("ksa",))
        return [
            FieldSpec("namespace", Comparator.PRESENCE, namespace),
            FieldSpec("ksa", Comparator.PRESENCE, ksa),
            FieldSpec("gsa", Comparator.PRESENCE, gsa),
            FieldSpec("iam_binding", Comparator.PRESENCE, binding),
            FieldSpec("annotation", Comparator.PRESENCE, annotation),
        ]
