"""State provider: read-only gcloud/kubectl calls returning structured snapshots."""

import json
import re
from typing import Dict, Any, List, Optional
from .runner import CommandRunner, CommandResult
from .snapshots import roles_for_member
from ..utils.errors import StateFetchError
from ..utils.logging import get_logger

logger = get_logger("state.provider")

# Explicit not-found responses from gcloud and the kubectl API server.
NOT_FOUND_PATTERNS = (
    re.compile(r"\bNOT_FOUND\b"),
    re.compile(r"\(404\)|code=404\b"),
    re.compile(r"The resource '[^']+' was not found"),
    re.compile(r"Error from server \(NotFound\)"),
)


def is_not_found(result: CommandResult) -> bool:
    """
    True only for an explicit provider not-found response.
    
    Client-side errors (a missing binary, a timeout, an unknown kubectl
    context) are fetch failures, never absence.
    """
    if result.ok or result.timed_out or result.returncode == 127:
        return False
    return any(pattern.search(result.stderr) for pattern in NOT_FOUND_PATTERNS)


class StateProvider:
    """
    Wraps provider CLI reads for one run.
    
    Every ``describe_*`` method returns a parsed JSON dict, or ``None`` when
    the provider explicitly reports that the resource does not exist. Any
    other failure raises StateFetchError.
    """
    
    def __init__(self, runner: Optional[CommandRunner] = None, gcloud_bin: str = "gcloud", kubectl_bin: str = "kubectl"):
        self.runner = runner or CommandRunner()
        self.gcloud_bin = gcloud_bin
        self.kubectl_bin = kubectl_bin
    
    @classmethod
    def from_settings(cls, settings) -> "StateProvider":
        """Build a provider from ToolSettings."""
        return cls(
            runner=CommandRunner(timeout=settings.command_timeout),
            gcloud_bin=settings.gcloud_bin,
            kubectl_bin=settings.kubectl_bin,
        )
    
    def _gcloud(self, *args: str) -> List[str]:
        return [self.gcloud_bin, *args]
    
    def _kubectl(self, *args: str) -> List[str]:
        return [self.kubectl_bin, *args]
    
    def _describe(self, argv: List[str], what: str) -> Optional[Dict[str, Any]]:
        result = self.runner.run(argv)
        if result.ok:
            return self._parse_json(result, what)
        if is_not_found(result):
            logger.info(f"{what} not found")
            return None
        raise StateFetchError(self._failure_message(what, result))
    
    def _parse_json(self, result: CommandResult, what: str) -> Dict[str, Any]:
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise StateFetchError(f"Invalid JSON while fetching {what}: {e}")
        if not isinstance(data, dict):
            raise StateFetchError(f"Unexpected response while fetching {what}: expected an object")
        return data
    
    def _failure_message(self, what: str, result: CommandResult) -> str:
        detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        return f"Failed to fetch {what}: {detail}"
    
    # GKE
    
    def describe_node_pool(self, project: str, location: str, cluster: str, node_pool: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._gcloud(
                "container", "node-pools", "describe", node_pool,
                "--cluster", cluster,
                "--location", location,
                "--project", project,
                "--format=json",
            ),
            f"node pool {node_pool}",
        )
    
    def get_cluster_version(self, project: str, location: str, cluster: str) -> str:
        """
        Current master version of a cluster.
        
        Raises:
            StateFetchError: If the lookup fails or returns nothing
        """
        result = self.runner.run(self._gcloud(
            "container", "clusters", "describe", cluster,
            "--project", project,
            "--location", location,
            "--format=value(currentMasterVersion)",
        ))
        if not result.ok:
            raise StateFetchError(self._failure_message(f"cluster version of {cluster}", result))
        version = result.stdout.strip()
        if not version:
            raise StateFetchError(f"Cluster {cluster} reported no master version")
        return version
    
    # Compute Engine
    
    def describe_instance(self, project: str, zone: str, instance: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._gcloud(
                "compute", "instances", "describe", instance,
                f"--project={project}",
                f"--zone={zone}",
                "--format=json",
            ),
            f"instance {instance}",
        )
    
    def describe_disk(self, project: str, zone: str, disk: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._gcloud(
                "compute", "disks", "describe", disk,
                f"--project={project}",
                f"--zone={zone}",
                "--format=json",
            ),
            f"disk {disk}",
        )
    
    # IAM
    
    def describe_service_account(self, project: str, email: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._gcloud(
                "iam", "service-accounts", "describe", email,
                "--project", project,
                "--format=json",
            ),
            f"service account {email}",
        )
    
    def get_service_account_policy(self, project: str, email: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._gcloud(
                "iam", "service-accounts", "get-iam-policy", email,
                "--project", project,
                "--format=json",
            ),
            f"IAM policy of {email}",
        )
    
    def get_project_policy(self, project: str) -> Dict[str, Any]:
        """
        Project IAM policy.
        
        Raises:
            StateFetchError: If the project cannot be read (absence is an error here)
        """
        policy = self._describe(
            self._gcloud("projects", "get-iam-policy", project, "--format=json"),
            f"IAM policy of project {project}",
        )
        if policy is None:
            raise StateFetchError(f"Project not found or not accessible: {project}")
        return policy
    
    def get_principal_roles(self, project: str, principal: str) -> List[str]:
        """Unconditional project-level roles bound to principal."""
        roles = roles_for_member(self.get_project_policy(project), principal)
        logger.info(f"Found {len(roles)} role(s) for {principal} in {project}")
        return roles
    
    # Kubernetes (current kubectl context)
    
    def describe_namespace(self, namespace: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._kubectl("get", "namespace", namespace, "-o", "json"),
            f"namespace {namespace}",
        )
    
    def describe_k8s_service_account(self, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        return self._describe(
            self._kubectl("get", "serviceaccount", name, "-n", namespace, "-o", "json"),
            f"Kubernetes service account {namespace}/{name}",
        )
