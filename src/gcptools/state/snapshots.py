"""Normalize raw provider describe output into flat current-state snapshots."""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field
from ..plan.comparators import normalize_taint
from ..utils.logging import get_logger

logger = get_logger("state.snapshots")


def last_segment(value: Optional[str]) -> str:
    """Last path segment of a self-link (``.../machineTypes/e2-medium`` -> ``e2-medium``)."""
    if not value:
        return ""
    return str(value).rstrip("/").split("/")[-1]


class NodePoolSnapshot(BaseModel):
    """Node pool attributes tracked by the clone and update tools."""
    name: str = ""
    machine_type: Optional[str] = None
    disk_size_gb: Optional[int] = None
    disk_type: Optional[str] = None
    image_type: Optional[str] = None
    node_version: Optional[str] = None
    num_nodes: Optional[int] = None
    max_pods_per_node: Optional[int] = None
    service_account: Optional[str] = None
    scopes: List[str] = Field(default_factory=list)
    node_labels: Dict[str, str] = Field(default_factory=dict)
    resource_labels: Dict[str, str] = Field(default_factory=dict)
    taints: List[str] = Field(default_factory=list)
    pod_range: Optional[str] = None
    pod_ipv4_cidr: Optional[str] = None
    node_locations: List[str] = Field(default_factory=list)
    auto_upgrade: bool = False
    auto_repair: bool = False
    autoscaling_enabled: bool = False
    min_nodes: Optional[int] = None
    max_nodes: Optional[int] = None
    max_surge: Optional[int] = None
    max_unavailable: Optional[int] = None
    disable_legacy_endpoints: bool = False


def _first(*values):
    for value in values:
        if value not in (None, "", [], {}):
            return value
    return None


def _as_int(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_node_pool(raw: Dict[str, Any]) -> NodePoolSnapshot:
    """
    Extract node pool attributes from ``gcloud container node-pools describe`` JSON.
    
    ``config`` is the current field name; ``nodeConfig`` is accepted for older
    output. Reserved labels are kept here and filtered by the comparators.
    """
    config = raw.get("config") or raw.get("nodeConfig") or {}
    autoscaling = raw.get("autoscaling") or {}
    management = raw.get("management") or {}
    upgrade = raw.get("upgradeSettings") or {}
    network = raw.get("networkConfig") or {}
    metadata = config.get("metadata") or raw.get("metadata") or {}
    max_pods = _first(config.get("maxPodsPerNode"), (raw.get("maxPodsConstraint") or {}).get("maxPodsPerNode"))
    
    return NodePoolSnapshot(
        name=raw.get("name", ""),
        machine_type=config.get("machineType"),
        disk_size_gb=_as_int(config.get("diskSizeGb")),
        disk_type=config.get("diskType"),
        image_type=config.get("imageType"),
        node_version=raw.get("version"),
        num_nodes=_as_int(_first(raw.get("initialNodeCount"), config.get("initialNodeCount"))),
        max_pods_per_node=_as_int(max_pods),
        service_account=config.get("serviceAccount"),
        scopes=list(config.get("oauthScopes") or []),
        node_labels=dict(config.get("labels") or {}),
        resource_labels=dict(config.get("resourceLabels") or raw.get("resourceLabels") or {}),
        taints=[normalize_taint(t) for t in (config.get("taints") or [])],
        pod_range=network.get("podRange"),
        pod_ipv4_cidr=network.get("podIpv4CidrBlock"),
        node_locations=list(raw.get("locations") or []),
        auto_upgrade=bool(management.get("autoUpgrade", False)),
        auto_repair=bool(management.get("autoRepair", False)),
        autoscaling_enabled=bool(autoscaling.get("enabled", False)),
        min_nodes=_as_int(autoscaling.get("minNodeCount")),
        max_nodes=_as_int(autoscaling.get("maxNodeCount")),
        max_surge=_as_int(upgrade.get("maxSurge")),
        max_unavailable=_as_int(upgrade.get("maxUnavailable")),
        disable_legacy_endpoints=str(metadata.get("disable-legacy-endpoints", "")).lower() == "true",
    )


class AttachedDisk(BaseModel):
    """A disk attached to an instance."""
    index: int = 0
    device_name: str = ""
    disk_name: str = ""
    size_gb: Optional[int] = None
    boot: bool = False


class InstanceSnapshot(BaseModel):
    """VM attributes used by the resize, service account and disk tools."""
    name: str = ""
    zone: str = ""
    machine_type: str = ""
    status: str = "UNKNOWN"
    cpu_platform: Optional[str] = None
    service_account: Optional[str] = None
    internal_ip: Optional[str] = None
    disks: List[AttachedDisk] = Field(default_factory=list)
    
    @property
    def running(self) -> bool:
        return self.status == "RUNNING"


def normalize_instance(raw: Dict[str, Any]) -> InstanceSnapshot:
    """Extract VM attributes from ``gcloud compute instances describe`` JSON."""
    accounts = raw.get("serviceAccounts") or []
    interfaces = raw.get("networkInterfaces") or []
    disks = []
    for disk in raw.get("disks") or []:
        disks.append(AttachedDisk(
            index=_as_int(disk.get("index")) or 0,
            device_name=disk.get("deviceName", ""),
            disk_name=last_segment(disk.get("source")),
            size_gb=_as_int(disk.get("diskSizeGb")),
            boot=bool(disk.get("boot", False)),
        ))
    return InstanceSnapshot(
        name=raw.get("name", ""),
        zone=last_segment(raw.get("zone")),
        machine_type=last_segment(raw.get("machineType")),
        status=raw.get("status") or "UNKNOWN",
        cpu_platform=raw.get("cpuPlatform"),
        service_account=accounts[0].get("email") if accounts else None,
        internal_ip=interfaces[0].get("networkIP") if interfaces else None,
        disks=disks,
    )


class DiskSnapshot(BaseModel):
    """Persistent disk attributes used by the disk expander."""
    name: str = ""
    size_gb: int = 0
    type: str = ""
    users: List[str] = Field(default_factory=list)
    
    @property
    def attached_instance(self) -> Optional[str]:
        """First attached VM name, if any."""
        for user in self.users:
            if "/instances/" in user:
                return last_segment(user)
        return None


def normalize_disk(raw: Dict[str, Any]) -> DiskSnapshot:
    """Extract disk attributes from ``gcloud compute disks describe`` JSON."""
    return DiskSnapshot(
        name=raw.get("name", ""),
        size_gb=_as_int(raw.get("sizeGb")) or 0,
        type=last_segment(raw.get("type")),
        users=list(raw.get("users") or []),
    )


def roles_for_member(policy: Dict[str, Any], member: str) -> List[str]:
    """Unconditional roles granted to member in an IAM policy document."""
    roles = []
    for binding in policy.get("bindings") or []:
        if binding.get("condition"):
            continue
        if member in (binding.get("members") or []):
            role = binding.get("role")
            if role and role not in roles:
                roles.append(role)
    return roles
