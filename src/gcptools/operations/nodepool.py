"""GKE node pool clone and update."""

import re
from typing import Any, Dict, List, Optional, Tuple
from .base import Operation, ValuePrompt
from ..plan.builder import ActionContext, ActionTemplate, FieldSpec
from ..plan.comparators import label_set, strip_reserved_labels, taint_set
from ..plan.models import ActionTier, BuildMode, Comparator, Idempotency, ShellCommand
from ..state.snapshots import normalize_node_pool
from ..utils.errors import StateFetchError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("operations.nodepool")

NODE_POOL_NAME_RE = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
NODE_POOL_NAME_MAX = 40


def validate_node_pool_name(name: str) -> str:
    """
    Check a node pool name against GKE naming rules.
    
    Raises:
        ValidationError: If the name is empty, too long or badly formed
    """
    value = (name or "").strip()
    if not value:
        raise ValidationError("Node pool name must not be empty")
    if len(value) > NODE_POOL_NAME_MAX:
        raise ValidationError(f"Node pool name '{value}' is longer than {NODE_POOL_NAME_MAX} characters")
    if not NODE_POOL_NAME_RE.match(value):
        raise ValidationError(
            f"Invalid node pool name '{value}': use lowercase letters, digits and hyphens, "
            "starting with a letter and not ending with a hyphen"
        )
    return value


def _joined(items) -> str:
    return ",".join(sorted(items))


def _label_arg(labels: Any, prefixes) -> str:
    cleaned = strip_reserved_labels(labels, prefixes)
    return ",".join(f"{k}={v}" for k, v in sorted(cleaned.items()))


class _NodePoolOperation(Operation):
    """Shared node pool plumbing."""
    
    def _scope_args(self, identity) -> List[str]:
        return [
            "--cluster", identity.parent,
            "--location", identity.location,
            "--project", identity.project,
        ]
    
    def _describe_argv(self, identity) -> List[str]:
        return [self.gcloud, "container", "node-pools", "describe", identity.name, *self._scope_args(identity)]
    
    def _fetch_pool(self) -> Dict[str, Any]:
        ident = self.identity
        raw = self.provider.describe_node_pool(ident.project, ident.location, ident.parent, ident.name)
        if raw is None:
            raise StateFetchError(f"Node pool {ident.name} not found in cluster {ident.parent}")
        return normalize_node_pool(raw).model_dump()
    
    def current_summary(self) -> List[Tuple[str, str]]:
        if not self.current:
            return []
        c = self.current
        return [
            ("Machine type", c.get("machine_type") or ""),
            ("Disk", f"{c.get('disk_size_gb') or '?'}GB {c.get('disk_type') or ''}".strip()),
            ("Node version", c.get("node_version") or ""),
            ("Autoscaling", f"{c.get('autoscaling_enabled')} ({c.get('min_nodes')}-{c.get('max_nodes')})"),
        ]


class NodePoolClone(_NodePoolOperation):
    """Recreate a node pool's configuration under a new name."""
    
    title = "GKE node pool clone"
    build_mode = BuildMode.CLONE
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        snapshot = self._fetch_pool()
        pool_version = snapshot.get("node_version")
        ident = self.identity
        try:
            snapshot["node_version"] = self.provider.get_cluster_version(ident.project, ident.location, ident.parent)
        except StateFetchError as e:
            logger.warning(f"Cluster version lookup failed, using node pool version: {e}")
            self.diagnostics.append(
                f"Cluster version of {ident.parent} could not be read; "
                f"falling back to node pool version {pool_version or 'unknown'}"
            )
        
        if snapshot.get("pod_ipv4_cidr") and not snapshot.get("pod_range"):
            self.diagnostics.append(
                f"Source pool uses pod CIDR {snapshot['pod_ipv4_cidr']} without a secondary range name; "
                "--pod-ipv4-range is not set on the clone"
            )
        self.current = snapshot
        return snapshot
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if values.get("new_name"):
            return []
        return [ValuePrompt("new_name", "Enter NEW node pool name")]
    
    def resolve(self, values: Dict[str, Any]) -> None:
        name = validate_node_pool_name(values.get("new_name"))
        values["new_name"] = name
        if name == self.identity.name:
            raise ValidationError(f"New node pool name must differ from the source ({name})")
        ident = self.identity
        if self.provider.describe_node_pool(ident.project, ident.location, ident.parent, name) is not None:
            raise ValidationError(f"Node pool {name} already exists in cluster {ident.parent}")
    
    def target_identity(self, values: Dict[str, Any]):
        return self.identity.with_name(values["new_name"])
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        desired = dict(self.current or {})
        for key in ("machine_type", "disk_size_gb", "num_nodes"):
            if values.get(key) is not None:
                desired[key] = values[key]
        return desired
    
    def _create(self, ctx: ActionContext, guarded: bool) -> Tuple[str, List[ShellCommand]]:
        ident = ctx.identity
        prefixes = self.settings.reserved_label_prefixes
        argv = [self.gcloud, "container", "node-pools", "create", ident.name, *self._scope_args(ident)]
        
        flags = [
            ("--machine-type", "machine_type"),
            ("--disk-size", "disk_size_gb"),
            ("--disk-type", "disk_type"),
            ("--image-type", "image_type"),
            ("--node-version", "node_version"),
            ("--num-nodes", "num_nodes"),
            ("--max-pods-per-node", "max_pods_per_node"),
            ("--service-account", "service_account"),
        ]
        for flag, name in flags:
            value = ctx.value(name)
            if value not in (None, ""):
                argv += [flag, str(value)]
        
        if ctx.value("scopes"):
            argv += ["--scopes", ",".join(ctx.value("scopes"))]
        node_labels = _label_arg(ctx.value("node_labels"), prefixes)
        if node_labels:
            argv += ["--node-labels", node_labels]
        resource_labels = _label_arg(ctx.value("resource_labels"), prefixes)
        if resource_labels:
            argv += ["--labels", resource_labels]
        if ctx.value("taints"):
            argv += ["--node-taints", _joined(taint_set(ctx.value("taints")))]
        if ctx.value("pod_range"):
            argv += ["--pod-ipv4-range", ctx.value("pod_range")]
        if ctx.value("node_locations"):
            argv += ["--node-locations", ",".join(ctx.value("node_locations"))]
        
        argv.append("--enable-autoupgrade" if ctx.value("auto_upgrade") else "--no-enable-autoupgrade")
        argv.append("--enable-autorepair" if ctx.value("auto_repair") else "--no-enable-autorepair")
        if ctx.value("autoscaling_enabled"):
            argv.append("--enable-autoscaling")
            if ctx.value("min_nodes") is not None:
                argv += ["--min-nodes", str(ctx.value("min_nodes"))]
            if ctx.value("max_nodes") is not None:
                argv += ["--max-nodes", str(ctx.value("max_nodes"))]
        else:
            argv.append("--no-enable-autoscaling")
        if ctx.value("max_surge") is not None:
            argv += ["--max-surge-upgrade", str(ctx.value("max_surge"))]
        if ctx.value("max_unavailable") is not None:
            argv += ["--max-unavailable-upgrade", str(ctx.value("max_unavailable"))]
        if ctx.value("disable_legacy_endpoints"):
            argv += ["--metadata", "disable-legacy-endpoints=true"]
        
        skip_if = self.probe(*self._describe_argv(ident)) if guarded else None
        return f"Create node pool {ident.name} in cluster {ident.parent}", [ShellCommand.of(*argv, skip_if=skip_if)]
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        create = ActionTemplate(
            key="create_node_pool",
            tier=ActionTier.CREATE,
            required=lambda ctx: self._create(ctx, guarded=False),
            declarative=lambda ctx: self._create(ctx, guarded=True),
            required_idempotency=Idempotency.STATEFUL,
        )
        labels = label_set(self.settings.reserved_label_prefixes)
        exact = [
            "machine_type", "disk_size_gb", "disk_type", "image_type", "node_version",
            "num_nodes", "max_pods_per_node", "service_account", "pod_range",
            "auto_upgrade", "auto_repair", "autoscaling_enabled", "min_nodes", "max_nodes",
            "max_surge", "max_unavailable", "disable_legacy_endpoints",
        ]
        specs = [FieldSpec(name, Comparator.EXACT, create) for name in exact]
        specs += [
            FieldSpec("scopes", Comparator.SET, create),
            FieldSpec("node_locations", Comparator.SET, create),
            FieldSpec("node_labels", Comparator.SET, create, normalize=labels),
            FieldSpec("resource_labels", Comparator.SET, create, normalize=labels),
            FieldSpec("taints", Comparator.SET, create, normalize=taint_set),
        ]
        return specs


class NodePoolUpdate(_NodePoolOperation):
    """Update machine/disk configuration, labels, taints and autoscaling of a node pool."""
    
    title = "GKE node pool update"
    
    UPDATE_KEYS = (
        "machine_type", "disk_type", "disk_size_gb", "node_labels", "resource_labels",
        "taints", "autoscaling_enabled", "min_nodes", "max_nodes",
    )
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        self.current = self._fetch_pool()
        return self.current
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if any(values.get(key) is not None for key in self.UPDATE_KEYS):
            return []
        current = (self.current or {}).get("machine_type") or "unknown"
        return [ValuePrompt("machine_type", f"New machine type (current: {current})")]
    
    def resolve(self, values: Dict[str, Any]) -> None:
        min_nodes = values.get("min_nodes")
        max_nodes = values.get("max_nodes")
        if min_nodes is not None and max_nodes is not None and min_nodes > max_nodes:
            raise ValidationError(f"--min-nodes ({min_nodes}) must not exceed --max-nodes ({max_nodes})")
        bounded = min_nodes is not None or max_nodes is not None
        if bounded and values.get("autoscaling_enabled") is False:
            raise ValidationError("--min-nodes/--max-nodes cannot be combined with --no-enable-autoscaling")
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        desired = {key: values[key] for key in self.UPDATE_KEYS if values.get(key) is not None}
        # node bounds only apply to an autoscaled pool
        if "min_nodes" in desired or "max_nodes" in desired:
            desired.setdefault("autoscaling_enabled", True)
        return desired
    
    def _update(self, ctx: ActionContext, description: str, args: List[str]) -> Tuple[str, List[ShellCommand]]:
        ident = ctx.identity
        argv = [self.gcloud, "container", "node-pools", "update", ident.name, *self._scope_args(ident), *args]
        return description, [ShellCommand.of(*argv)]
    
    def _node_config(self, ctx: ActionContext):
        args = []
        if ctx.includes("machine_type") and ctx.value("machine_type"):
            args += ["--machine-type", str(ctx.value("machine_type"))]
        if ctx.includes("disk_type") and ctx.value("disk_type"):
            args += ["--disk-type", str(ctx.value("disk_type"))]
        if ctx.includes("disk_size_gb") and ctx.value("disk_size_gb"):
            args += ["--disk-size", str(ctx.value("disk_size_gb"))]
        if not args:
            return None
        return self._update(ctx, f"Update node configuration of {ctx.identity.name}", args)
    
    def _node_labels(self, ctx: ActionContext):
        labels = _label_arg(ctx.value("node_labels"), self.settings.reserved_label_prefixes)
        return self._update(ctx, f"Set node labels on {ctx.identity.name}", ["--node-labels", labels])
    
    def _resource_labels(self, ctx: ActionContext):
        labels = _label_arg(ctx.value("resource_labels"), self.settings.reserved_label_prefixes)
        return self._update(ctx, f"Set resource labels on {ctx.identity.name}", ["--labels", labels])
    
    def _taints(self, ctx: ActionContext):
        taints = _joined(taint_set(ctx.value("taints")))
        return self._update(ctx, f"Set node taints on {ctx.identity.name}", ["--node-taints", taints])
    
    def _autoscaling(self, ctx: ActionContext):
        if not ctx.value("autoscaling_enabled"):
            return self._update(ctx, f"Disable autoscaling on {ctx.identity.name}", ["--no-enable-autoscaling"])
        args = ["--enable-autoscaling"]
        if ctx.value("min_nodes") is not None:
            args += ["--min-nodes", str(ctx.value("min_nodes"))]
        if ctx.value("max_nodes") is not None:
            args += ["--max-nodes", str(ctx.value("max_nodes"))]
        return self._update(ctx, f"Configure autoscaling on {ctx.identity.name}", args)
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        node_config = ActionTemplate("node_config", ActionTier.MODIFY, self._node_config)
        node_labels = ActionTemplate("node_labels", ActionTier.ANNOTATE, self._node_labels)
        resource_labels = ActionTemplate("resource_labels", ActionTier.ANNOTATE, self._resource_labels)
        taints = ActionTemplate("taints", ActionTier.MODIFY, self._taints, depends_on=("node_config",))
        autoscaling = ActionTemplate("autoscaling", ActionTier.MODIFY, self._autoscaling, depends_on=("node_config",))
        labels = label_set(self.settings.reserved_label_prefixes)
        return [
            FieldSpec("machine_type", Comparator.EXACT, node_config),
            FieldSpec("disk_type", Comparator.EXACT, node_config),
            FieldSpec("disk_size_gb", Comparator.GREATER_THAN, node_config),
            FieldSpec("node_labels", Comparator.SET, node_labels, normalize=labels),
            FieldSpec("resource_labels", Comparator.SET, resource_labels, normalize=labels),
            FieldSpec("taints", Comparator.SET, taints, normalize=taint_set),
            FieldSpec("autoscaling_enabled", Comparator.EXACT, autoscaling),
            FieldSpec("min_nodes", Comparator.EXACT, autoscaling),
            FieldSpec("max_nodes", Comparator.EXACT, autoscaling),
        ]
