"""Grow a persistent disk and, optionally, the filesystem inside the attached VM."""

import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from .base import Operation, ValuePrompt
from ..locator.models import ResourceIdentity, ResourceKind
from ..plan.builder import ActionContext, ActionTemplate, FieldSpec
from ..plan.models import ActionTier, Comparator, Idempotency, ShellCommand
from ..state.snapshots import DiskSnapshot, InstanceSnapshot, normalize_disk, normalize_instance
from ..utils.errors import StateFetchError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("operations.disk")

GROW_SCRIPT = Path(__file__).parent / "scripts" / "grow_filesystem.sh"

YES = ("y", "yes")


class DiskExpand(Operation):
    """
    Resize a disk given either a disk URL or a VM URL.
    
    For a VM URL the operator picks one of its attached disks by name or
    index. The plan identity is always the disk, with the attached VM (or the
    disk itself when unattached) as parent.
    """
    
    title = "Disk expander"
    
    def __init__(self, identity, provider, settings=None):
        super().__init__(identity, provider, settings)
        self.instance: Optional[InstanceSnapshot] = None
        self.disk: Optional[DiskSnapshot] = None
    
    def fetch_state(self) -> Optional[Dict[str, Any]]:
        ident = self.identity
        if ident.kind == ResourceKind.INSTANCE.value:
            raw = self.provider.describe_instance(ident.project, ident.location, ident.name)
            if raw is None:
                raise StateFetchError(f"Instance {ident.name} not found in {ident.project}/{ident.location}")
            self.instance = normalize_instance(raw)
            if not self.instance.disks:
                raise StateFetchError(f"No disks attached to instance {ident.name}")
            return None
        self._load_disk(ident.name)
        return self.current
    
    def _load_disk(self, name: str) -> DiskSnapshot:
        if self.disk is not None and self.disk.name == name:
            return self.disk
        ident = self.identity
        raw = self.provider.describe_disk(ident.project, ident.location, name)
        if raw is None:
            raise StateFetchError(f"Disk {name} not found in {ident.project}/{ident.location}")
        self.disk = normalize_disk(raw)
        self.current = {"disk_size_gb": self.disk.size_gb, "filesystem": False}
        return self.disk
    
    def select_disk(self, choice: str) -> str:
        """
        Resolve an attached disk by index or name.
        
        Raises:
            ValidationError: If nothing attached matches
        """
        value = str(choice).strip()
        for disk in self.instance.disks:
            if value.isdigit() and disk.index == int(value):
                return disk.disk_name
            if disk.disk_name == value:
                return disk.disk_name
        raise ValidationError(f"No attached disk matches '{value}' on instance {self.instance.name}")
    
    @property
    def attached_vm(self) -> Optional[str]:
        if self.instance is not None:
            return self.instance.name
        return self.disk.attached_instance if self.disk else None
    
    def _device_name(self, disk_name: str) -> str:
        if self.instance is not None:
            for disk in self.instance.disks:
                if disk.disk_name == disk_name and disk.device_name:
                    return disk.device_name
        return disk_name
    
    def current_summary(self) -> List[Tuple[str, str]]:
        rows = []
        if self.instance is not None:
            for disk in self.instance.disks:
                size = f"{disk.size_gb}GB" if disk.size_gb else "?"
                rows.append((f"Disk [{disk.index}]", f"{disk.disk_name} (device {disk.device_name}, {size})"))
        if self.disk is not None:
            rows.append(("Selected disk", f"{self.disk.name} ({self.disk.size_gb}GB {self.disk.type})"))
            rows.append(("Attached to", self.attached_vm or "not attached"))
        return rows
    
    def value_prompts(self, values: Dict[str, Any]) -> List[ValuePrompt]:
        if self.instance is not None and not values.get("disk"):
            names = ", ".join(f"{d.index}={d.disk_name}" for d in self.instance.disks)
            return [ValuePrompt("disk", f"Disk name or index to expand ({names})")]
        if self.instance is not None:
            values["disk"] = self.select_disk(values["disk"])
            self._load_disk(values["disk"])
        
        if values.get("size") is None:
            return [ValuePrompt("size", f"New size in GB (must be larger than {self.disk.size_gb}GB)")]
        if values.get("grow_filesystem") is None and self.attached_vm:
            return [ValuePrompt(
                "grow_filesystem",
                f"Expand the filesystem inside {self.attached_vm}?",
                default="n",
                choices=["y", "n"],
            )]
        return []
    
    def target_identity(self, values: Dict[str, Any]) -> ResourceIdentity:
        ident = self.identity
        return ResourceIdentity(
            kind=ResourceKind.DISK,
            project=ident.project,
            location=ident.location,
            parent=self.attached_vm or self.disk.name,
            name=self.disk.name,
        )
    
    def desired_state(self, values: Dict[str, Any]) -> Dict[str, Any]:
        grow = values.get("grow_filesystem")
        if isinstance(grow, str):
            grow = grow.strip().lower() in YES
        return {
            "disk_size_gb": values["size"],
            "filesystem": bool(grow) and self.attached_vm is not None,
        }
    
    def _size_probe(self, ident: ResourceIdentity, size: int) -> str:
        describe = self.probe(
            self.gcloud, "compute", "disks", "describe", ident.name,
            f"--project={ident.project}",
            f"--zone={ident.location}",
            "--format=value(sizeGb)",
        )
        return f'[ "$({describe})" -ge {size} ]'
    
    def _resize(self, ctx: ActionContext, full: bool):
        ident = ctx.identity
        size = ctx.value("disk_size_gb")
        argv = [
            self.gcloud, "compute", "disks", "resize", ident.name,
            f"--size={size}GB",
            f"--project={ident.project}",
            f"--zone={ident.location}",
            "--quiet",
        ]
        skip_if = self._size_probe(ident, size) if full else None
        return f"Resize disk {ident.name} to {size}GB", [ShellCommand.of(*argv, skip_if=skip_if)]
    
    def _grow_filesystem(self, ctx: ActionContext):
        ident = ctx.identity
        vm = self.attached_vm
        if not vm:
            return None
        device = self._device_name(ident.name)
        command = ShellCommand(segments=[
            ["cat", str(GROW_SCRIPT)],
            [
                self.gcloud, "compute", "ssh", vm,
                f"--project={ident.project}",
                f"--zone={ident.location}",
                f"--command=bash -s -- {shlex.quote(device)}",
            ],
        ])
        return f"Grow filesystem of {ident.name} inside {vm}", [command]
    
    def field_specs(self, values: Dict[str, Any]) -> List[FieldSpec]:
        resize = ActionTemplate(
            "disk_size", ActionTier.MODIFY,
            required=lambda ctx: self._resize(ctx, full=False),
            declarative=lambda ctx: self._resize(ctx, full=True),
            required_idempotency=Idempotency.STATEFUL,
        )
        filesystem = ActionTemplate(
            "filesystem", ActionTier.MODIFY, self._grow_filesystem,
            depends_on=("disk_size",),
        )
        return [
            FieldSpec("disk_size_gb", Comparator.GREATER_THAN, resize),
            FieldSpec("filesystem", Comparator.PRESENCE, filesystem),
        ]
