"""Configuration module: load tool settings from layered YAML files."""

from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config

logger = get_logger("config")


class ToolSettings(BaseModel):
    """Flattened, validated settings consumed by the state provider and dispatcher."""
    gcloud_bin: str = Field("gcloud", description="gcloud executable")
    kubectl_bin: str = Field("kubectl", description="kubectl executable")
    command_timeout: Optional[float] = Field(None, description="Timeout in seconds for provider calls")
    output_dir: str = Field(".", description="Directory generated scripts are written to")
    shebang: str = Field("#!/usr/bin/env bash", description="Interpreter line of generated scripts")
    strict_mode: str = Field("set -euo pipefail", description="Strict-failure directive of generated scripts")
    reserved_label_prefixes: List[str] = Field(default_factory=lambda: ["goog-gke"], description="System label prefixes never re-applied")
    workload_identity_role: str = Field("roles/iam.workloadIdentityUser")
    workload_identity_annotation: str = Field("iam.gke.io/gcp-service-account")
    vm_scopes: str = Field("cloud-platform", description="Scopes set alongside a VM service account")
    roles_file: str = Field("roles.txt")
    projects_file: str = Field("projects.txt")
    
    class Config:
        frozen = True


def load_settings(config_path: Optional[str] = None) -> ToolSettings:
    """
    Load and validate settings.
    
    Args:
        config_path: Optional explicit config YAML overriding the defaults
        
    Returns:
        ToolSettings
        
    Raises:
        ConfigError: If config cannot be loaded or is invalid
    """
    config = load_config(config_path)
    providers = config.get("providers") or {}
    scripts = config.get("scripts") or {}
    labels = config.get("labels") or {}
    wi = config.get("workload_identity") or {}
    vm = config.get("vm") or {}
    iam = config.get("iam") or {}
    
    values = {
        "gcloud_bin": providers.get("gcloud_bin"),
        "kubectl_bin": providers.get("kubectl_bin"),
        "command_timeout": providers.get("command_timeout"),
        "output_dir": scripts.get("output_dir"),
        "shebang": scripts.get("shebang"),
        "strict_mode": scripts.get("strict_mode"),
        "reserved_label_prefixes": labels.get("reserved_prefixes"),
        "workload_identity_role": wi.get("role"),
        "workload_identity_annotation": wi.get("annotation_key"),
        "vm_scopes": vm.get("service_account_scopes"),
        "roles_file": iam.get("roles_file"),
        "projects_file": iam.get("projects_file"),
    }
    # Missing keys fall back to model defaults, except command_timeout where null is meaningful
    values = {k: v for k, v in values.items() if v is not None or k == "command_timeout"}
    
    try:
        settings = ToolSettings(**values)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    
    logger.debug(f"Loaded settings: {settings}")
    return settings


__all__ = ["ToolSettings", "load_settings", "load_config"]
