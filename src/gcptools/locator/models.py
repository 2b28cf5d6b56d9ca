"""Pydantic models for parsed resource identities."""

from enum import Enum
from pydantic import BaseModel, Field
from ..utils.errors import MissingIdentityFieldError


class ResourceKind(str, Enum):
    """Kinds of resources the locator understands."""
    NODE_POOL = "node_pool"
    INSTANCE = "instance"
    DISK = "disk"
    WORKLOAD_IDENTITY = "workload_identity"
    IAM_PRINCIPAL = "iam_principal"
    IAM_BATCH = "iam_batch"


IDENTITY_FIELDS = ("project", "location", "parent", "name")


class ResourceIdentity(BaseModel):
    """
    Immutable identity of the resource a run operates on.
    
    The four identity fields are interpreted per kind: for a node pool the
    parent is the cluster; for a VM or an unattached disk the parent is the
    resource itself; for workload identity the location is the namespace.
    """
    kind: ResourceKind = Field(..., description="Resource kind")
    project: str = Field("", description="Provider-assigned project id")
    location: str = Field("", description="Region, zone, namespace or 'global'")
    parent: str = Field("", description="Parent resource name (cluster/instance)")
    name: str = Field("", description="Target resource name")
    
    class Config:
        frozen = True
        use_enum_values = True
    
    def missing_fields(self) -> list:
        """Return identity fields that are empty."""
        return [f for f in IDENTITY_FIELDS if not str(getattr(self, f) or "").strip()]
    
    def require_complete(self, source: str = "") -> "ResourceIdentity":
        """
        Ensure every identity field is set before any state fetch.
        
        Raises:
            MissingIdentityFieldError: For the first empty field
        """
        missing = self.missing_fields()
        if missing:
            raise MissingIdentityFieldError(missing[0], source)
        return self
    
    def with_name(self, name: str) -> "ResourceIdentity":
        """Copy of this identity targeting a different resource name."""
        return self.model_copy(update={"name": name})
    
    def __str__(self) -> str:
        return f"{self.kind}:{self.project}/{self.location}/{self.parent}/{self.name}"
