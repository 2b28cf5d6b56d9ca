"""Resource locator: console URLs, comma arguments and flat files."""

from .models import ResourceIdentity, ResourceKind
from .url_parser import (
    sanitize_url,
    parse_node_pool_url,
    parse_compute_url,
    parse_instance_url,
    parse_workload_identity_args,
    gsa_email,
)
from .input_files import read_list_file, validate_principal

__all__ = [
    "ResourceIdentity",
    "ResourceKind",
    "sanitize_url",
    "parse_node_pool_url",
    "parse_compute_url",
    "parse_instance_url",
    "parse_workload_identity_args",
    "gsa_email",
    "read_list_file",
    "validate_principal",
]
