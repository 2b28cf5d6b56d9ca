"""Parse console URLs and comma arguments into resource identities."""

import re
from urllib.parse import urlparse, parse_qs
from typing import Optional, Tuple
from .models import ResourceIdentity, ResourceKind
from ..utils.errors import ParseError
from ..utils.logging import get_logger

logger = get_logger("locator.url_parser")

NODE_POOL_URL_EXAMPLE = (
    "https://console.cloud.google.com/kubernetes/nodepool/<location>/<cluster>/<nodepool>?project=<project>"
)
INSTANCE_URL_EXAMPLE = (
    "https://console.cloud.google.com/compute/instancesDetail/zones/<zone>/instances/<vm>?project=<project>"
)
DISK_URL_EXAMPLE = (
    "https://console.cloud.google.com/compute/disksDetail/zones/<zone>/disks/<disk>?project=<project>"
)

_NODE_POOL_RE = re.compile(r"/kubernetes/nodepool/([^/?#]+)/([^/?#]+)/([^/?#]+)")
_ZONED_RE = re.compile(r"zones/([^/?#]+)/(instances|disks)/([^/?#]+)")
_PATH_PROJECT_RE = re.compile(r"projects/([^/?#]+)/zones")
_QUERY_PROJECT_RE = re.compile(r"project=([^&?#]+)")


def sanitize_url(url: str) -> str:
    """
    Remove shell-added escapes and trailing slashes.
    
    Terminals frequently paste URLs as ``...nodepool/a/b/c\\?project\\=p``.
    """
    if url is None:
        raise ParseError("No URL provided")
    cleaned = url.strip().replace("\\", "")
    return cleaned.rstrip("/")


def _project_from(url: str) -> str:
    """Project from path (projects/<p>/zones) first, then the project= query parameter."""
    path_match = _PATH_PROJECT_RE.search(url)
    if path_match:
        return path_match.group(1)
    
    query = urlparse(url).query
    if query:
        values = parse_qs(query).get("project")
        if values and values[0]:
            return values[0]
    
    # Fragment-style or malformed query strings
    query_match = _QUERY_PROJECT_RE.search(url)
    return query_match.group(1) if query_match else ""


def parse_node_pool_url(url: str) -> ResourceIdentity:
    """
    Parse a GKE node pool console URL.
    
    Raises:
        ParseError: If the URL is not a node pool URL or a field is missing
    """
    cleaned = sanitize_url(url)
    match = _NODE_POOL_RE.search(cleaned)
    if not match:
        raise ParseError(
            f"URL does not look like a node pool URL: {cleaned}. "
            f"Expected: {NODE_POOL_URL_EXAMPLE}"
        )
    location, cluster, node_pool = match.groups()
    identity = ResourceIdentity(
        kind=ResourceKind.NODE_POOL,
        project=_project_from(cleaned),
        location=location,
        parent=cluster,
        name=node_pool,
    )
    identity.require_complete(cleaned)
    logger.debug(f"Parsed node pool identity: {identity}")
    return identity


def parse_compute_url(url: str, allowed: Tuple[str, ...] = ("instances", "disks")) -> ResourceIdentity:
    """
    Parse a Compute Engine VM or disk console URL.
    
    A VM identity uses the instance as both parent and name. A disk identity
    uses the disk as its own parent until the attached VM is known.
    
    Raises:
        ParseError: If the URL matches neither pattern or the project is missing
    """
    cleaned = sanitize_url(url)
    match = _ZONED_RE.search(cleaned)
    if not match or match.group(2) not in allowed:
        expected = INSTANCE_URL_EXAMPLE if allowed == ("instances",) else f"{INSTANCE_URL_EXAMPLE} or {DISK_URL_EXAMPLE}"
        raise ParseError(f"URL does not match a supported Compute Engine pattern: {cleaned}. Expected: {expected}")
    
    zone, collection, name = match.groups()
    kind = ResourceKind.INSTANCE if collection == "instances" else ResourceKind.DISK
    identity = ResourceIdentity(
        kind=kind,
        project=_project_from(cleaned),
        location=zone,
        parent=name,
        name=name,
    )
    identity.require_complete(cleaned)
    logger.debug(f"Parsed compute identity: {identity}")
    return identity


def parse_instance_url(url: str) -> ResourceIdentity:
    """Parse a VM console URL; disk URLs are rejected."""
    return parse_compute_url(url, allowed=("instances",))


def parse_workload_identity_args(value: str) -> ResourceIdentity:
    """
    Parse ``PROJECT,NAMESPACE,GSA`` or ``PROJECT,NAMESPACE,KSA,GSA``.
    
    When the Kubernetes service account is omitted it defaults to the GCP
    service account name.
    
    Raises:
        ParseError: On a wrong number of fields or an empty field
    """
    parts = [p.strip() for p in (value or "").split(",")]
    if len(parts) == 3:
        project, namespace, gsa = parts
        ksa = gsa
    elif len(parts) == 4:
        project, namespace, ksa, gsa = parts
        ksa = ksa or gsa
    else:
        raise ParseError(
            f"Expected PROJECT,NAMESPACE,GSA or PROJECT,NAMESPACE,KSA,GSA, got: {value!r}"
        )
    
    # Accept a full email for the GSA and keep only the account id
    gsa = gsa.split("@", 1)[0]
    identity = ResourceIdentity(
        kind=ResourceKind.WORKLOAD_IDENTITY,
        project=project,
        location=namespace,
        parent=ksa,
        name=gsa,
    )
    identity.require_complete(value)
    return identity


def gsa_email(identity: ResourceIdentity) -> str:
    """GCP service account email for a workload identity."""
    return f"{identity.name}@{identity.project}.iam.gserviceaccount.com"


def project_of_service_account(email: str) -> Optional[str]:
    """Project id embedded in a user-managed service account email, if any."""
    match = re.match(r"^[^@]+@([^.]+)\.iam\.gserviceaccount\.com$", email or "")
    return match.group(1) if match else None
