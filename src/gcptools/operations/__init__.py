"""Lifecycle operations: one descriptor table and state fetcher per tool."""

from .base import Operation, ValuePrompt
from .nodepool import NodePoolClone, NodePoolUpdate, validate_node_pool_name
from .workload_identity import WorkloadIdentityBind, policy_has_binding, workload_member
from .vm import VmResize, VmServiceAccount
from .disk import DiskExpand
from .iam import IamReplicate, IamBatchApply, binding_command

__all__ = [
    "Operation",
    "ValuePrompt",
    "NodePoolClone",
    "NodePoolUpdate",
    "validate_node_pool_name",
    "WorkloadIdentityBind",
    "policy_has_binding",
    "workload_member",
    "VmResize",
    "VmServiceAccount",
    "DiskExpand",
    "IamReplicate",
    "IamBatchApply",
    "binding_command",
]
