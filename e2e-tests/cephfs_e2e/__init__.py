# CephFS CSI E2E Test Library
"""Helpers correlating CephFS backend state with CSI-provisioned objects."""

from .cephfs_helper import CephFSHelper
from .config import E2EConfig
from .k8s_client import K8sClient
from .pod_exec import PodExecutor
from .resource_tracker import ResourceTracker, ResourceType

__all__ = [
    "CephFSHelper",
    "E2EConfig",
    "K8sClient",
    "PodExecutor",
    "ResourceTracker",
    "ResourceType",
]
