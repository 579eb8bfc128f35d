"""Resource tracker for coordinated E2E test cleanup.

Deletes objects created by a scenario in dependency order:
1. Pods (release PVC usage)
2. VolumeSnapshots (depend on source volumes)
3. PVCs (need the StorageClass and secrets for DeleteVolume)
4. StorageClasses
5. Secrets (deleted last so the provisioner can still read credentials)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

from .errors import CephFSE2EError

if TYPE_CHECKING:
    from .k8s_client import K8sClient

logger = logging.getLogger(__name__)


class ResourceType(IntEnum):
    """Resource types in cleanup priority order (lower = cleanup first)."""

    POD = 1
    SNAPSHOT = 2
    PVC = 3
    STORAGE_CLASS = 4
    SECRET = 5


KINDS = {
    ResourceType.POD: "pod",
    ResourceType.SNAPSHOT: "volumesnapshot",
    ResourceType.PVC: "pvc",
    ResourceType.STORAGE_CLASS: "storageclass",
    ResourceType.SECRET: "secret",
}


@dataclass
class TrackedResource:
    """A resource being tracked for cleanup."""

    name: str
    resource_type: ResourceType
    namespace: str | None = None  # None for cluster-scoped objects

    @property
    def kind(self) -> str:
        return KINDS[self.resource_type]


@dataclass
class ResourceTracker:
    """Tracks test resources and coordinates cleanup in correct order.

    Usage:
        tracker = ResourceTracker(k8s)
        tracker.track(ResourceType.STORAGE_CLASS, "csi-cephfs-sc")
        tracker.track(ResourceType.PVC, "pvc-a", namespace="default")

        # At test end:
        tracker.cleanup_all()  # Deletes in correct order
    """

    k8s: "K8sClient"
    resources: list[TrackedResource] = field(default_factory=list)

    def track(
        self, resource_type: ResourceType, name: str, namespace: str | None = None
    ) -> None:
        """Track a resource for cleanup.

        Args:
            resource_type: What kind of object it is
            name: Object name
            namespace: Namespace (ignored for StorageClasses)
        """
        if resource_type == ResourceType.STORAGE_CLASS:
            namespace = None
        self.resources.append(TrackedResource(name, resource_type, namespace))

    def cleanup_all(self, timeout: int = 60) -> list[str]:
        """Clean up all tracked resources in correct dependency order.

        Returns:
            List of warning messages for resources that failed to delete
        """
        warnings = []

        # Within same type, reverse creation order (LIFO)
        sorted_resources = sorted(
            enumerate(self.resources),
            key=lambda x: (x[1].resource_type, -x[0]),
        )

        for _, resource in sorted_resources:
            try:
                self.k8s.delete(
                    resource.kind,
                    resource.name,
                    namespace=resource.namespace,
                    cluster_scoped=resource.namespace is None,
                    wait=True,
                    timeout=timeout,
                    ignore_not_found=True,
                )
            except CephFSE2EError as e:
                msg = f"Failed to delete {resource.kind} {resource.name}: {e}"
                warnings.append(msg)
                logger.warning(msg)

        self.resources.clear()

        return warnings

    def __len__(self) -> int:
        return len(self.resources)
