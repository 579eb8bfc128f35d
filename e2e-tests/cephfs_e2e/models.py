"""Typed records decoded from ceph command output."""

from dataclasses import dataclass

# Metadata keys the CSI driver sets on subvolumes and snapshots
PVC_NAME_KEY = "csi.storage.k8s.io/pvc/name"
PVC_NAMESPACE_KEY = "csi.storage.k8s.io/pvc/namespace"
PV_NAME_KEY = "csi.storage.k8s.io/pv/name"
CLUSTER_NAME_KEY = "csi.ceph.com/cluster/name"
VOLSNAP_NAME_KEY = "csi.storage.k8s.io/volumesnapshot/name"
VOLSNAP_NAMESPACE_KEY = "csi.storage.k8s.io/volumesnapshot/namespace"
VOLSNAP_CONTENT_NAME_KEY = "csi.storage.k8s.io/volumesnapshotcontent/name"


@dataclass(frozen=True)
class ExecResult:
    """Raw output of a command run in a pod."""

    stdout: str
    stderr: str
    returncode: int


@dataclass(frozen=True)
class Subvolume:
    """A CephFS subvolume as listed by "ceph fs subvolume ls"."""

    name: str


@dataclass(frozen=True)
class Snapshot:
    """A subvolume snapshot as listed by "ceph fs subvolume snapshot ls"."""

    name: str


@dataclass(frozen=True)
class SubvolumeMetadata:
    """Provenance labels the driver attaches to a subvolume."""

    pvc_name: str = ""
    pvc_namespace: str = ""
    pv_name: str = ""
    cluster_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SubvolumeMetadata":
        return cls(
            pvc_name=data.get(PVC_NAME_KEY, ""),
            pvc_namespace=data.get(PVC_NAMESPACE_KEY, ""),
            pv_name=data.get(PV_NAME_KEY, ""),
            cluster_name=data.get(CLUSTER_NAME_KEY, ""),
        )


@dataclass(frozen=True)
class SnapshotMetadata:
    """Provenance labels the driver attaches to a subvolume snapshot."""

    volume_snapshot_name: str = ""
    volume_snapshot_namespace: str = ""
    volume_snapshot_content_name: str = ""
    cluster_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotMetadata":
        return cls(
            volume_snapshot_name=data.get(VOLSNAP_NAME_KEY, ""),
            volume_snapshot_namespace=data.get(VOLSNAP_NAMESPACE_KEY, ""),
            volume_snapshot_content_name=data.get(VOLSNAP_CONTENT_NAME_KEY, ""),
            cluster_name=data.get(CLUSTER_NAME_KEY, ""),
        )


@dataclass(frozen=True)
class ImageInfo:
    """Backing subvolume resolved from a PersistentVolumeClaim."""

    image_id: str
    image_name: str
    csi_volume_handle: str
    pv_name: str
