"""Configuration for the CephFS E2E helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXAMPLES_PATH = Path(__file__).resolve().parent.parent / "resources" / "cephfs"


@dataclass(frozen=True)
class E2EConfig:
    """Cluster coordinates and timeouts used by every helper.

    Attributes:
        rook_namespace: Namespace running the Rook toolbox pod
        csi_namespace: Namespace the CephFS CSI driver is deployed in
        filesystem_name: CephFS filesystem the driver provisions from
        subvolume_group: Subvolume group the driver creates subvolumes in
        data_pool: Data pool set on StorageClasses when a pool is requested
        deploy_timeout: Seconds to keep retrying object creation
        poll_interval: Seconds between creation attempts
        toolbox_label: Label selector of the toolbox pod
        daemonset_name: Node plugin daemonset name
        container_name: Node plugin container name
        provisioner_secret_name: Secret used by provisioner and expander
        node_plugin_secret_name: Secret used for node staging
        examples_path: Directory holding storageclass.yaml and secret.yaml
        cluster_id: Fixed clusterID; looked up with "ceph fsid" when None
    """

    rook_namespace: str = "rook-ceph"
    csi_namespace: str = "default"
    filesystem_name: str = "myfs"
    subvolume_group: str = "e2e"
    data_pool: str = "myfs-replicated"
    deploy_timeout: float = 600.0
    poll_interval: float = 2.0
    toolbox_label: str = "app=rook-ceph-tools"
    daemonset_name: str = "csi-cephfsplugin"
    container_name: str = "csi-cephfsplugin"
    provisioner_secret_name: str = "cephfs-provisioner-secret"
    node_plugin_secret_name: str = "cephfs-node-plugin-secret"
    examples_path: Path = field(default=DEFAULT_EXAMPLES_PATH)
    cluster_id: str | None = None

    @property
    def storage_class_template(self) -> Path:
        return Path(self.examples_path) / "storageclass.yaml"

    @property
    def secret_template(self) -> Path:
        return Path(self.examples_path) / "secret.yaml"

    @classmethod
    def from_env(cls, **overrides) -> "E2EConfig":
        """Build a config from environment variables.

        Explicit keyword overrides win over the environment; variables that
        are unset keep the dataclass defaults.
        """
        env = {
            "rook_namespace": os.environ.get("ROOK_NAMESPACE"),
            "csi_namespace": os.environ.get("CEPH_CSI_NAMESPACE"),
            "filesystem_name": os.environ.get("CEPHFS_FILESYSTEM"),
            "subvolume_group": os.environ.get("CEPHFS_SUBVOLUMEGROUP"),
            "cluster_id": os.environ.get("CEPHFS_CLUSTER_ID"),
        }
        if os.environ.get("DEPLOY_TIMEOUT"):
            env["deploy_timeout"] = float(os.environ["DEPLOY_TIMEOUT"])
        if os.environ.get("CEPHFS_EXAMPLES_PATH"):
            env["examples_path"] = Path(os.environ["CEPHFS_EXAMPLES_PATH"])

        values = {k: v for k, v in env.items() if v is not None}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
