"""CephFS backend inspection for E2E tests.

Runs ceph administrative commands in the Rook toolbox pod and correlates
the results with the PVCs and VolumeSnapshots that produced them.
"""

import logging

from . import ceph_commands
from .config import E2EConfig
from .correlator import resolve_backing_snapshot_name, resolve_image_info
from .errors import CommandError, NotReadyError, TransportError
from .k8s_client import K8sClient
from .manifests import load_secret, load_storage_class
from .models import Snapshot, SnapshotMetadata, Subvolume, SubvolumeMetadata
from .output_parser import (
    check_result,
    parse_path,
    parse_snapshot_metadata,
    parse_snapshots,
    parse_subvolume_metadata,
    parse_subvolumes,
)
from .pod_exec import PodExecutor
from .provisioner import ensure_created
from .verification import assert_group_path

logger = logging.getLogger(__name__)

SECRET_PARAMS = {
    "csi.storage.k8s.io/provisioner-secret": "provisioner_secret_name",
    "csi.storage.k8s.io/controller-expand-secret": "provisioner_secret_name",
    "csi.storage.k8s.io/node-stage-secret": "node_plugin_secret_name",
}


class CephFSHelper:
    """Observe and clean up CephFS state behind CSI-provisioned objects."""

    def __init__(
        self,
        k8s: K8sClient,
        config: E2EConfig,
        executor: PodExecutor | None = None,
    ):
        """Initialize the helper.

        Args:
            k8s: K8sClient instance
            config: Cluster coordinates and timeouts
            executor: Command executor (built from k8s if None)
        """
        self.k8s = k8s
        self.config = config
        self.executor = executor or PodExecutor(k8s, toolbox_label=config.toolbox_label)

    def _run_admin(self, command: str) -> str:
        """Run a ceph command in the toolbox and return its stdout."""
        result = self.executor.exec_in_toolbox_pod(command, self.config.rook_namespace)
        return check_result(result, command)

    def _fs(self, filesystem: str | None) -> str:
        return filesystem or self.config.filesystem_name

    def _group(self, group: str | None) -> str:
        return group or self.config.subvolume_group

    # -------------------------------------------------------------------------
    # Cluster
    # -------------------------------------------------------------------------

    def get_cluster_id(self) -> str:
        """Return the Ceph cluster fsid."""
        return self._run_admin(ceph_commands.fsid()).strip("\n")

    # -------------------------------------------------------------------------
    # Subvolume Groups
    # -------------------------------------------------------------------------

    def validate_subvolumegroup(self, group: str) -> None:
        """Check the subvolume group exists at /volumes/<group>.

        Raises:
            CommandError: getpath failed
            VerificationError: Path differs from /volumes/<group>
        """
        path = self._run_admin(
            ceph_commands.subvolumegroup_getpath(self.config.filesystem_name, group)
        )
        assert_group_path(parse_path(path), group)

    def create_subvolumegroup(self, group: str) -> None:
        self._run_admin(ceph_commands.subvolumegroup_create(self.config.filesystem_name, group))

    def delete_subvolumegroup(self, group: str) -> None:
        self._run_admin(ceph_commands.subvolumegroup_rm(self.config.filesystem_name, group))

    # -------------------------------------------------------------------------
    # Subvolumes
    # -------------------------------------------------------------------------

    def create_subvolume(
        self, subvolume: str, group: str | None = None, size: int | None = None
    ) -> None:
        self._run_admin(
            ceph_commands.subvolume_create(
                self.config.filesystem_name, subvolume, self._group(group), size
            )
        )

    def list_subvolumes(
        self, filesystem: str | None = None, group: str | None = None
    ) -> list[Subvolume]:
        """List subvolumes in a group.

        Args:
            filesystem: Filesystem name (config default if None)
            group: Subvolume group (config default if None)

        Returns:
            List of Subvolume, empty when ceph prints nothing
        """
        stdout = self._run_admin(ceph_commands.subvolume_ls(self._fs(filesystem), self._group(group)))
        return parse_subvolumes(stdout)

    def list_subvolume_metadata(
        self, subvolume: str, filesystem: str | None = None, group: str | None = None
    ) -> SubvolumeMetadata:
        stdout = self._run_admin(
            ceph_commands.subvolume_metadata_ls(self._fs(filesystem), subvolume, self._group(group))
        )
        return parse_subvolume_metadata(stdout)

    def get_subvolume_path(
        self, subvolume: str, filesystem: str | None = None, group: str | None = None
    ) -> str:
        stdout = self._run_admin(
            ceph_commands.subvolume_getpath(self._fs(filesystem), self._group(group), subvolume)
        )
        return parse_path(stdout)

    def delete_backing_volume(self, namespace: str, pvc_name: str) -> None:
        """Remove the subvolume backing a PVC.

        Raises:
            NotReadyError: PVC not bound yet
            CommandError: ceph refused the removal
        """
        image = resolve_image_info(self.k8s, namespace, pvc_name)
        command = ceph_commands.subvolume_rm(
            self.config.filesystem_name, image.image_name, self.config.subvolume_group
        )
        try:
            self._run_admin(command)
        except CommandError as e:
            raise CommandError(
                f"error deleting backing volume {image.image_name}",
                command=command,
                stderr=e.stderr,
            ) from e

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def list_snapshots(
        self, subvolume: str, filesystem: str | None = None, group: str | None = None
    ) -> list[Snapshot]:
        stdout = self._run_admin(
            ceph_commands.subvolume_snapshot_ls(self._fs(filesystem), subvolume, self._group(group))
        )
        return parse_snapshots(stdout)

    def list_snapshot_metadata(
        self,
        subvolume: str,
        snapshot: str,
        filesystem: str | None = None,
        group: str | None = None,
    ) -> SnapshotMetadata:
        stdout = self._run_admin(
            ceph_commands.subvolume_snapshot_metadata_ls(
                self._fs(filesystem), subvolume, snapshot, self._group(group)
            )
        )
        return parse_snapshot_metadata(stdout)

    def get_snapshot_name(self, namespace: str, snapshot_name: str) -> str:
        """Resolve the subvolume snapshot name behind a VolumeSnapshot."""
        return resolve_backing_snapshot_name(self.k8s, namespace, snapshot_name)

    def delete_backing_snapshot(
        self,
        pvc_namespace: str,
        pvc_name: str,
        snapshot_namespace: str,
        snapshot_name: str,
    ) -> None:
        """Remove the subvolume snapshot backing a VolumeSnapshot."""
        snap = self.get_snapshot_name(snapshot_namespace, snapshot_name)
        image = resolve_image_info(self.k8s, pvc_namespace, pvc_name)
        command = ceph_commands.subvolume_snapshot_rm(
            self.config.filesystem_name, image.image_name, snap, self.config.subvolume_group
        )
        try:
            self._run_admin(command)
        except CommandError as e:
            raise CommandError(
                f"error deleting backing snapshot {snap}", command=command, stderr=e.stderr
            ) from e

    # -------------------------------------------------------------------------
    # Kubernetes Objects
    # -------------------------------------------------------------------------

    def build_storage_class(
        self, enable_pool: bool = False, params: dict[str, str] | None = None
    ) -> dict:
        """Build the CephFS StorageClass from the bundled template.

        Args:
            enable_pool: Set the data pool parameter
            params: Parameters overriding the defaults

        Returns:
            StorageClass manifest
        """
        sc = load_storage_class(self.config.storage_class_template)
        parameters = sc["parameters"]
        parameters["fsName"] = self.config.filesystem_name
        for prefix, attr in SECRET_PARAMS.items():
            parameters[f"{prefix}-namespace"] = self.config.csi_namespace
            parameters[f"{prefix}-name"] = getattr(self.config, attr)

        if enable_pool:
            parameters["pool"] = self.config.data_pool

        params = params or {}
        parameters.update(params)

        if "clusterID" not in params:
            parameters["clusterID"] = self.config.cluster_id or self.get_cluster_id()

        return sc

    def create_storage_class(
        self, enable_pool: bool = False, params: dict[str, str] | None = None
    ) -> tuple[dict, bool]:
        """Create the CephFS StorageClass, retrying transient API errors.

        Returns:
            The submitted StorageClass manifest, and whether this call
            created it (False when it already existed)

        Raises:
            PermanentError: The API server rejected the StorageClass
            PollTimeoutError: Creation kept failing until deploy_timeout
        """
        sc = self.build_storage_class(enable_pool, params)
        name = sc["metadata"]["name"]
        created = ensure_created(
            lambda: self.k8s.create(sc, cluster_scoped=True),
            f"StorageClass {name!r}",
            timeout=self.config.deploy_timeout,
            interval=self.config.poll_interval,
        )
        return sc, created

    def create_secret(
        self, secret_name: str | None, user_name: str, user_key: str
    ) -> dict:
        """Create an admin-credential secret in the CSI namespace.

        Args:
            secret_name: Secret name (template name if empty)
            user_name: Ceph user stored as adminID
            user_key: Ceph key stored as adminKey

        Returns:
            Created Secret resource
        """
        secret = load_secret(self.config.secret_template)
        if secret_name:
            secret["metadata"]["name"] = secret_name
        secret["stringData"]["adminID"] = user_name
        secret["stringData"]["adminKey"] = user_key
        secret["stringData"].pop("userID", None)
        secret["stringData"].pop("userKey", None)
        secret["metadata"]["namespace"] = self.config.csi_namespace
        return self.k8s.create(secret, namespace=self.config.csi_namespace)

    def unmount_volume(self, namespace: str, app_name: str, pvc_name: str) -> None:
        """Unmount a PVC from the node hosting an application pod.

        Output on stderr is only logged; a failed exec raises.

        Raises:
            NotReadyError: Pod or PVC not found, PVC unbound or pod unscheduled
            TransportError: The umount could not be run
        """
        pod = self.k8s.get_pod(app_name, namespace=namespace)
        if not pod:
            raise NotReadyError(f"pod {namespace}/{app_name} not found")
        pvc = self.k8s.get_pvc(pvc_name, namespace=namespace)
        if not pvc:
            raise NotReadyError(f"pvc {namespace}/{pvc_name} not found")

        pv_name = pvc.get("spec", {}).get("volumeName")
        if not pv_name:
            raise NotReadyError(f"pvc {namespace}/{pvc_name} is not bound")
        node = pod.get("spec", {}).get("nodeName")
        if not node:
            raise NotReadyError(f"pod {namespace}/{app_name} is not scheduled")

        command = ceph_commands.umount_csi_volume(pod["metadata"]["uid"], pv_name)
        result = self.executor.exec_in_daemonset_pod(
            command,
            self.config.daemonset_name,
            node,
            self.config.container_name,
            self.config.csi_namespace,
        )
        if result.stderr:
            logger.warning("StdErr occurred: %s", result.stderr.strip())
        if result.returncode != 0:
            raise TransportError(
                f"umount exited with code {result.returncode}",
                command=command,
                returncode=result.returncode,
            )
