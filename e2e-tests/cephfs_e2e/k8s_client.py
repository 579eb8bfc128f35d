"""Kubernetes client wrapper using kubectl for E2E tests."""

import json
import logging
import os
import re
import subprocess

import yaml

from .errors import ApiError, TransportError
from .models import ExecResult

logger = logging.getLogger(__name__)

REASON_PATTERN = re.compile(r"Error from server \((\w+)\)")


def _reason_from_stderr(stderr: str) -> str:
    match = REASON_PATTERN.search(stderr or "")
    return match.group(1) if match else ""


class K8sClient:
    """Wrapper for kubectl operations with proper error handling."""

    def __init__(self, namespace: str = "default", kubeconfig: str | None = None):
        """Initialize the K8s client.

        Args:
            namespace: Default namespace for operations
            kubeconfig: Path to kubeconfig file (uses KUBECONFIG env or default if None)
        """
        self.namespace = namespace
        self.kubeconfig = kubeconfig or os.environ.get("KUBECONFIG")

    def _kubectl(
        self,
        args: list[str],
        input_data: str | None = None,
        timeout: int = 60,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run kubectl command.

        Args:
            args: kubectl arguments
            input_data: Optional stdin data
            timeout: Command timeout in seconds
            check: Whether to raise on non-zero exit

        Returns:
            CompletedProcess with stdout/stderr

        Raises:
            subprocess.CalledProcessError: Non-zero exit and check is set
            ApiError: kubectl did not finish within timeout (reason "Timeout")
            TransportError: kubectl binary could not be started
        """
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        cmd.extend(args)

        try:
            result = subprocess.run(
                cmd,
                input=input_data,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ApiError(
                f"kubectl {' '.join(args)} timed out after {timeout}s", reason="Timeout"
            ) from e
        except OSError as e:
            raise TransportError(f"failed to run kubectl: {e}") from e

        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode,
                cmd,
                output=result.stdout,
                stderr=result.stderr,
            )
        return result

    def _ns_args(self, namespace: str | None, cluster_scoped: bool = False) -> list[str]:
        if cluster_scoped:
            return []
        return ["-n", namespace or self.namespace]

    def _kubectl_json(self, args: list[str], timeout: int = 60) -> dict | list | None:
        """Run kubectl command and parse JSON output.

        Args:
            args: kubectl arguments (without -o json)
            timeout: Command timeout

        Returns:
            Parsed JSON or None if resource not found
        """
        try:
            result = self._kubectl(args + ["-o", "json"], timeout=timeout)
            return json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            if "NotFound" in e.stderr or "not found" in e.stderr.lower():
                return None
            raise ApiError(
                f"kubectl {' '.join(args)} failed: {e.stderr.strip()}",
                reason=_reason_from_stderr(e.stderr),
                stderr=e.stderr,
            ) from e

    # -------------------------------------------------------------------------
    # Generic Resource Operations
    # -------------------------------------------------------------------------

    def create(
        self,
        manifest: str | dict,
        namespace: str | None = None,
        cluster_scoped: bool = False,
    ) -> dict:
        """Create a resource from a manifest.

        Unlike apply, this fails with reason "AlreadyExists" when the object
        is already present, so callers can tell the two cases apart.

        Args:
            manifest: YAML string or dict to create
            namespace: Namespace override
            cluster_scoped: Don't pass a namespace (StorageClass, PV, ...)

        Returns:
            Created resource as dict

        Raises:
            ApiError: kubectl rejected the request
        """
        if isinstance(manifest, dict):
            manifest = yaml.safe_dump(manifest)

        try:
            result = self._kubectl(
                self._ns_args(namespace, cluster_scoped) + ["create", "-f", "-", "-o", "json"],
                input_data=manifest,
            )
            return json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or e.output or ""
            raise ApiError(
                f"kubectl create failed: {stderr.strip() or 'unknown error'}",
                reason=_reason_from_stderr(stderr),
                stderr=stderr,
            ) from e

    def apply(self, manifest: str | dict, namespace: str | None = None) -> dict:
        """Apply a manifest (create or update resource).

        Args:
            manifest: YAML string or dict to apply
            namespace: Namespace override

        Returns:
            Applied resource as dict
        """
        if isinstance(manifest, dict):
            manifest = yaml.safe_dump(manifest)

        try:
            result = self._kubectl(
                self._ns_args(namespace) + ["apply", "-f", "-", "-o", "json"],
                input_data=manifest,
            )
            return json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or e.output or ""
            raise ApiError(
                f"kubectl apply failed: {stderr.strip() or 'unknown error'}",
                reason=_reason_from_stderr(stderr),
                stderr=stderr,
            ) from e

    def delete(
        self,
        kind: str,
        name: str,
        namespace: str | None = None,
        cluster_scoped: bool = False,
        wait: bool = True,
        timeout: int = 120,
        ignore_not_found: bool = True,
    ) -> bool:
        """Delete a resource.

        Args:
            kind: Resource kind (e.g., "pvc", "storageclass")
            name: Resource name
            namespace: Namespace override
            cluster_scoped: Don't pass a namespace
            wait: Whether to wait for deletion
            timeout: Wait timeout in seconds
            ignore_not_found: Don't error if resource doesn't exist

        Returns:
            True if deleted, False if not found
        """
        args = self._ns_args(namespace, cluster_scoped) + ["delete", kind, name]
        if wait:
            args.append("--wait=true")
            args.extend(["--timeout", f"{timeout}s"])
        if ignore_not_found:
            args.append("--ignore-not-found=true")

        try:
            self._kubectl(args, timeout=timeout + 10)
            return True
        except subprocess.CalledProcessError as e:
            if ignore_not_found and "not found" in e.stderr.lower():
                return False
            raise ApiError(
                f"kubectl delete {kind} {name} failed: {e.stderr.strip()}",
                reason=_reason_from_stderr(e.stderr),
                stderr=e.stderr,
            ) from e

    def get(
        self,
        kind: str,
        name: str,
        namespace: str | None = None,
        cluster_scoped: bool = False,
    ) -> dict | None:
        """Get a resource by name.

        Returns:
            Resource dict or None if not found
        """
        return self._kubectl_json(
            self._ns_args(namespace, cluster_scoped) + ["get", kind, name]
        )

    def list_resources(
        self,
        kind: str,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[dict]:
        """List resources of a kind.

        Args:
            kind: Resource kind
            namespace: Namespace override
            label_selector: Optional label selector
            field_selector: Optional field selector

        Returns:
            List of resource dicts
        """
        args = self._ns_args(namespace) + ["get", kind]
        if label_selector:
            args.extend(["-l", label_selector])
        if field_selector:
            args.extend(["--field-selector", field_selector])

        result = self._kubectl_json(args)
        if result and "items" in result:
            return result["items"]
        return []

    def wait_for(
        self,
        kind: str,
        name: str,
        condition: str,
        timeout: int = 60,
        namespace: str | None = None,
    ) -> bool:
        """Wait for a resource condition.

        Args:
            kind: Resource kind
            name: Resource name
            condition: Condition to wait for (e.g., "condition=Ready")
            timeout: Wait timeout in seconds
            namespace: Namespace override

        Returns:
            True if condition met, False on timeout
        """
        try:
            self._kubectl(
                self._ns_args(namespace)
                + ["wait", f"{kind}/{name}", f"--for={condition}", f"--timeout={timeout}s"],
                timeout=timeout + 10,
            )
            return True
        except subprocess.CalledProcessError:
            return False

    def wait_for_delete(
        self,
        kind: str,
        name: str,
        timeout: int = 60,
        cluster_scoped: bool = False,
    ) -> bool:
        """Wait for a resource to be deleted.

        Returns:
            True if deleted (or already gone), False on timeout
        """
        args = ["wait", f"{kind}/{name}", "--for=delete", f"--timeout={timeout}s"]
        args = self._ns_args(None, cluster_scoped) + args

        try:
            self._kubectl(args, timeout=timeout + 10)
            return True
        except subprocess.CalledProcessError:
            # Check if resource is already gone
            result = self._kubectl(
                self._ns_args(None, cluster_scoped) + ["get", kind, name], check=False
            )
            return result.returncode != 0

    def wait_pv_deleted(self, pv_name: str, timeout: int = 60) -> bool:
        """Wait for a PV (and so its backing subvolume) to be deleted."""
        return self.wait_for_delete("pv", pv_name, timeout, cluster_scoped=True)

    # -------------------------------------------------------------------------
    # Typed Lookups
    # -------------------------------------------------------------------------

    def get_pvc(self, name: str, namespace: str | None = None) -> dict | None:
        return self.get("pvc", name, namespace=namespace)

    def get_pv(self, name: str) -> dict | None:
        return self.get("pv", name, cluster_scoped=True)

    def get_pod(self, name: str, namespace: str | None = None) -> dict | None:
        return self.get("pod", name, namespace=namespace)

    def get_volume_snapshot(self, name: str, namespace: str | None = None) -> dict | None:
        return self.get("volumesnapshot", name, namespace=namespace)

    def get_volume_snapshot_content(self, name: str) -> dict | None:
        return self.get("volumesnapshotcontent", name, cluster_scoped=True)

    def get_storage_class(self, name: str) -> dict | None:
        return self.get("storageclass", name, cluster_scoped=True)

    def get_daemonset(self, name: str, namespace: str | None = None) -> dict | None:
        return self.get("daemonset", name, namespace=namespace)

    # -------------------------------------------------------------------------
    # PVC, Pod and Snapshot Operations
    # -------------------------------------------------------------------------

    def create_pvc(
        self,
        name: str,
        storage_class: str,
        size: str = "1Gi",
        access_mode: str = "ReadWriteMany",
    ) -> dict:
        """Create a PersistentVolumeClaim in the default namespace."""
        pvc = {
            "apiVersion": "v1",
            "kind": "PersistentVolumeClaim",
            "metadata": {"name": name, "namespace": self.namespace},
            "spec": {
                "accessModes": [access_mode],
                "storageClassName": storage_class,
                "resources": {"requests": {"storage": size}},
            },
        }
        return self.apply(pvc)

    def wait_pvc_bound(self, name: str, timeout: int = 60) -> bool:
        return self.wait_for("pvc", name, "jsonpath={.status.phase}=Bound", timeout)

    def create_pod_with_pvc(
        self,
        pod_name: str,
        pvc_name: str,
        mount_path: str = "/mnt/data",
        image: str = "busybox:latest",
    ) -> dict:
        """Create a Pod that mounts a PVC and sleeps."""
        pod = {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {"name": pod_name, "namespace": self.namespace},
            "spec": {
                "containers": [
                    {
                        "name": "test",
                        "image": image,
                        "command": ["sleep", "3600"],
                        "volumeMounts": [{"name": "data", "mountPath": mount_path}],
                    }
                ],
                "volumes": [
                    {"name": "data", "persistentVolumeClaim": {"claimName": pvc_name}}
                ],
                "restartPolicy": "Never",
            },
        }
        return self.apply(pod)

    def wait_pod_ready(self, pod_name: str, timeout: int = 120) -> bool:
        return self.wait_for("pod", pod_name, "condition=Ready", timeout)

    def create_snapshot(
        self,
        name: str,
        pvc_name: str,
        snapshot_class: str | None = None,
    ) -> dict:
        """Create a VolumeSnapshot of a PVC in the default namespace."""
        snapshot = {
            "apiVersion": "snapshot.storage.k8s.io/v1",
            "kind": "VolumeSnapshot",
            "metadata": {"name": name, "namespace": self.namespace},
            "spec": {
                "source": {"persistentVolumeClaimName": pvc_name},
            },
        }

        if snapshot_class:
            snapshot["spec"]["volumeSnapshotClassName"] = snapshot_class

        return self.apply(snapshot)

    def wait_snapshot_ready(self, name: str, timeout: int = 60) -> bool:
        return self.wait_for(
            "volumesnapshot", name, "jsonpath={.status.readyToUse}=true", timeout
        )

    def exec_in_pod(
        self,
        pod_name: str,
        command: list[str],
        container: str | None = None,
        namespace: str | None = None,
        timeout: int = 60,
    ) -> ExecResult:
        """Execute command in a Pod.

        Args:
            pod_name: Pod name
            command: Command to execute
            container: Container name (optional)
            namespace: Namespace override
            timeout: Execution timeout

        Returns:
            ExecResult with stdout, stderr and exit code
        """
        args = self._ns_args(namespace) + ["exec", pod_name]
        if container:
            args.extend(["-c", container])
        args.append("--")
        args.extend(command)

        result = self._kubectl(args, timeout=timeout, check=False)
        return ExecResult(result.stdout, result.stderr, result.returncode)

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def cluster_info(self) -> bool:
        """Check if cluster is accessible."""
        try:
            self._kubectl(["cluster-info"], timeout=10)
            return True
        except (subprocess.CalledProcessError, ApiError, TransportError) as e:
            logger.warning("cluster is not reachable: %s", e)
            return False
