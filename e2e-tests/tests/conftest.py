"""In-memory stand-ins for kubectl and pod exec used by the unit tests."""

import pytest

from cephfs_e2e.cephfs_helper import CephFSHelper
from cephfs_e2e.config import E2EConfig
from cephfs_e2e.models import ExecResult


class FakeK8s:
    """Minimal K8sClient replacement backed by a dict of objects."""

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self.objects: dict[tuple[str, str | None, str], dict] = {}
        self.pods: list[dict] = []
        self.created: list[tuple[dict, str | None, bool]] = []
        self.create_errors: list[Exception] = []
        self.deleted: list[tuple[str, str, str | None]] = []
        self.delete_errors: dict[str, Exception] = {}
        self.list_calls: list[dict] = []
        self.exec_calls: list[dict] = []
        self.exec_result = ExecResult("", "", 0)

    def add(self, kind: str, name: str, obj: dict, namespace: str | None = None) -> None:
        self.objects[(kind, namespace, name)] = obj

    def get(self, kind, name, namespace=None, cluster_scoped=False):
        ns = None if cluster_scoped else (namespace or self.namespace)
        return self.objects.get((kind, ns, name))

    def get_pvc(self, name, namespace=None):
        return self.get("pvc", name, namespace=namespace)

    def get_pv(self, name):
        return self.get("pv", name, cluster_scoped=True)

    def get_pod(self, name, namespace=None):
        return self.get("pod", name, namespace=namespace)

    def get_volume_snapshot(self, name, namespace=None):
        return self.get("volumesnapshot", name, namespace=namespace)

    def get_volume_snapshot_content(self, name):
        return self.get("volumesnapshotcontent", name, cluster_scoped=True)

    def get_daemonset(self, name, namespace=None):
        return self.get("daemonset", name, namespace=namespace)

    def create(self, manifest, namespace=None, cluster_scoped=False):
        if self.create_errors:
            raise self.create_errors.pop(0)
        self.created.append((manifest, namespace, cluster_scoped))
        return manifest

    def delete(self, kind, name, namespace=None, cluster_scoped=False, **kwargs):
        if name in self.delete_errors:
            raise self.delete_errors[name]
        self.deleted.append((kind, name, None if cluster_scoped else namespace))
        return True

    def list_resources(self, kind, namespace=None, label_selector=None, field_selector=None):
        self.list_calls.append(
            {
                "kind": kind,
                "namespace": namespace,
                "label_selector": label_selector,
                "field_selector": field_selector,
            }
        )
        return list(self.pods)

    def exec_in_pod(self, pod_name, command, container=None, namespace=None, timeout=60):
        self.exec_calls.append(
            {"pod": pod_name, "command": command, "container": container, "namespace": namespace}
        )
        return self.exec_result


class FakeExecutor:
    """PodExecutor replacement returning canned results per command."""

    def __init__(self):
        self.responses: dict[str, ExecResult] = {}
        self.commands: list[tuple[str, str]] = []
        self.daemon_calls: list[dict] = []

    def respond(self, command: str, stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        self.responses[command] = ExecResult(stdout, stderr, returncode)

    def exec_in_toolbox_pod(self, command, namespace):
        self.commands.append((command, namespace))
        return self.responses.get(command, ExecResult("", "", 0))

    def exec_in_daemonset_pod(self, command, daemonset, node, container, namespace):
        self.daemon_calls.append(
            {
                "command": command,
                "daemonset": daemonset,
                "node": node,
                "container": container,
                "namespace": namespace,
            }
        )
        return self.responses.get(command, ExecResult("", "", 0))


@pytest.fixture
def fake_k8s() -> FakeK8s:
    return FakeK8s()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def config() -> E2EConfig:
    """Default coordinates with timeouts short enough for unit tests."""
    return E2EConfig(deploy_timeout=0.2, poll_interval=0.0)


@pytest.fixture
def helper(fake_k8s: FakeK8s, config: E2EConfig, fake_executor: FakeExecutor) -> CephFSHelper:
    return CephFSHelper(fake_k8s, config, executor=fake_executor)


@pytest.fixture
def bound_pvc(fake_k8s: FakeK8s) -> dict:
    """A PVC "pvc-a" in "default" bound to a CephFS PV."""
    handle = "0001-0009-rook-ceph-0000000000000001-17b95621-58e8-11ed-a0de-62a2c7b5f3ba"
    fake_k8s.add(
        "pvc",
        "pvc-a",
        {"metadata": {"name": "pvc-a"}, "spec": {"volumeName": "pvc-0a1b2c"}},
        namespace="default",
    )
    fake_k8s.add(
        "pv",
        "pvc-0a1b2c",
        {"metadata": {"name": "pvc-0a1b2c"}, "spec": {"csi": {"volumeHandle": handle}}},
    )
    return {
        "handle": handle,
        "image_name": "csi-vol-17b95621-58e8-11ed-a0de-62a2c7b5f3ba",
        "pv_name": "pvc-0a1b2c",
    }


@pytest.fixture
def ready_snapshot(fake_k8s: FakeK8s) -> dict:
    """A VolumeSnapshot "snap-a" in "default" bound to a content with a handle."""
    handle = "0001-0009-rook-ceph-0000000000000001-5f3c1d2e-58e9-11ed-a0de-62a2c7b5f3ba"
    fake_k8s.add(
        "volumesnapshot",
        "snap-a",
        {"status": {"boundVolumeSnapshotContentName": "snapcontent-1"}},
        namespace="default",
    )
    fake_k8s.add("volumesnapshotcontent", "snapcontent-1", {"status": {"snapshotHandle": handle}})
    return {
        "handle": handle,
        "snapshot_name": "csi-snap-5f3c1d2e-58e9-11ed-a0de-62a2c7b5f3ba",
    }
