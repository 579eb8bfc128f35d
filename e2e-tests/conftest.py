"""Pytest configuration and fixtures for CephFS CSI E2E tests."""

import os
import uuid
from typing import Callable, Generator

import pytest

from cephfs_e2e.cephfs_helper import CephFSHelper
from cephfs_e2e.config import E2EConfig
from cephfs_e2e.k8s_client import K8sClient
from cephfs_e2e.resource_tracker import ResourceTracker, ResourceType


# -------------------------------------------------------------------------
# Configuration
# -------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run tests against a live Kubernetes cluster with Rook CephFS",
    )
    parser.addoption(
        "--namespace",
        action="store",
        default=os.environ.get("TEST_NAMESPACE", "default"),
        help="Kubernetes namespace for test PVCs and snapshots",
    )
    parser.addoption(
        "--kubeconfig",
        action="store",
        default=os.environ.get("KUBECONFIG"),
        help="Path to kubeconfig file",
    )
    parser.addoption(
        "--rook-namespace",
        action="store",
        default=None,
        help="Namespace of the Rook toolbox pod (env ROOK_NAMESPACE)",
    )
    parser.addoption(
        "--csi-namespace",
        action="store",
        default=None,
        help="Namespace of the CephFS CSI driver (env CEPH_CSI_NAMESPACE)",
    )
    parser.addoption(
        "--filesystem",
        action="store",
        default=None,
        help="CephFS filesystem name (env CEPHFS_FILESYSTEM)",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "e2e: needs a live cluster, enabled with --run-e2e")
    config.addinivalue_line("markers", "slow: marks tests as slow running")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="needs --run-e2e and a live cluster")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


# -------------------------------------------------------------------------
# Session-scoped Fixtures
# -------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_namespace(request: pytest.FixtureRequest) -> str:
    """Get the test namespace."""
    return request.config.getoption("--namespace")


@pytest.fixture(scope="session")
def e2e_config(request: pytest.FixtureRequest) -> E2EConfig:
    """Cluster coordinates from the environment and command line."""
    return E2EConfig.from_env(
        rook_namespace=request.config.getoption("--rook-namespace"),
        csi_namespace=request.config.getoption("--csi-namespace"),
        filesystem_name=request.config.getoption("--filesystem"),
    )


@pytest.fixture(scope="session")
def k8s(request: pytest.FixtureRequest, test_namespace: str) -> K8sClient:
    """K8s client for the test session."""
    kubeconfig = request.config.getoption("--kubeconfig")
    client = K8sClient(namespace=test_namespace, kubeconfig=kubeconfig)

    # Verify cluster access
    if not client.cluster_info():
        pytest.fail("Cannot connect to Kubernetes cluster")

    return client


@pytest.fixture(scope="session")
def cephfs(k8s: K8sClient, e2e_config: E2EConfig) -> CephFSHelper:
    """CephFS helper bound to the live cluster."""
    return CephFSHelper(k8s, e2e_config)


@pytest.fixture(scope="session")
def storage_class(k8s: K8sClient, cephfs: CephFSHelper) -> Generator[str, None, None]:
    """Create the CephFS StorageClass at session start.

    Deleted at the end only if this session created it.
    """
    sc, created = cephfs.create_storage_class()
    name = sc["metadata"]["name"]
    yield name
    if created:
        k8s.delete("storageclass", name, cluster_scoped=True, ignore_not_found=True)


# -------------------------------------------------------------------------
# Function-scoped Fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def unique_name() -> str:
    """Generate unique resource names for this test."""
    return f"e2e-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def resource_tracker(k8s: K8sClient) -> Generator[ResourceTracker, None, None]:
    """Centralized resource tracker for coordinated cleanup."""
    tracker = ResourceTracker(k8s=k8s)
    yield tracker
    tracker.cleanup_all(timeout=60)


@pytest.fixture
def pvc_factory(
    k8s: K8sClient,
    unique_name: str,
    storage_class: str,
    resource_tracker: ResourceTracker,
) -> Callable:
    """Factory for creating CephFS PVCs with automatic cleanup."""
    created_count = 0

    def create(size: str = "1Gi", name_suffix: str = "") -> str:
        nonlocal created_count
        suffix = f"-{name_suffix}" if name_suffix else f"-{created_count}"
        name = f"pvc-{unique_name}{suffix}"
        k8s.create_pvc(name, storage_class, size)
        resource_tracker.track(ResourceType.PVC, name, namespace=k8s.namespace)
        created_count += 1
        return name

    return create


@pytest.fixture
def snapshot_factory(
    k8s: K8sClient,
    unique_name: str,
    resource_tracker: ResourceTracker,
) -> Callable:
    """Factory for creating VolumeSnapshots with automatic cleanup."""
    created_count = 0

    def create(
        pvc_name: str,
        snapshot_class: str | None = "csi-cephfsplugin-snapclass",
        name_suffix: str = "",
    ) -> str:
        nonlocal created_count
        suffix = f"-{name_suffix}" if name_suffix else f"-{created_count}"
        name = f"snap-{unique_name}{suffix}"
        k8s.create_snapshot(name, pvc_name, snapshot_class)
        resource_tracker.track(ResourceType.SNAPSHOT, name, namespace=k8s.namespace)
        created_count += 1
        return name

    return create


@pytest.fixture
def pod_factory(
    k8s: K8sClient,
    unique_name: str,
    resource_tracker: ResourceTracker,
) -> Callable:
    """Factory for creating app Pods that mount a PVC, with automatic cleanup."""
    created_count = 0

    def create(pvc_name: str, mount_path: str = "/mnt/data", name_suffix: str = "") -> str:
        nonlocal created_count
        suffix = f"-{name_suffix}" if name_suffix else f"-{created_count}"
        name = f"pod-{unique_name}{suffix}"
        k8s.create_pod_with_pvc(name, pvc_name, mount_path=mount_path)
        resource_tracker.track(ResourceType.POD, name, namespace=k8s.namespace)
        created_count += 1
        return name

    return create
