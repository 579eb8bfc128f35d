"""Tests for ordered cleanup of test-created objects."""

from cephfs_e2e.errors import ApiError
from cephfs_e2e.resource_tracker import ResourceTracker, ResourceType


def test_cleanup_order(fake_k8s):
    tracker = ResourceTracker(k8s=fake_k8s)
    tracker.track(ResourceType.SECRET, "admin-secret", namespace="ceph-csi")
    tracker.track(ResourceType.STORAGE_CLASS, "csi-cephfs-sc", namespace="ignored")
    tracker.track(ResourceType.PVC, "pvc-1", namespace="default")
    tracker.track(ResourceType.PVC, "pvc-2", namespace="default")
    tracker.track(ResourceType.SNAPSHOT, "snap-1", namespace="default")
    tracker.track(ResourceType.POD, "app", namespace="default")

    warnings = tracker.cleanup_all()

    assert warnings == []
    assert fake_k8s.deleted == [
        ("pod", "app", "default"),
        ("volumesnapshot", "snap-1", "default"),
        ("pvc", "pvc-2", "default"),
        ("pvc", "pvc-1", "default"),
        ("storageclass", "csi-cephfs-sc", None),
        ("secret", "admin-secret", "ceph-csi"),
    ]
    assert len(tracker) == 0


def test_failures_are_collected(fake_k8s):
    fake_k8s.delete_errors["pvc-1"] = ApiError("Error from server (Forbidden)", reason="Forbidden")
    tracker = ResourceTracker(k8s=fake_k8s)
    tracker.track(ResourceType.PVC, "pvc-1", namespace="default")
    tracker.track(ResourceType.SECRET, "s", namespace="default")

    warnings = tracker.cleanup_all()

    assert len(warnings) == 1
    assert "pvc pvc-1" in warnings[0]
    assert fake_k8s.deleted == [("secret", "s", "default")]
