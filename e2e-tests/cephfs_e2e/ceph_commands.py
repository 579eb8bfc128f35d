"""Builders for the ceph and node-side commands used by the E2E helpers.

Identifiers are interpolated verbatim with no shell escaping. Callers must
only pass names that are already safe (test-generated or read back from
the cluster).
"""


def fsid() -> str:
    return "ceph fsid"


# -------------------------------------------------------------------------
# Subvolume groups
# -------------------------------------------------------------------------


def subvolumegroup_getpath(filesystem: str, group: str) -> str:
    return f"ceph fs subvolumegroup getpath {filesystem} {group}"


def subvolumegroup_create(filesystem: str, group: str) -> str:
    return f"ceph fs subvolumegroup create {filesystem} {group}"


def subvolumegroup_rm(filesystem: str, group: str) -> str:
    return f"ceph fs subvolumegroup rm {filesystem} {group}"


# -------------------------------------------------------------------------
# Subvolumes
# -------------------------------------------------------------------------


def subvolume_getpath(filesystem: str, group: str, subvolume: str) -> str:
    return f"ceph fs subvolume getpath {filesystem} {subvolume} --group_name={group}"


def subvolume_ls(filesystem: str, group: str) -> str:
    return f"ceph fs subvolume ls {filesystem} --group_name={group} --format=json"


def subvolume_create(
    filesystem: str, subvolume: str, group: str, size: int | None = None
) -> str:
    """Create a subvolume, optionally with a quota in bytes."""
    cmd = f"ceph fs subvolume create {filesystem} {subvolume} --group_name={group}"
    if size is not None:
        cmd += f" --size={size}"
    return cmd


def subvolume_rm(filesystem: str, subvolume: str, group: str) -> str:
    return f"ceph fs subvolume rm {filesystem} {subvolume} {group}"


def subvolume_metadata_ls(filesystem: str, subvolume: str, group: str) -> str:
    return (
        f"ceph fs subvolume metadata ls {filesystem} {subvolume} "
        f"--group_name={group} --format=json"
    )


# -------------------------------------------------------------------------
# Subvolume snapshots
# -------------------------------------------------------------------------


def subvolume_snapshot_ls(filesystem: str, subvolume: str, group: str) -> str:
    return (
        f"ceph fs subvolume snapshot ls {filesystem} {subvolume} "
        f"--group_name={group} --format=json"
    )


def subvolume_snapshot_rm(
    filesystem: str, subvolume: str, snapshot: str, group: str
) -> str:
    return f"ceph fs subvolume snapshot rm {filesystem} {subvolume} {snapshot} {group}"


def subvolume_snapshot_metadata_ls(
    filesystem: str, subvolume: str, snapshot: str, group: str
) -> str:
    return (
        f"ceph fs subvolume snapshot metadata ls {filesystem} {subvolume} {snapshot} "
        f"--group_name={group} --format=json"
    )


# -------------------------------------------------------------------------
# Node commands
# -------------------------------------------------------------------------


def umount_csi_volume(pod_uid: str, volume_name: str) -> str:
    """Unmount the kubelet mount of a CSI volume inside a pod."""
    return f"umount /var/lib/kubelet/pods/{pod_uid}/volumes/kubernetes.io~csi/{volume_name}/mount"
