"""Map Kubernetes objects to the names of their backing CephFS resources.

The driver names subvolumes "csi-vol-<id>" and snapshots "csi-snap-<id>",
where <id> is the UUID-like tail of the CSI handle recorded on the PV or
VolumeSnapshotContent. That tail is the last five dash-separated words of
the handle.
"""

import logging
import string

from .errors import DecodeError, NotReadyError
from .k8s_client import K8sClient
from .models import ImageInfo

logger = logging.getLogger(__name__)

# ASCII only, like \w in the driver's own matching
WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")
ID_WORDS = 5
VOLUME_NAME_PREFIX = "csi-vol-"
SNAPSHOT_NAME_PREFIX = "csi-snap-"


def extract_trailing_id(handle: str) -> str:
    """Extract the trailing five-group identifier from a CSI handle.

    Equivalent to the leftmost match of ``(\\w+-?){5}$``, computed in a
    single backward scan so malformed handles fail in linear time.

    Raises:
        DecodeError: The handle has no such tail
    """
    body = handle[:-1] if handle.endswith("-") else handle
    words: list[str] = []
    for piece in reversed(body.split("-")):
        start = len(piece)
        while start and piece[start - 1] in WORD_CHARS:
            start -= 1
        if start == len(piece):
            break
        words.append(piece[start:])
        if start or len(words) == ID_WORDS:
            break

    if sum(len(word) for word in words) < ID_WORDS:
        raise DecodeError("handle has no trailing identifier", raw=handle)
    return "-".join(reversed(words)) + handle[len(body):]


def image_name_from_handle(handle: str) -> str:
    return VOLUME_NAME_PREFIX + extract_trailing_id(handle)


def snapshot_name_from_handle(handle: str) -> str:
    return SNAPSHOT_NAME_PREFIX + extract_trailing_id(handle)


def resolve_image_info(k8s: K8sClient, namespace: str, claim_name: str) -> ImageInfo:
    """Resolve the backing subvolume of a PersistentVolumeClaim.

    Args:
        k8s: K8sClient instance
        namespace: Claim namespace
        claim_name: Claim name

    Returns:
        ImageInfo for the bound PV

    Raises:
        NotReadyError: Claim missing or unbound, or PV has no CSI handle
    """
    pvc = k8s.get_pvc(claim_name, namespace=namespace)
    if not pvc:
        raise NotReadyError(f"pvc {namespace}/{claim_name} not found")

    pv_name = pvc.get("spec", {}).get("volumeName")
    if not pv_name:
        raise NotReadyError(f"pvc {namespace}/{claim_name} is not bound")

    pv = k8s.get_pv(pv_name)
    if not pv:
        raise NotReadyError(f"pv {pv_name} not found")

    handle = pv.get("spec", {}).get("csi", {}).get("volumeHandle")
    if not handle:
        raise NotReadyError(f"pv {pv_name} has no CSI volume handle")

    image_id = extract_trailing_id(handle)
    return ImageInfo(
        image_id=image_id,
        image_name=VOLUME_NAME_PREFIX + image_id,
        csi_volume_handle=handle,
        pv_name=pv_name,
    )


def resolve_backing_snapshot_name(
    k8s: K8sClient, namespace: str, snapshot_name: str
) -> str:
    """Resolve the CephFS snapshot name behind a VolumeSnapshot.

    Args:
        k8s: K8sClient instance
        namespace: VolumeSnapshot namespace
        snapshot_name: VolumeSnapshot name

    Returns:
        Subvolume snapshot name ("csi-snap-<id>")

    Raises:
        NotReadyError: Snapshot missing, unbound, or content has no handle yet
    """
    snap = k8s.get_volume_snapshot(snapshot_name, namespace=namespace)
    if not snap:
        raise NotReadyError(f"volumesnapshot {namespace}/{snapshot_name} not found")

    content_name = snap.get("status", {}).get("boundVolumeSnapshotContentName")
    if not content_name:
        raise NotReadyError(
            f"volumesnapshot {namespace}/{snapshot_name} is not bound to a content object"
        )

    content = k8s.get_volume_snapshot_content(content_name)
    if not content:
        raise NotReadyError(f"volumesnapshotcontent {content_name} not found")

    handle = content.get("status", {}).get("snapshotHandle")
    if not handle:
        raise NotReadyError(f"volumesnapshotcontent {content_name} has no snapshot handle")

    name = snapshot_name_from_handle(handle)
    logger.info("snapshotName= %s", name)
    return name
