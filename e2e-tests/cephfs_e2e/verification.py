"""Assertions comparing observed CephFS state with what a test expects.

Each raises VerificationError naming both values, so failures are
diagnosable from the report alone.
"""

import re
from typing import Sequence

from .errors import VerificationError
from .models import SnapshotMetadata, SubvolumeMetadata

GROUP_PATH_PREFIX = "/volumes"
UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def expected_group_path(group: str) -> str:
    return f"{GROUP_PATH_PREFIX}/{group}"


def assert_group_path(observed: str, expected_group: str) -> None:
    """Check "subvolumegroup getpath" output against /volumes/<group>."""
    expected = expected_group_path(expected_group)
    found = observed.strip()
    if found != expected:
        raise VerificationError(
            f"unexpected group path for {expected_group}", expected=expected, observed=found
        )


def assert_subvolume_path(observed: str, group: str, subvolume: str) -> None:
    """Check a subvolume path has the form /volumes/<group>/<subvolume>/<uuid>."""
    found = observed.strip()
    prefix = f"{expected_group_path(group)}/{subvolume}/"
    tail = found[len(prefix):] if found.startswith(prefix) else ""
    if not UUID_PATTERN.match(tail):
        raise VerificationError(
            f"unexpected path for subvolume {subvolume}",
            expected=prefix + "<uuid>",
            observed=found,
        )


def assert_empty_stderr(stderr: str, context: str = "command") -> None:
    if stderr:
        raise VerificationError(f"{context} wrote to stderr", expected="", observed=stderr)


def assert_listed_once(records: Sequence, name: str, kind: str = "subvolume") -> None:
    """Check that exactly one record carries the given name."""
    count = sum(1 for r in records if r.name == name)
    if count != 1:
        raise VerificationError(
            f"{kind} {name} listed {count} times", expected=1, observed=count
        )


def assert_not_listed(records: Sequence, name: str, kind: str = "subvolume") -> None:
    names = [r.name for r in records]
    if name in names:
        raise VerificationError(
            f"{kind} {name} still present", expected=f"no {name}", observed=names
        )


def _compare_fields(kind: str, pairs: list[tuple[str, str | None, str]]) -> None:
    for label, expected, observed in pairs:
        if expected is not None and observed != expected:
            raise VerificationError(f"{kind} {label} mismatch", expected=expected, observed=observed)


def assert_subvolume_metadata(
    metadata: SubvolumeMetadata,
    pvc_name: str,
    pvc_namespace: str,
    pv_name: str | None = None,
    cluster_name: str | None = None,
) -> None:
    """Check the provenance labels of a subvolume match its claim."""
    _compare_fields(
        "subvolume metadata",
        [
            ("pvc name", pvc_name, metadata.pvc_name),
            ("pvc namespace", pvc_namespace, metadata.pvc_namespace),
            ("pv name", pv_name, metadata.pv_name),
            ("cluster name", cluster_name, metadata.cluster_name),
        ],
    )


def assert_snapshot_metadata(
    metadata: SnapshotMetadata,
    snapshot_name: str,
    snapshot_namespace: str,
    content_name: str | None = None,
    cluster_name: str | None = None,
) -> None:
    """Check the provenance labels of a snapshot match its VolumeSnapshot."""
    _compare_fields(
        "snapshot metadata",
        [
            ("volumesnapshot name", snapshot_name, metadata.volume_snapshot_name),
            ("volumesnapshot namespace", snapshot_namespace, metadata.volume_snapshot_namespace),
            ("volumesnapshotcontent name", content_name, metadata.volume_snapshot_content_name),
            ("cluster name", cluster_name, metadata.cluster_name),
        ],
    )
