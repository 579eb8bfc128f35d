"""Decoding of ceph command output into typed records.

All ceph listing commands are run with --format=json. Output on stderr is
treated as a failure even when the exit code is zero, since ceph reports
most problems there without a usable exit status.
"""

import json
from typing import Any

from .errors import CommandError, DecodeError, TransportError
from .models import ExecResult, Snapshot, SnapshotMetadata, Subvolume, SubvolumeMetadata


def check_result(result: ExecResult, command: str) -> str:
    """Return stdout of a finished command or raise.

    Args:
        result: Output of the exec
        command: Command text, carried on the raised error

    Returns:
        Raw stdout

    Raises:
        CommandError: stderr was not empty (takes precedence over exit code)
        TransportError: Non-zero exit with nothing on stderr
    """
    if result.stderr:
        raise CommandError(f"command {command!r} failed", command=command, stderr=result.stderr)
    if result.returncode != 0:
        raise TransportError(
            f"command {command!r} exited with code {result.returncode}",
            command=command,
            returncode=result.returncode,
        )
    return result.stdout


def decode_json(stdout: str) -> Any:
    """Decode JSON output, returning None for empty output."""
    if not stdout or not stdout.strip():
        return None
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        raise DecodeError(f"malformed JSON: {e}", raw=stdout) from e


def _parse_named_list(stdout: str, what: str) -> list[str]:
    data = decode_json(stdout)
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(f"expected a JSON list of {what}", raw=stdout)

    names = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise DecodeError(f"{what} entry without a name", raw=stdout)
        names.append(item["name"])
    return names


def _parse_string_map(stdout: str, what: str) -> dict[str, str]:
    data = decode_json(stdout)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object of {what}", raw=stdout)
    if not all(isinstance(v, str) for v in data.values()):
        raise DecodeError(f"{what} values must be strings", raw=stdout)
    return data


def parse_subvolumes(stdout: str) -> list[Subvolume]:
    """Parse "ceph fs subvolume ls --format=json" output."""
    return [Subvolume(name=n) for n in _parse_named_list(stdout, "subvolumes")]


def parse_snapshots(stdout: str) -> list[Snapshot]:
    """Parse "ceph fs subvolume snapshot ls --format=json" output."""
    return [Snapshot(name=n) for n in _parse_named_list(stdout, "snapshots")]


def parse_subvolume_metadata(stdout: str) -> SubvolumeMetadata:
    """Parse "ceph fs subvolume metadata ls --format=json" output."""
    return SubvolumeMetadata.from_dict(_parse_string_map(stdout, "subvolume metadata"))


def parse_snapshot_metadata(stdout: str) -> SnapshotMetadata:
    """Parse "ceph fs subvolume snapshot metadata ls --format=json" output."""
    return SnapshotMetadata.from_dict(_parse_string_map(stdout, "snapshot metadata"))


def parse_path(stdout: str) -> str:
    return stdout.strip()
