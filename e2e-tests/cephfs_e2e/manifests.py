"""Loading of StorageClass and Secret templates."""

from pathlib import Path

import yaml

from .errors import DecodeError


def load_manifest(path: str | Path, kind: str) -> dict:
    """Load a single YAML manifest and check its kind.

    Args:
        path: Manifest file
        kind: Expected "kind" field

    Returns:
        Manifest as dict

    Raises:
        DecodeError: Not a YAML mapping or of another kind
    """
    text = Path(path).read_text()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DecodeError(f"invalid YAML in {path}: {e}", raw=text) from e

    if not isinstance(data, dict):
        raise DecodeError(f"{path} is not a YAML mapping", raw=text)
    if data.get("kind") != kind:
        raise DecodeError(f"{path} is a {data.get('kind')!r}, expected {kind!r}", raw=text)
    return data


def load_storage_class(path: str | Path) -> dict:
    sc = load_manifest(path, "StorageClass")
    sc.setdefault("parameters", {})
    return sc


def load_secret(path: str | Path) -> dict:
    secret = load_manifest(path, "Secret")
    secret.setdefault("stringData", {})
    return secret
