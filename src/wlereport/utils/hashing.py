"""
Deterministic hashing utilities.

Provides canonical serialization and content hashes for model
configurations and input files.
"""

import hashlib
import json
from pathlib import Path
from typing import Any


def canonical_json(payload: Any) -> str:
    """
    Serialize a JSON-compatible payload canonically.

    Keys are sorted and separators are compact so that equal payloads
    always produce byte-identical text.

    Args:
        payload: JSON-compatible object (dicts, lists, scalars).

    Returns:
        Canonical JSON string.
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        allow_nan=False,
    )


def hash_config(config: Any) -> str:
    """
    Compute the 128-bit fingerprint of a configuration payload.

    Args:
        config: JSON-compatible configuration mapping, or a Pydantic model.

    Returns:
        32-character MD5 hex digest.
    """
    if hasattr(config, "model_dump"):
        config = config.model_dump(mode="json")

    return hashlib.md5(canonical_json(config).encode("utf-8")).hexdigest()


def hash_file_content(path: str | Path, chunk_size: int = 8192) -> str:
    """
    Compute hash of file contents.

    Args:
        path: Path to file.
        chunk_size: Chunk size for reading.

    Returns:
        Hex digest string, or "missing" if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return "missing"

    hasher = hashlib.md5()
    with p.open("rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return hasher.hexdigest()
