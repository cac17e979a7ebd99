"""Short deterministic fingerprints for model images."""

from __future__ import annotations

import hashlib

FINGERPRINT_LENGTH = 4


def fingerprint(model_name: str, version_name: str, artifact_name: str) -> str:
    """Return the first 4 hex chars of sha256("model:version:artifact").

    16 bits only; good enough to spot drift within one model namespace, never
    to identify images globally.
    """

    joined = f"{model_name}:{version_name}:{artifact_name}"
    digest = hashlib.sha256(joined.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
