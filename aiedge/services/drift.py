"""Decide whether a registry artifact matches its locally derived identity."""

from __future__ import annotations

from aiedge.config import EDGE_COMPATIBLE_KEY
from aiedge.models import Artifact, ModelVersion, RegisteredModel

from .identity import fingerprint


def is_edge_compatible(version: ModelVersion) -> bool:
    flag = version.custom_properties.get(EDGE_COMPATIBLE_KEY)
    if flag is None or not flag.is_string:
        return False
    return flag.value == "true"


def needs_sync(
    model: RegisteredModel,
    version: ModelVersion,
    artifact: Artifact,
) -> bool:
    """Return ``True`` unless the artifact and version are fully in sync."""
    if not artifact.is_model_artifact or not artifact.external_id:
        return True
    expected = fingerprint(model.name, version.name, artifact.name)
    if artifact.external_id != expected:
        return True
    return not is_edge_compatible(version)
