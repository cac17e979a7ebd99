"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Bring a model version and its container image artifact in line with the
desired build parameters.

A sync runs in two phases against the registry:

1. ``ensure_version`` creates the version or rewrites its custom properties.
2. ``ensure_artifact`` creates the model artifact or fixes its external id.

Each phase only issues mutating calls when something is missing or differs,
except that a found version is rewritten whenever parameters are supplied.
Nothing is rolled back if the second phase fails.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Tuple

from aiedge.clients.registry_client import ModelRegistryClient
from aiedge.config import EDGE_COMPATIBLE_KEY, MODEL_FORMAT_NAME
from aiedge.errors import (FindArtifactFailed, FindModelVersionFailed,
                           ValidationError, VersionNotFound)
from aiedge.models import (Artifact, ModelVersion, ParamValue,
                           RegisteredModel)

from .identity import fingerprint
from .metadata_codec import from_metadata_value_map, to_metadata_value_map

logger = logging.getLogger(__name__)


def ensure_resources(
    registry: ModelRegistryClient,
    model_id: str,
    version_name: str,
    parameters: Optional[Mapping[str, ParamValue]],
) -> Dict[str, ParamValue]:
    """Reconcile the version and artifact of ``model_id``/``version_name``.

    Returns the parameters now stored on the version. ``parameters=None``
    keeps whatever the version already carries.
    """

    if not model_id or not version_name:
        raise ValidationError("model ID and version are required")

    model = registry.get_registered_model(model_id)
    logger.info("Syncing model %s (%s) version %s", model.name, model.id,
                version_name)
    version, resolved = ensure_version(
        registry, model.id, version_name, parameters
    )
    ensure_artifact(registry, model, version)
    return resolved


def ensure_version(
    registry: ModelRegistryClient,
    model_id: str,
    version_name: str,
    parameters: Optional[Mapping[str, ParamValue]],
) -> Tuple[ModelVersion, Dict[str, ParamValue]]:
    try:
        version = registry.find_model_version(model_id, version_name)
    except FindModelVersionFailed:
        if parameters is None:
            raise VersionNotFound(
                "model version not found and no parameters provided"
            ) from None
        properties = to_metadata_value_map(
            _edge_parameters(parameters), strict=True
        )
        version = registry.create_model_version(
            model_id, version_name, properties
        )
        logger.info("Created model version %s (%s)", version.name, version.id)
        return version, from_metadata_value_map(version.custom_properties)

    if parameters is not None:
        # Rewritten even when the properties are unchanged.
        properties = to_metadata_value_map(
            _edge_parameters(parameters), strict=True
        )
        version = registry.update_model_version(version.id, properties)
        logger.info("Updated model version %s (%s)", version.name, version.id)
    else:
        logger.info(
            "Model version %s (%s) found, keeping its parameters",
            version.name,
            version.id,
        )
    return version, from_metadata_value_map(version.custom_properties)


def ensure_artifact(
    registry: ModelRegistryClient,
    model: RegisteredModel,
    version: ModelVersion,
) -> Artifact:
    """Make sure ``version`` has a model artifact with the expected id."""

    expected = fingerprint(model.name, version.name, model.name)
    try:
        artifact = registry.find_model_version_artifact(version.id, model.name)
    except FindArtifactFailed:
        artifact = registry.create_model_artifact(
            version.id,
            model.name,
            description=model.description,
            uri="",
            model_format_name=MODEL_FORMAT_NAME,
            model_format_version="",
            external_id=expected,
        )
        logger.info(
            "Created model artifact %s with external id %s",
            artifact.id,
            expected,
        )
        return artifact

    if artifact.external_id == expected:
        logger.info("Model artifact %s already in sync", artifact.id)
        return artifact

    logger.info(
        "Updating model artifact %s external id %r -> %s",
        artifact.id,
        artifact.external_id,
        expected,
    )
    return registry.update_model_artifact(artifact.id, expected)


def _edge_parameters(
    parameters: Mapping[str, ParamValue],
) -> Dict[str, ParamValue]:
    edge = dict(parameters)
    edge[EDGE_COMPATIBLE_KEY] = "true"
    return edge
