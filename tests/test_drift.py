"""Tests for drift detection between artifacts and their expected identity."""

from __future__ import annotations

from typing import Optional

from aiedge.models import (Artifact, MetadataValue, ModelVersion,
                           RegisteredModel)
from aiedge.services.drift import is_edge_compatible, needs_sync
from aiedge.services.identity import fingerprint

MODEL = RegisteredModel(id="1", name="m1", description="demo")


def _version(flag: Optional[MetadataValue]) -> ModelVersion:
    properties = {} if flag is None else {"edgeCompatible": flag}
    return ModelVersion(id="2", name="v1", custom_properties=properties)


def _artifact(external_id: str, artifact_type: str = "model-artifact") -> Artifact:
    return Artifact(
        id="3",
        name="m1",
        artifact_type=artifact_type,
        external_id=external_id,
    )


EXPECTED = fingerprint("m1", "v1", "m1")
COMPATIBLE = _version(MetadataValue.string("true"))


def test_matching_artifact_on_compatible_version_is_in_sync() -> None:
    assert needs_sync(MODEL, COMPATIBLE, _artifact(EXPECTED)) is False


def test_empty_external_id_needs_sync() -> None:
    assert needs_sync(MODEL, COMPATIBLE, _artifact("")) is True


def test_stale_external_id_needs_sync() -> None:
    assert needs_sync(MODEL, COMPATIBLE, _artifact("zzzz"))


def test_non_model_artifact_needs_sync() -> None:
    assert needs_sync(MODEL, COMPATIBLE, _artifact(EXPECTED, "doc-artifact"))


def test_edge_compatible_flag_must_be_the_string_true() -> None:
    artifact = _artifact(EXPECTED)

    assert needs_sync(MODEL, _version(None), artifact)
    assert needs_sync(MODEL, _version(MetadataValue.string("false")), artifact)
    assert needs_sync(MODEL, _version(MetadataValue.string("True")), artifact)
    assert needs_sync(
        MODEL, _version(MetadataValue("MetadataBoolValue", True)), artifact
    )


def test_is_edge_compatible() -> None:
    assert is_edge_compatible(COMPATIBLE)
    assert not is_edge_compatible(_version(None))
