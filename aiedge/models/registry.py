"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Records mirroring the model registry resources we read and write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from aiedge.config import MODEL_ARTIFACT_TYPE

STRING_VALUE_TYPE = "MetadataStringValue"
STRUCT_VALUE_TYPE = "MetadataStructValue"

# Wire field holding the payload for each metadata kind.
_VALUE_FIELDS = {
    STRING_VALUE_TYPE: "string_value",
    STRUCT_VALUE_TYPE: "struct_value",
    "MetadataIntValue": "int_value",
    "MetadataDoubleValue": "double_value",
    "MetadataBoolValue": "bool_value",
    "MetadataProtoValue": "proto_value",
}


@dataclass(frozen=True)
class MetadataValue:
    """Typed custom-property value as stored by the registry.

    Only the string and struct kinds are produced or interpreted here; other
    kinds are kept verbatim in ``raw`` so they survive a read.
    """

    metadata_type: str
    value: Any = None
    raw: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    @classmethod
    def string(cls, value: str) -> "MetadataValue":
        return cls(STRING_VALUE_TYPE, value)

    @classmethod
    def struct(cls, encoded: str) -> "MetadataValue":
        return cls(STRUCT_VALUE_TYPE, encoded)

    @property
    def is_string(self) -> bool:
        return self.metadata_type == STRING_VALUE_TYPE

    @property
    def is_struct(self) -> bool:
        return self.metadata_type == STRUCT_VALUE_TYPE

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MetadataValue":
        metadata_type = payload.get("metadataType")
        if not isinstance(metadata_type, str):
            # Older servers omit the discriminator; infer it from the field.
            metadata_type = next(
                (
                    kind
                    for kind, key in _VALUE_FIELDS.items()
                    if key in payload
                ),
                "",
            )
        value_field = _VALUE_FIELDS.get(metadata_type)
        value = payload.get(value_field) if value_field else None
        return cls(metadata_type, value, raw=dict(payload))

    def to_dict(self) -> Dict[str, Any]:
        if self.raw is not None and not (self.is_string or self.is_struct):
            return dict(self.raw)
        value_field = _VALUE_FIELDS.get(self.metadata_type)
        body: Dict[str, Any] = {"metadataType": self.metadata_type}
        if value_field:
            body[value_field] = self.value
        return body


def _properties_from(payload: Mapping[str, Any]) -> Dict[str, MetadataValue]:
    raw = payload.get("customProperties") or {}
    return {
        key: MetadataValue.from_dict(value)
        for key, value in raw.items()
        if isinstance(value, Mapping)
    }


def properties_to_dict(
    properties: Mapping[str, MetadataValue],
) -> Dict[str, Dict[str, Any]]:
    return {key: value.to_dict() for key, value in properties.items()}


@dataclass(frozen=True)
class RegisteredModel:
    """A model registered in the registry."""

    id: str
    name: str
    description: str = ""
    custom_properties: Dict[str, MetadataValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RegisteredModel":
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            description=str(payload.get("description") or ""),
            custom_properties=_properties_from(payload),
        )


@dataclass(frozen=True)
class ModelVersion:
    """A named version belonging to exactly one registered model."""

    id: str
    name: str
    registered_model_id: str = ""
    custom_properties: Dict[str, MetadataValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ModelVersion":
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            registered_model_id=str(
                payload.get("registeredModelId")
                or payload.get("registeredModelID")
                or ""
            ),
            custom_properties=_properties_from(payload),
        )


@dataclass(frozen=True)
class Artifact:
    """An artifact attached to a model version."""

    id: str
    name: str
    artifact_type: str = MODEL_ARTIFACT_TYPE
    external_id: str = ""
    uri: str = ""
    description: str = ""
    model_format_name: str = ""
    model_format_version: str = ""

    @property
    def is_model_artifact(self) -> bool:
        return self.artifact_type == MODEL_ARTIFACT_TYPE

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Artifact":
        external_id = payload.get("externalId")
        if external_id is None:
            external_id = payload.get("externalID")
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            artifact_type=str(
                payload.get("artifactType") or MODEL_ARTIFACT_TYPE
            ),
            external_id=str(external_id or ""),
            uri=str(payload.get("uri") or ""),
            description=str(payload.get("description") or ""),
            model_format_name=str(payload.get("modelFormatName") or ""),
            model_format_version=str(payload.get("modelFormatVersion") or ""),
        )
