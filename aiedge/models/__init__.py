"""Domain model package exports."""

from .images import (Model, ModelImage, ModelImageStatus, ParamValue,
                     PipelineRunState, PipelineRunSummary)
from .registry import (STRING_VALUE_TYPE, STRUCT_VALUE_TYPE, Artifact,
                       MetadataValue, ModelVersion, RegisteredModel,
                       properties_to_dict)

__all__ = [
    "Artifact",
    "MetadataValue",
    "Model",
    "ModelImage",
    "ModelImageStatus",
    "ModelVersion",
    "ParamValue",
    "PipelineRunState",
    "PipelineRunSummary",
    "RegisteredModel",
    "STRING_VALUE_TYPE",
    "STRUCT_VALUE_TYPE",
    "properties_to_dict",
]
