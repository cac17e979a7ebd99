"""Outbound service clients."""

from .pipeline_client import PipelineClient, summarize_pipeline_run
from .registry_client import ModelRegistryClient
from .registry_errors import classify_registry_error

__all__ = [
    "ModelRegistryClient",
    "PipelineClient",
    "classify_registry_error",
    "summarize_pipeline_run",
]
