"""Domain services: identity, drift detection, reconciliation and builds."""

from .build_trigger import (build_pipeline_run_manifest, to_pipeline_params,
                            trigger_build, validate_build_parameters)
from .drift import is_edge_compatible, needs_sync
from .edge_client import EdgeClient
from .identity import fingerprint
from .metadata_codec import from_metadata_value_map, to_metadata_value_map
from .reconciler import ensure_artifact, ensure_resources, ensure_version

__all__ = [
    "EdgeClient",
    "build_pipeline_run_manifest",
    "ensure_artifact",
    "ensure_resources",
    "ensure_version",
    "fingerprint",
    "from_metadata_value_map",
    "is_edge_compatible",
    "needs_sync",
    "to_metadata_value_map",
    "to_pipeline_params",
    "trigger_build",
    "validate_build_parameters",
]
