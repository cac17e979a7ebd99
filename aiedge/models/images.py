"""Read-models describing edge model images and their build runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

ParamValue = Union[str, List[str]]
"""Closed set of build parameter value shapes."""


class ModelImageStatus(str, Enum):
    """Lifecycle of a model image as observed from the outside."""

    UNKNOWN = "Unknown"
    NEEDS_SYNC = "Needs Sync"
    SYNCED = "Synced"
    BUILDING = "Building"
    LIVE = "Live"
    FAILED = "Failed"


class PipelineRunState(str, Enum):
    """Coarse state of a Tekton ``PipelineRun``."""

    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Model:
    """Summary of a registered model."""

    id: str
    name: str
    description: str


@dataclass(frozen=True)
class PipelineRunSummary:
    """Identity and coarse outcome of one submitted build."""

    name: str
    namespace: str
    model_name: str = ""
    model_version: str = ""
    start_time: Optional[str] = None
    completion_time: Optional[str] = None
    state: PipelineRunState = PipelineRunState.UNKNOWN
    message: str = ""


@dataclass(frozen=True)
class ModelImage:
    """A model version that can be built into an edge container image.

    ``id`` is the artifact external id and is empty when the artifact was
    never given one. Instances are recomputed on every listing.
    """

    model_id: str
    name: str
    description: str
    version: str
    id: str = ""
    uri: str = ""
    needs_sync: bool = True
    build_params: Dict[str, ParamValue] = field(default_factory=dict)
    last_pipeline_run: Optional[PipelineRunSummary] = None

    @property
    def status(self) -> ModelImageStatus:
        if self.needs_sync:
            return ModelImageStatus.NEEDS_SYNC
        run = self.last_pipeline_run
        if run is None:
            return ModelImageStatus.SYNCED
        if run.state is PipelineRunState.RUNNING:
            return ModelImageStatus.BUILDING
        if run.state is PipelineRunState.SUCCEEDED:
            return ModelImageStatus.LIVE
        if run.state is PipelineRunState.FAILED:
            return ModelImageStatus.FAILED
        return ModelImageStatus.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "model_id": self.model_id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "uri": self.uri,
            "needs_sync": self.needs_sync,
            "status": self.status.value,
            "build_params": dict(self.build_params),
        }
        if self.last_pipeline_run is not None:
            run = self.last_pipeline_run
            record["pipeline_run"] = {
                "name": run.name,
                "namespace": run.namespace,
                "started": run.start_time,
                "status": run.state.value,
            }
        return record
