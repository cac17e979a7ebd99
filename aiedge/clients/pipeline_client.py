"""Client submitting and observing Tekton PipelineRuns on Kubernetes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from kubernetes import client as k8s_client  # type: ignore[import]
from kubernetes import config as k8s_config  # type: ignore[import]
from kubernetes.client.exceptions import ApiException  # type: ignore[import]
from kubernetes.config.config_exception import \
    ConfigException  # type: ignore[import]

from aiedge.clients.base_client import BaseClient
from aiedge.config import (PARAM_MODEL_NAME, PARAM_MODEL_VERSION,
                           PIPELINE_LABEL, PIPELINE_NAME, TEKTON_GROUP,
                           TEKTON_PIPELINE_RUN_PLURAL, TEKTON_VERSION)
from aiedge.errors import PipelineSubmissionError, ValidationError
from aiedge.models import PipelineRunState, PipelineRunSummary


class PipelineClient(BaseClient[Any]):
    """Wrap a Kubernetes ``CustomObjectsApi`` for ``PipelineRun`` objects."""

    def __init__(
        self,
        custom_objects_api: Any,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger=logger)
        self._api = custom_objects_api

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> "PipelineClient":
        """Build a client authenticated with the given kubeconfig file."""
        if not kubeconfig:
            raise ValidationError("kubeconfig is required")
        try:
            api_client = k8s_config.new_client_from_config(
                config_file=kubeconfig
            )
        except (ConfigException, OSError) as error:
            raise PipelineSubmissionError(
                f"failed to load kubeconfig {kubeconfig}: {error}"
            ) from error
        return cls(k8s_client.CustomObjectsApi(api_client), logger=logger)

    def create_pipeline_run(
        self,
        manifest: Mapping[str, Any],
    ) -> PipelineRunSummary:
        """Submit a PipelineRun manifest and return its assigned identity."""
        metadata = manifest.get("metadata") or {}
        namespace = metadata.get("namespace") or ""
        if not namespace:
            raise ValidationError("pipeline run namespace is required")

        def _operation() -> Any:
            return self._api.create_namespaced_custom_object(
                group=TEKTON_GROUP,
                version=TEKTON_VERSION,
                namespace=namespace,
                plural=TEKTON_PIPELINE_RUN_PLURAL,
                body=dict(manifest),
            )

        try:
            created = self._execute(
                _operation, name=f"tekton.create_pipeline_run({namespace})"
            )
        except ApiException as error:
            raise PipelineSubmissionError(
                "failed to create pipeline run: "
                f"{error.status} {error.reason}"
            ) from error
        summary = summarize_pipeline_run(created)
        self._logger.info(
            "Created pipeline run %s in namespace %s",
            summary.name,
            summary.namespace,
        )
        return summary

    def list_pipeline_runs(
        self,
        namespace: str,
        *,
        pipeline_name: str = PIPELINE_NAME,
    ) -> List[PipelineRunSummary]:
        """Return the runs of ``pipeline_name`` found in ``namespace``."""
        if not namespace:
            raise ValidationError("namespace is required")

        def _operation() -> Any:
            return self._api.list_namespaced_custom_object(
                group=TEKTON_GROUP,
                version=TEKTON_VERSION,
                namespace=namespace,
                plural=TEKTON_PIPELINE_RUN_PLURAL,
                label_selector=f"{PIPELINE_LABEL}={pipeline_name}",
            )

        try:
            listing = self._execute(
                _operation, name=f"tekton.list_pipeline_runs({namespace})"
            )
        except ApiException as error:
            raise PipelineSubmissionError(
                "failed to list pipeline runs: "
                f"{error.status} {error.reason}"
            ) from error
        items = (listing or {}).get("items") or []
        return [
            summarize_pipeline_run(item)
            for item in items
            if isinstance(item, Mapping)
        ]


def summarize_pipeline_run(resource: Mapping[str, Any]) -> PipelineRunSummary:
    """Reduce a PipelineRun object to the fields we display."""
    metadata = resource.get("metadata") or {}
    spec = resource.get("spec") or {}
    status = resource.get("status") or {}
    params = _param_values(spec.get("params") or [])
    state, message = _run_state(status)
    return PipelineRunSummary(
        name=str(metadata.get("name") or ""),
        namespace=str(metadata.get("namespace") or ""),
        model_name=params.get(PARAM_MODEL_NAME, ""),
        model_version=params.get(PARAM_MODEL_VERSION, ""),
        start_time=status.get("startTime"),
        completion_time=status.get("completionTime"),
        state=state,
        message=message,
    )


def _param_values(params: List[Any]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for param in params:
        if not isinstance(param, Mapping):
            continue
        name = param.get("name")
        value = param.get("value")
        if isinstance(name, str) and isinstance(value, str):
            values[name] = value
    return values


def _run_state(status: Mapping[str, Any]) -> Tuple[PipelineRunState, str]:
    for condition in status.get("conditions") or []:
        if not isinstance(condition, Mapping):
            continue
        if condition.get("type") != "Succeeded":
            continue
        message = str(condition.get("message") or "")
        flag = condition.get("status")
        if flag == "True":
            return PipelineRunState.SUCCEEDED, message
        if flag == "False":
            return PipelineRunState.FAILED, message
        return PipelineRunState.RUNNING, message
    if status.get("startTime"):
        return PipelineRunState.RUNNING, ""
    return PipelineRunState.UNKNOWN, ""
