"""Turn a synced model image into a Tekton ``PipelineRun`` submission."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from aiedge.clients.pipeline_client import PipelineClient
from aiedge.config import (BUILD_VOLUME_SIZE, PARAM_ADD_DIR_WORKSPACE,
                           PARAM_MODEL_NAME, PARAM_MODEL_VERSION,
                           PARAM_S3_SECRET_NAME, PARAM_TEST_DATA_CONFIG_MAP,
                           PIPELINE_LABEL, PIPELINE_NAME,
                           PIPELINE_RUN_GENERATE_NAME,
                           PIPELINE_SERVICE_ACCOUNT, TEKTON_GROUP,
                           TEKTON_VERSION, WORKSPACE_BUILD_PV,
                           WORKSPACE_S3_SECRET, WORKSPACE_SCRATCH,
                           WORKSPACE_TEST_DATA)
from aiedge.errors import (ParameterValidationError, PreconditionFailedError,
                           ValidationError)
from aiedge.models import ModelImage, ParamValue, PipelineRunSummary

logger = logging.getLogger(__name__)


def trigger_build(
    image: ModelImage,
    namespace: str,
    pipeline_client: PipelineClient,
    parameters: Optional[Mapping[str, ParamValue]] = None,
) -> PipelineRunSummary:
    """Submit the build pipeline for ``image`` into ``namespace``.

    ``parameters`` defaults to the parameters stored on the model version.
    """

    if not namespace:
        raise ValidationError("namespace is required")
    if image.needs_sync:
        raise PreconditionFailedError(
            f"image with ID {image.id or '<none>'} needs sync"
        )

    params = dict(image.build_params if parameters is None else parameters)
    manifest = build_pipeline_run_manifest(
        namespace, image.name, image.version, params
    )
    logger.info(
        "Submitting %s for model %s version %s in namespace %s",
        PIPELINE_NAME,
        image.name,
        image.version,
        namespace,
    )
    return pipeline_client.create_pipeline_run(manifest)


def validate_build_parameters(params: Mapping[str, Any]) -> bool:
    """Check the parameters the pipeline workspaces depend on.

    Returns whether the optional scratch workspace was requested.
    """
    for key in (PARAM_S3_SECRET_NAME, PARAM_TEST_DATA_CONFIG_MAP,
                PARAM_ADD_DIR_WORKSPACE):
        value = params.get(key)
        if value is None:
            raise ParameterValidationError(
                f"missing build parameter {key}", key=key
            )
        if not isinstance(value, str):
            raise ParameterValidationError(
                f"build parameter {key} must be a string, got "
                f"{type(value).__name__}",
                key=key,
            )
    return params[PARAM_ADD_DIR_WORKSPACE] == "true"


def to_pipeline_params(
    model_name: str,
    model_version: str,
    params: Mapping[str, Any],
) -> List[Dict[str, Any]]:
    pipeline_params: List[Dict[str, Any]] = [
        {"name": PARAM_MODEL_NAME, "value": model_name},
        {"name": PARAM_MODEL_VERSION, "value": model_version},
    ]
    for key in sorted(params):
        value = params[key]
        if isinstance(value, str):
            pipeline_params.append({"name": key, "value": value})
        elif isinstance(value, (list, tuple)) and all(
            isinstance(item, str) for item in value
        ):
            pipeline_params.append({"name": key, "value": list(value)})
        else:
            raise ParameterValidationError(
                f"unsupported parameter type for {key}: "
                f"{type(value).__name__}",
                key=key,
            )
    return pipeline_params


def build_pipeline_run_manifest(
    namespace: str,
    model_name: str,
    model_version: str,
    params: Mapping[str, Any],
) -> Dict[str, Any]:
    add_workspace = validate_build_parameters(params)

    workspaces: List[Dict[str, Any]] = [
        {
            "name": WORKSPACE_BUILD_PV,
            "volumeClaimTemplate": {
                "spec": {
                    "accessModes": ["ReadWriteOnce"],
                    "resources": {
                        "requests": {"storage": BUILD_VOLUME_SIZE},
                    },
                },
            },
        },
        {
            "name": WORKSPACE_S3_SECRET,
            "secret": {"secretName": params[PARAM_S3_SECRET_NAME]},
        },
        {
            "name": WORKSPACE_TEST_DATA,
            "configMap": {"name": params[PARAM_TEST_DATA_CONFIG_MAP]},
        },
    ]
    if add_workspace:
        workspaces.append({"name": WORKSPACE_SCRATCH, "emptyDir": {}})

    return {
        "apiVersion": f"{TEKTON_GROUP}/{TEKTON_VERSION}",
        "kind": "PipelineRun",
        "metadata": {
            "generateName": PIPELINE_RUN_GENERATE_NAME,
            "namespace": namespace,
            "labels": {PIPELINE_LABEL: PIPELINE_NAME},
        },
        "spec": {
            "pipelineRef": {"name": PIPELINE_NAME},
            "params": to_pipeline_params(model_name, model_version, params),
            "taskRunTemplate": {
                "serviceAccountName": PIPELINE_SERVICE_ACCOUNT,
            },
            "workspaces": workspaces,
        },
    }
