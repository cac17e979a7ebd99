"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Central configuration constants for the aiedge CLI and library.
"""

from __future__ import annotations

# Model registry ------------------------------------------------------------

DEFAULT_MODEL_REGISTRY_URL = "http://localhost:8080"
"""Registry endpoint used when neither flag nor environment provide one."""

MODEL_REGISTRY_API_PATH = "/api/model_registry/v1alpha3"
"""REST prefix appended to the registry base URL."""

MODEL_ARTIFACT_TYPE = "model-artifact"
"""``artifactType`` discriminator of model artifacts."""

MODEL_FORMAT_NAME = "ContainerImage"
"""Format recorded on artifacts created for edge images."""

EDGE_COMPATIBLE_KEY = "edgeCompatible"
"""Version custom property flagging the version as buildable."""

# Build pipeline ------------------------------------------------------------

PIPELINE_NAME = "aiedge-e2e"
PIPELINE_RUN_GENERATE_NAME = f"{PIPELINE_NAME}-"
PIPELINE_LABEL = "tekton.dev/pipeline"
PIPELINE_SERVICE_ACCOUNT = "pipeline"

TEKTON_GROUP = "tekton.dev"
TEKTON_VERSION = "v1"
TEKTON_PIPELINE_RUN_PLURAL = "pipelineruns"

PARAM_MODEL_NAME = "model-name"
PARAM_MODEL_VERSION = "model-version"

PARAM_S3_SECRET_NAME = "s3SecretName"
PARAM_TEST_DATA_CONFIG_MAP = "testDataConfigMapName"
PARAM_ADD_DIR_WORKSPACE = "addDirWorkspace"

WORKSPACE_BUILD_PV = "build-workspace-pv"
WORKSPACE_S3_SECRET = "s3-secret"
WORKSPACE_TEST_DATA = "test-data"
WORKSPACE_SCRATCH = "workspace"
BUILD_VOLUME_SIZE = "1Gi"

DEFAULT_PARAMS_FILE = "params.yaml"
