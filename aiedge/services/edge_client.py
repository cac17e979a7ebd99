"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

High level operations over registered models and their edge images.

``EdgeClient`` is the library surface the CLI talks to. It holds no state
between calls: every listing is recomputed from the registry, and build
submissions go through a pipeline client created per call from the given
kubeconfig.
"""

from __future__ import annotations

import logging
from typing import (Any, Callable, Dict, List, Mapping, Optional, Tuple)

from aiedge.clients.pipeline_client import PipelineClient
from aiedge.clients.registry_client import ModelRegistryClient
from aiedge.config import EDGE_COMPATIBLE_KEY, MODEL_FORMAT_NAME
from aiedge.errors import ImageNotFound, ValidationError
from aiedge.models import (Model, ModelImage, ParamValue, PipelineRunSummary)
from aiedge.utils.params import normalize_parameters

from .build_trigger import trigger_build
from .drift import needs_sync
from .identity import fingerprint
from .metadata_codec import from_metadata_value_map, to_metadata_value_map
from .reconciler import ensure_resources

PipelineClientFactory = Callable[[str], PipelineClient]


class EdgeClient:
    """Facade over the model registry and the build pipeline."""

    def __init__(
        self,
        registry: ModelRegistryClient,
        *,
        pipeline_client_factory: PipelineClientFactory = (
            PipelineClient.from_kubeconfig
        ),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registry = registry
        self._pipeline_client_factory = pipeline_client_factory
        self._logger = logger or logging.getLogger(__name__)

    def list_models(self) -> List[Model]:
        return [
            Model(id=model.id, name=model.name, description=model.description)
            for model in self._registry.get_registered_models()
        ]

    def add_model(
        self,
        name: str,
        description: str,
        version: str,
        parameters: Optional[Mapping[str, Any]],
        uri: str = "",
    ) -> ModelImage:
        """Register a model, its first version and its image artifact."""
        if not name or not description or not version:
            raise ValidationError("name, description and version are required")
        params = normalize_parameters(parameters) or {}
        params[EDGE_COMPATIBLE_KEY] = "true"
        external_id = fingerprint(name, version, name)

        model, model_version, artifact = (
            self._registry.auto_register_model_version_artifact(
                name,
                description,
                version,
                artifact_name=name,
                external_id=external_id,
                uri=uri,
                model_format_name=MODEL_FORMAT_NAME,
                custom_properties=to_metadata_value_map(params, strict=True),
            )
        )
        self._logger.info(
            "Registered model %s (%s) version %s", model.name, model.id,
            model_version.name,
        )
        return ModelImage(
            model_id=model.id,
            name=model.name,
            description=model.description,
            version=model_version.name,
            id=artifact.external_id,
            uri=artifact.uri,
            needs_sync=False,
            build_params=from_metadata_value_map(
                model_version.custom_properties
            ),
        )

    def list_images(self) -> List[ModelImage]:
        """Recompute every model image from the registry."""
        images: List[ModelImage] = []
        for model in self._registry.get_registered_models():
            versions = self._registry.get_model_versions(model.id)
            if not versions:
                self._logger.debug("Model %s has no versions", model.id)
                continue
            for version in versions:
                build_params = from_metadata_value_map(
                    version.custom_properties
                )
                artifacts = self._registry.get_model_version_artifacts(
                    version.id
                )
                if not artifacts:
                    images.append(
                        ModelImage(
                            model_id=model.id,
                            name=model.name,
                            description=model.description,
                            version=version.name,
                            needs_sync=True,
                            build_params=build_params,
                        )
                    )
                    continue
                for artifact in artifacts:
                    drifted = True
                    if artifact.id:
                        drifted = needs_sync(model, version, artifact)
                    images.append(
                        ModelImage(
                            model_id=model.id,
                            name=model.name,
                            description=model.description,
                            version=version.name,
                            id=(
                                artifact.external_id
                                if artifact.is_model_artifact
                                else ""
                            ),
                            uri=artifact.uri,
                            needs_sync=drifted,
                            build_params=build_params,
                        )
                    )
        return images

    def list_images_with_pipeline_runs(
        self,
        namespace: str,
        kubeconfig: str,
    ) -> List[ModelImage]:
        """List images together with the latest build run of each."""
        if not namespace:
            raise ValidationError("namespace is required")
        images = self.list_images()
        pipeline_client = self._pipeline_client_factory(kubeconfig)
        latest = _latest_runs(pipeline_client.list_pipeline_runs(namespace))
        return [
            _with_run(image, latest.get((image.name, image.version)))
            for image in images
        ]

    def describe_image(self, model_id: str, version_name: str) -> ModelImage:
        if not model_id or not version_name:
            raise ValidationError("model ID and version are required")
        for image in self.list_images():
            if image.model_id == model_id and image.version == version_name:
                return image
        raise ImageNotFound(
            f"image not found. model id: {model_id} version: {version_name}"
        )

    def sync_image(
        self,
        model_id: str,
        version_name: str,
        parameters: Optional[Mapping[str, Any]],
    ) -> Dict[str, ParamValue]:
        """Reconcile one model version; returns its stored parameters."""
        if not model_id or not version_name:
            raise ValidationError("model ID and version are required")
        return ensure_resources(
            self._registry,
            model_id,
            version_name,
            normalize_parameters(parameters),
        )

    def build_image(
        self,
        image_id: str,
        namespace: str,
        kubeconfig: str,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> PipelineRunSummary:
        """Submit the build pipeline for the image with ``image_id``."""
        if not image_id:
            raise ValidationError("image ID is required")
        if not namespace:
            raise ValidationError("namespace is required")
        params = normalize_parameters(parameters)
        image = self._find_image(image_id)
        pipeline_client = self._pipeline_client_factory(kubeconfig)
        return trigger_build(image, namespace, pipeline_client, params)

    def _find_image(self, image_id: str) -> ModelImage:
        for image in self.list_images():
            if image.id == image_id:
                return image
        raise ImageNotFound(f"image with ID {image_id} not found")


def _latest_runs(
    runs: List[PipelineRunSummary],
) -> Dict[Tuple[str, str], PipelineRunSummary]:
    latest: Dict[Tuple[str, str], PipelineRunSummary] = {}
    for run in runs:
        key = (run.model_name, run.model_version)
        current = latest.get(key)
        # RFC 3339 timestamps in UTC sort lexically.
        if current is None or (run.start_time or "") > (
            current.start_time or ""
        ):
            latest[key] = run
    return latest


def _with_run(
    image: ModelImage,
    run: Optional[PipelineRunSummary],
) -> ModelImage:
    if run is None:
        return image
    return ModelImage(
        model_id=image.model_id,
        name=image.name,
        description=image.description,
        version=image.version,
        id=image.id,
        uri=image.uri,
        needs_sync=image.needs_sync,
        build_params=image.build_params,
        last_pipeline_run=run,
    )
