"""Client for the model registry REST API."""

from __future__ import annotations

import logging
from typing import (Any, Dict, List, Mapping, Optional, Protocol, Sequence,
                    Tuple, Type, cast)

import requests  # type: ignore[import]

from aiedge.clients.base_client import BaseClient
from aiedge.clients.registry_errors import classify_registry_error
from aiedge.config import (DEFAULT_MODEL_REGISTRY_URL, MODEL_ARTIFACT_TYPE,
                           MODEL_REGISTRY_API_PATH)
from aiedge.errors import (ArtifactExists, ArtifactNotFound, EdgeError,
                           FindArtifactFailed, FindModelVersionFailed,
                           ModelExists, ModelNotFound, RegistryTransportError,
                           UnexpectedStatusError, ValidationError,
                           VersionExists, VersionNotFound)
from aiedge.models import (Artifact, MetadataValue, ModelVersion,
                           RegisteredModel, properties_to_dict)

HTTP_OK = 200
HTTP_CREATED = 201


class _Session(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any: ...


class ModelRegistryClient(BaseClient[Any]):
    """Thin typed wrapper around the model registry REST endpoints.

    Every call is a single round-trip. Failures surface as the error types in
    :mod:`aiedge.errors`; nothing is retried.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_MODEL_REGISTRY_URL,
        *,
        session: Optional[_Session] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger=logger)
        self._session = cast(_Session, session or requests.Session())
        self._base_url = base_url.rstrip("/")
        self._api_url = f"{self._base_url}{MODEL_REGISTRY_API_PATH}"
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    # Registered models -----------------------------------------------------

    def get_registered_models(self) -> List[RegisteredModel]:
        body = self._call(
            "GET",
            "/registered_models",
            operation="get registered models",
            expected=HTTP_OK,
        )
        return [RegisteredModel.from_dict(item) for item in _items(body)]

    def get_registered_model(self, model_id: str) -> RegisteredModel:
        if not model_id:
            raise ValidationError("id is required")
        body = self._call(
            "GET",
            f"/registered_models/{model_id}",
            operation="get registered model",
            expected=HTTP_OK,
            candidates=(ModelNotFound,),
            context=f"model id: {model_id}",
        )
        return RegisteredModel.from_dict(body)

    def create_registered_model(
        self,
        name: str,
        description: str,
        custom_properties: Optional[Mapping[str, MetadataValue]] = None,
    ) -> RegisteredModel:
        """Create a registered model.

        Raises :class:`ModelExists` when the name is taken.
        """
        if not name or not description:
            raise ValidationError("name and description are required")
        payload: Dict[str, Any] = {"name": name, "description": description}
        if custom_properties is not None:
            payload["customProperties"] = properties_to_dict(custom_properties)
        body = self._call(
            "POST",
            "/registered_models",
            operation="create registered model",
            expected=HTTP_CREATED,
            payload=payload,
            candidates=(ModelExists,),
            context=f"model name: {name}",
        )
        return RegisteredModel.from_dict(body)

    # Model versions --------------------------------------------------------

    def get_model_versions(self, model_id: str) -> List[ModelVersion]:
        if not model_id:
            raise ValidationError("registered model id is required")
        body = self._call(
            "GET",
            f"/registered_models/{model_id}/versions",
            operation="get model versions",
            expected=HTTP_OK,
            candidates=(ModelNotFound,),
            context=f"model id: {model_id}",
        )
        return [ModelVersion.from_dict(item) for item in _items(body)]

    def get_model_version(self, version_id: str) -> ModelVersion:
        if not version_id:
            raise ValidationError("id is required")
        body = self._call(
            "GET",
            f"/model_versions/{version_id}",
            operation="get model version",
            expected=HTTP_OK,
            candidates=(VersionNotFound,),
            context=f"version id: {version_id}",
        )
        return ModelVersion.from_dict(body)

    def create_model_version(
        self,
        model_id: str,
        version_name: str,
        custom_properties: Optional[Mapping[str, MetadataValue]] = None,
    ) -> ModelVersion:
        """Create a version under ``model_id``.

        Raises :class:`ModelNotFound` or :class:`VersionExists`.
        """
        if not model_id or not version_name:
            raise ValidationError("model ID and version are required")
        payload: Dict[str, Any] = {
            "name": version_name,
            "registeredModelId": model_id,
        }
        if custom_properties is not None:
            payload["customProperties"] = properties_to_dict(custom_properties)
        body = self._call(
            "POST",
            f"/registered_models/{model_id}/versions",
            operation="create model version",
            expected=HTTP_CREATED,
            payload=payload,
            candidates=(ModelNotFound, VersionExists),
            context=f"model id: {model_id} version name: {version_name}",
        )
        return ModelVersion.from_dict(body)

    def find_model_version(
        self,
        model_id: str,
        version_name: str,
    ) -> ModelVersion:
        """Look a version up by name; :class:`FindModelVersionFailed` if absent."""
        if not version_name:
            raise ValidationError("versionName is required")
        body = self._call(
            "GET",
            "/model_version",
            operation="find model version by name",
            expected=HTTP_OK,
            params={"name": version_name, "parentResourceId": model_id},
            candidates=(FindModelVersionFailed,),
            context=f"version name: {version_name}",
        )
        return ModelVersion.from_dict(body)

    def update_model_version(
        self,
        version_id: str,
        custom_properties: Optional[Mapping[str, MetadataValue]],
    ) -> ModelVersion:
        """Replace the custom properties of a version wholesale."""
        if not version_id:
            raise ValidationError("versionId is required")
        version = self.get_model_version(version_id)
        if custom_properties is None:
            return version
        body = self._call(
            "PATCH",
            f"/model_versions/{version_id}",
            operation="update model version",
            expected=HTTP_OK,
            payload={
                "customProperties": properties_to_dict(custom_properties),
            },
            candidates=(VersionNotFound,),
            context=f"version id: {version_id}",
        )
        return ModelVersion.from_dict(body)

    # Artifacts -------------------------------------------------------------

    def get_model_version_artifacts(self, version_id: str) -> List[Artifact]:
        if not version_id:
            raise ValidationError("model version id is required")
        body = self._call(
            "GET",
            f"/model_versions/{version_id}/artifacts",
            operation="get model version artifacts",
            expected=HTTP_OK,
            candidates=(VersionNotFound,),
            context=f"version id: {version_id}",
        )
        return [Artifact.from_dict(item) for item in _items(body)]

    def find_model_version_artifact(
        self,
        version_id: str,
        artifact_name: str,
    ) -> Artifact:
        """Return the model artifact called ``artifact_name`` on a version."""
        if not artifact_name:
            raise ValidationError("artifactName is required")
        for artifact in self.get_model_version_artifacts(version_id):
            if artifact.is_model_artifact and artifact.name == artifact_name:
                return artifact
        raise FindArtifactFailed(
            "no model artifacts found. artifact name: "
            f"{artifact_name} version id: {version_id}"
        )

    def create_model_artifact(
        self,
        version_id: str,
        artifact_name: str,
        *,
        description: str = "",
        uri: str = "",
        model_format_name: str = "",
        model_format_version: str = "",
        external_id: str = "",
    ) -> Artifact:
        """Attach a new model artifact to a version.

        Raises :class:`VersionNotFound` or :class:`ArtifactExists`.
        """
        if not version_id or not artifact_name:
            raise ValidationError("versionId and name are required")
        payload = {
            "artifactType": MODEL_ARTIFACT_TYPE,
            "name": artifact_name,
            "description": description,
            "uri": uri,
            "modelFormatName": model_format_name,
            "modelFormatVersion": model_format_version,
            "externalId": external_id,
        }
        body = self._call(
            "POST",
            f"/model_versions/{version_id}/artifacts",
            operation="create model version artifact",
            expected=HTTP_CREATED,
            payload=payload,
            candidates=(VersionNotFound, ArtifactExists),
            context=f"version id: {version_id} artifact name: {artifact_name}",
        )
        return Artifact.from_dict(body)

    def update_model_artifact(
        self,
        artifact_id: str,
        external_id: str,
    ) -> Artifact:
        """Set the external id of an artifact; nothing else is touched."""
        if not artifact_id:
            raise ValidationError("artifactId is required")
        body = self._call(
            "PATCH",
            f"/model_artifacts/{artifact_id}",
            operation="update model version artifact",
            expected=HTTP_OK,
            payload={
                "artifactType": MODEL_ARTIFACT_TYPE,
                "externalId": external_id,
            },
            candidates=(ArtifactNotFound,),
            context=f"artifact id: {artifact_id}",
        )
        return Artifact.from_dict(body)

    def auto_register_model_version_artifact(
        self,
        model_name: str,
        model_description: str,
        version_name: str,
        *,
        artifact_name: str,
        external_id: str,
        uri: str = "",
        model_format_name: str = "",
        model_format_version: str = "",
        custom_properties: Optional[Mapping[str, MetadataValue]] = None,
    ) -> Tuple[RegisteredModel, ModelVersion, Artifact]:
        """Create a model, its version and its artifact in one go."""
        if not model_name or not model_description or not version_name:
            raise ValidationError(
                "name, description and version are required"
            )
        model = self.create_registered_model(model_name, model_description)
        version = self.create_model_version(
            model.id, version_name, custom_properties
        )
        artifact = self.create_model_artifact(
            version.id,
            artifact_name,
            description=model_description,
            uri=uri,
            model_format_name=model_format_name,
            model_format_version=model_format_version,
            external_id=external_id,
        )
        return model, version, artifact

    # Plumbing --------------------------------------------------------------

    def _call(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        expected: int,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        candidates: Sequence[Type[EdgeError]] = (),
        context: str = "",
    ) -> Dict[str, Any]:
        url = f"{self._api_url}{path}"

        def _operation() -> Any:
            self._logger.debug("%s %s", method, url)
            return self._session.request(
                method,
                url,
                params=params,
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )

        try:
            response = self._execute(
                _operation, name=f"registry.{method} {path}"
            )
        except requests.RequestException as error:
            raise RegistryTransportError(
                f"error while trying to {operation}: {error}"
            ) from error

        status = response.status_code
        if status != expected:
            if 200 <= status < 300:
                raise UnexpectedStatusError(operation, status)
            raise classify_registry_error(
                operation, response, candidates, context=context
            )

        try:
            body = response.json()
        except ValueError as error:
            raise RegistryTransportError(
                f"error while trying to {operation}: invalid JSON response",
                status=status,
            ) from error
        if not isinstance(body, dict):
            raise RegistryTransportError(
                f"error while trying to {operation}: unexpected response body",
                status=status,
            )
        return body


def _items(body: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    items = body.get("items") or []
    return [item for item in items if isinstance(item, Mapping)]
