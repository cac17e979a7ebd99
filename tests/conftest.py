"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Shared fixtures: an in-memory model registry and a fake Kubernetes API.
"""

from __future__ import annotations

import itertools
import json as jsonlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest
from kubernetes.client.exceptions import ApiException  # type: ignore[import]

from aiedge import logging_config
from aiedge.clients.pipeline_client import PipelineClient
from aiedge.clients.registry_client import ModelRegistryClient
from aiedge.config import MODEL_REGISTRY_API_PATH
from aiedge.utils import env

REGISTRY_URL = "http://registry.test"


@pytest.fixture(autouse=True)
def _default_runtime_env(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> None:
    for key in (
        env.ENV_REGISTRY_URL,
        env.ENV_KUBECONFIG,
        env.ENV_NAMESPACE,
        env.ENV_REQUEST_TIMEOUT,
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("LOG_FILE", str(Path(log_dir) / "aiedge.log"))
    monkeypatch.setattr(env, "_ENV_LOADED", True)
    monkeypatch.setattr(logging_config, "_CONFIGURED", True)


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None) -> None:
        self.status_code = status_code
        self._body = body

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body

    @property
    def text(self) -> str:
        return "" if self._body is None else jsonlib.dumps(self._body)


def _server_error(message: str) -> FakeResponse:
    return FakeResponse(500, {"code": "", "message": message})


class FakeRegistryServer:
    """Stand-in for ``requests.Session`` backed by in-memory registry state.

    Error responses mimic the real server: a generic 500 whose ``message``
    carries the only hint about what went wrong.
    """

    def __init__(self) -> None:
        self.models: Dict[str, Dict[str, Any]] = {}
        self.versions: Dict[str, Dict[str, Any]] = {}
        self.artifacts: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.requests: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)

    # Seeding helpers -------------------------------------------------------

    def add_model(self, name: str, description: str = "") -> str:
        model_id = self._next_id()
        self.models[model_id] = {
            "id": model_id,
            "name": name,
            "description": description or f"{name} description",
            "customProperties": {},
        }
        return model_id

    def add_version(
        self,
        model_id: str,
        name: str,
        custom_properties: Optional[Dict[str, Any]] = None,
    ) -> str:
        version_id = self._next_id()
        self.versions[version_id] = {
            "id": version_id,
            "name": name,
            "registeredModelId": model_id,
            "customProperties": dict(custom_properties or {}),
        }
        return version_id

    def add_artifact(
        self,
        version_id: str,
        name: str,
        *,
        external_id: Optional[str] = None,
        artifact_type: str = "model-artifact",
        uri: str = "",
    ) -> str:
        artifact_id = self._next_id()
        artifact: Dict[str, Any] = {
            "id": artifact_id,
            "name": name,
            "artifactType": artifact_type,
            "uri": uri,
            "_versionId": version_id,
        }
        if external_id is not None:
            artifact["externalId"] = external_id
        self.artifacts[artifact_id] = artifact
        return artifact_id

    def mutations(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] != "GET"]

    # Session protocol ------------------------------------------------------

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> FakeResponse:
        path = urlsplit(url).path
        assert path.startswith(MODEL_REGISTRY_API_PATH), path
        path = path[len(MODEL_REGISTRY_API_PATH):]
        self.calls.append((method, path))
        self.requests.append(
            {
                "method": method,
                "path": path,
                "params": params,
                "json": json,
                "headers": headers,
                "timeout": timeout,
            }
        )
        return self._route(method, path.strip("/").split("/"), params, json)

    # Routing ---------------------------------------------------------------

    def _route(
        self,
        method: str,
        parts: List[str],
        params: Optional[Dict[str, str]],
        body: Any,
    ) -> FakeResponse:
        resource = parts[0]
        if resource == "registered_models":
            if len(parts) == 1:
                if method == "GET":
                    return _listing(self.models.values())
                return self._create_model(body)
            model_id = parts[1]
            if len(parts) == 2:
                return self._get(self.models, model_id, "registered model")
            if method == "GET":
                return self._list_versions(model_id)
            return self._create_version(model_id, body)
        if resource == "model_versions":
            version_id = parts[1]
            if len(parts) == 2:
                if method == "GET":
                    return self._get(self.versions, version_id, "model version")
                return self._patch_version(version_id, body)
            if method == "GET":
                return self._list_artifacts(version_id)
            return self._create_artifact(version_id, body)
        if resource == "model_artifacts":
            return self._patch_artifact(parts[1], body)
        if resource == "model_version":
            return self._find_version(params or {})
        return FakeResponse(404, {"code": "", "message": "not found"})

    def _create_model(self, body: Dict[str, Any]) -> FakeResponse:
        if any(m["name"] == body["name"] for m in self.models.values()):
            return _server_error(
                f"registered model with name {body['name']} already exists"
            )
        model_id = self.add_model(body["name"], body.get("description", ""))
        model = self.models[model_id]
        model["customProperties"] = dict(body.get("customProperties") or {})
        return FakeResponse(201, model)

    def _list_versions(self, model_id: str) -> FakeResponse:
        if model_id not in self.models:
            return _server_error(f"no registered model found for id {model_id}")
        return _listing(
            v for v in self.versions.values()
            if v["registeredModelId"] == model_id
        )

    def _create_version(self, model_id: str, body: Dict[str, Any]) -> FakeResponse:
        if model_id not in self.models:
            return _server_error(f"no registered model found for id {model_id}")
        if any(
            v["registeredModelId"] == model_id and v["name"] == body["name"]
            for v in self.versions.values()
        ):
            return _server_error(
                f"model version with name {body['name']} already exists"
            )
        version_id = self.add_version(
            model_id, body["name"], body.get("customProperties")
        )
        return FakeResponse(201, self.versions[version_id])

    def _patch_version(self, version_id: str, body: Dict[str, Any]) -> FakeResponse:
        if version_id not in self.versions:
            return _server_error(f"no model version found for id {version_id}")
        version = self.versions[version_id]
        if "customProperties" in body:
            version["customProperties"] = dict(body["customProperties"])
        return FakeResponse(200, version)

    def _find_version(self, params: Dict[str, str]) -> FakeResponse:
        for version in self.versions.values():
            if (
                version["name"] == params.get("name")
                and version["registeredModelId"]
                == params.get("parentResourceId")
            ):
                return FakeResponse(200, version)
        return _server_error(
            "no model versions found for name " f"{params.get('name')}"
        )

    def _list_artifacts(self, version_id: str) -> FakeResponse:
        if version_id not in self.versions:
            return _server_error(f"no model version found for id {version_id}")
        return _listing(
            _public(a) for a in self.artifacts.values()
            if a["_versionId"] == version_id
        )

    def _create_artifact(self, version_id: str, body: Dict[str, Any]) -> FakeResponse:
        if version_id not in self.versions:
            return _server_error(f"no model version found for id {version_id}")
        if any(
            a["_versionId"] == version_id and a["name"] == body["name"]
            for a in self.artifacts.values()
        ):
            return _server_error(
                f"artifact with name {body['name']} already exists"
            )
        artifact_id = self.add_artifact(
            version_id,
            body["name"],
            external_id=body.get("externalId"),
            artifact_type=body.get("artifactType", "model-artifact"),
            uri=body.get("uri", ""),
        )
        artifact = self.artifacts[artifact_id]
        for key in ("description", "modelFormatName", "modelFormatVersion"):
            artifact[key] = body.get(key, "")
        return FakeResponse(201, _public(artifact))

    def _patch_artifact(self, artifact_id: str, body: Dict[str, Any]) -> FakeResponse:
        if artifact_id not in self.artifacts:
            return _server_error(f"artifact not found for id {artifact_id}")
        artifact = self.artifacts[artifact_id]
        artifact["externalId"] = body.get("externalId", "")
        return FakeResponse(200, _public(artifact))

    def _get(
        self,
        table: Dict[str, Dict[str, Any]],
        key: str,
        noun: str,
    ) -> FakeResponse:
        if key not in table:
            return _server_error(f"no {noun} found for id {key}")
        return FakeResponse(200, table[key])

    def _next_id(self) -> str:
        return str(next(self._ids))


def _public(artifact: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in artifact.items() if not k.startswith("_")}


def _listing(items: Any) -> FakeResponse:
    values = list(items)
    return FakeResponse(
        200, {"items": values, "size": len(values), "pageSize": 100}
    )


class FakeCustomObjectsApi:
    """Records PipelineRun submissions instead of talking to a cluster."""

    def __init__(self) -> None:
        self.created: List[Dict[str, Any]] = []
        self.list_calls: List[Dict[str, Any]] = []
        self.runs: List[Dict[str, Any]] = []
        self.error: Optional[ApiException] = None

    def create_namespaced_custom_object(
        self,
        group: str,
        version: str,
        namespace: str,
        plural: str,
        body: Dict[str, Any],
    ) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.created.append(
            {
                "group": group,
                "version": version,
                "namespace": namespace,
                "plural": plural,
                "body": body,
            }
        )
        metadata = dict(body["metadata"])
        metadata["name"] = f"{metadata.pop('generateName')}x7k2p"
        return {**body, "metadata": metadata, "status": {}}

    def list_namespaced_custom_object(
        self,
        group: str,
        version: str,
        namespace: str,
        plural: str,
        label_selector: str = "",
    ) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.list_calls.append(
            {
                "group": group,
                "version": version,
                "namespace": namespace,
                "plural": plural,
                "label_selector": label_selector,
            }
        )
        return {"items": list(self.runs)}


@pytest.fixture
def fake_registry() -> FakeRegistryServer:
    return FakeRegistryServer()


@pytest.fixture
def registry_client(fake_registry: FakeRegistryServer) -> ModelRegistryClient:
    return ModelRegistryClient(REGISTRY_URL, session=fake_registry)


@pytest.fixture
def fake_custom_objects() -> FakeCustomObjectsApi:
    return FakeCustomObjectsApi()


@pytest.fixture
def pipeline_client(fake_custom_objects: FakeCustomObjectsApi) -> PipelineClient:
    return PipelineClient(fake_custom_objects)


@pytest.fixture
def build_params() -> Dict[str, Any]:
    return {
        "s3SecretName": "s3-credentials",
        "testDataConfigMapName": "test-data",
        "addDirWorkspace": "false",
        "expectedLabels": ["cat", "dog"],
    }
