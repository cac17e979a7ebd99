"""Tests for mapping registry error bodies onto typed errors."""

from __future__ import annotations

from typing import Any, Optional, Type

import pytest

from aiedge.clients.registry_errors import classify_registry_error
from aiedge.errors import (ArtifactExists, ArtifactNotFound, EdgeError,
                           FindModelVersionFailed, ModelExists, ModelNotFound,
                           RegistryTransportError, VersionExists,
                           VersionNotFound)


class DummyResponse:
    def __init__(self, status_code: int, body: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("not JSON")
        return self._body


def _error(message: str, status: int = 500) -> DummyResponse:
    return DummyResponse(status, {"code": "", "message": message})


@pytest.mark.parametrize(
    ("message", "candidate"),
    [
        ("registered model with name x already exists", ModelExists),
        ("model version with name v already exists", VersionExists),
        ("artifact with name a already exists", ArtifactExists),
        ("no registered model found for id 9", ModelNotFound),
        ("no model version found for id 9", VersionNotFound),
        ("artifact not found for id 9", ArtifactNotFound),
        ("no model versions found for name v", FindModelVersionFailed),
    ],
)
def test_known_messages_map_to_their_error(
    message: str, candidate: Type[EdgeError]
) -> None:
    error = classify_registry_error("op", _error(message), (candidate,))

    assert type(error) is candidate


def test_first_matching_candidate_wins_and_context_is_appended() -> None:
    error = classify_registry_error(
        "create model version",
        _error("model version with name v1 already exists"),
        (ModelNotFound, VersionExists),
        context="model id: 1 version name: v1",
    )

    assert isinstance(error, VersionExists)
    assert str(error) == (
        "version already exists. model id: 1 version name: v1"
    )


def test_fragments_are_only_matched_against_declared_candidates() -> None:
    error = classify_registry_error(
        "get registered model",
        _error("model version with name v1 already exists"),
        (ModelNotFound,),
    )

    assert isinstance(error, RegistryTransportError)
    assert error.status == 500


def test_literal_404_maps_to_the_not_found_candidate() -> None:
    error = classify_registry_error(
        "get model version",
        DummyResponse(404, {"message": "Not Found"}),
        (VersionNotFound,),
    )

    assert isinstance(error, VersionNotFound)


@pytest.mark.parametrize(
    ("response", "detail"),
    [
        (DummyResponse(502, None, text="<html>bad gateway</html>"), "<html>"),
        (DummyResponse(500, ["unexpected"]), ""),
        (_error("database is locked"), "database is locked"),
    ],
)
def test_unknown_bodies_become_transport_errors(
    response: DummyResponse, detail: Optional[str]
) -> None:
    error = classify_registry_error(
        "list models", response, (ModelNotFound, ModelExists)
    )

    assert isinstance(error, RegistryTransportError)
    assert str(error).startswith("error while trying to list models")
    assert detail in str(error)
