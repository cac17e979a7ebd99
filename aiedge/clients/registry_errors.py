"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Translate model registry error responses into the typed error taxonomy.

The registry answers "already exists" and most "not found" conditions with a
generic 500 and tells them apart only in the ``message`` of the JSON error
body. Everything that depends on that wording lives here so it can be
replaced by plain status-code matching once the server is fixed.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Type

from aiedge.errors import (AlreadyExistsError, ArtifactExists,
                           ArtifactNotFound, EdgeError,
                           FindModelVersionFailed, ModelExists, ModelNotFound,
                           NotFoundError, RegistryTransportError,
                           VersionExists, VersionNotFound)

ALREADY_EXISTS_TEXT = "already exists"

# Message fragments the registry uses for each error kind.
MESSAGE_FRAGMENTS = {
    ModelExists: ALREADY_EXISTS_TEXT,
    VersionExists: ALREADY_EXISTS_TEXT,
    ArtifactExists: ALREADY_EXISTS_TEXT,
    ModelNotFound: "no registered model found",
    VersionNotFound: "no model version found",
    ArtifactNotFound: "artifact not found",
    FindModelVersionFailed: "no model versions found",
}

HTTP_NOT_FOUND = 404


def error_message(response: Any) -> Optional[str]:
    """Return the ``message`` field of a JSON error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    return message if isinstance(message, str) else None


def classify_registry_error(
    operation: str,
    response: Any,
    candidates: Sequence[Type[EdgeError]],
    *,
    context: str = "",
) -> EdgeError:
    """Map a failed registry response onto one of ``candidates``.

    ``candidates`` lists, in priority order, the error kinds the calling
    operation can legitimately produce. The first whose message fragment
    occurs in the error body wins. A literal 404 maps to the first not-found
    candidate. Anything else becomes a :class:`RegistryTransportError`.
    """

    status = getattr(response, "status_code", None)
    message = error_message(response)
    suffix = f". {context}" if context else ""

    if message is not None:
        for candidate in candidates:
            fragment = MESSAGE_FRAGMENTS.get(candidate)
            if fragment and fragment in message:
                return candidate(f"{_describe(candidate)}{suffix}")

    if status == HTTP_NOT_FOUND:
        for candidate in candidates:
            if issubclass(candidate, NotFoundError):
                return candidate(f"{_describe(candidate)}{suffix}")

    detail = message if message is not None else _body_text(response)
    return RegistryTransportError(
        f"error while trying to {operation}: "
        f"server responded with {status} {detail}".rstrip(),
        status=status,
    )


def _describe(candidate: Type[EdgeError]) -> str:
    if issubclass(candidate, AlreadyExistsError):
        noun = candidate.__name__.replace("Exists", "").lower()
        return f"{noun} already exists"
    return MESSAGE_FRAGMENTS.get(candidate, candidate.__name__)


def _body_text(response: Any) -> str:
    text = getattr(response, "text", "") or ""
    return text if len(text) <= 512 else f"{text[:512]}...<truncated>"
