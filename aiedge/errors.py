"""Error taxonomy shared by the registry, reconciler and build layers."""

from __future__ import annotations

from typing import Optional


class EdgeError(RuntimeError):
    """Base class for every failure surfaced to callers."""


class NotFoundError(EdgeError):
    """Raised when a registry resource does not exist."""


class ModelNotFound(NotFoundError):
    """Raised when a registered model id does not exist."""


class VersionNotFound(NotFoundError):
    """Raised when a model version does not exist."""


class ArtifactNotFound(NotFoundError):
    """Raised when a model version artifact does not exist."""


class FindModelVersionFailed(NotFoundError):
    """Raised when a find-by-name lookup yields no model version."""


class FindArtifactFailed(NotFoundError):
    """Raised when a version has no model artifact with the given name."""


class ImageNotFound(NotFoundError):
    """Raised when no model image matches the requested identity."""


class AlreadyExistsError(EdgeError):
    """Raised when a create call collides with an existing resource."""


class ModelExists(AlreadyExistsError):
    """Raised when a registered model with the same name exists."""


class VersionExists(AlreadyExistsError):
    """Raised when the model already has a version with the same name."""


class ArtifactExists(AlreadyExistsError):
    """Raised when the version already has an artifact with the same name."""


class ValidationError(EdgeError):
    """Raised when caller input fails validation."""

    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class ParameterValidationError(ValidationError):
    """Raised when a build parameter is missing or has the wrong type."""


class MetadataCodecError(ValidationError):
    """Raised when a metadata value cannot be encoded or decoded."""


class PreconditionFailedError(EdgeError):
    """Raised when an operation's registry precondition does not hold."""


class TransportError(EdgeError):
    """Opaque wrapper around an underlying transport or decoding failure."""


class RegistryTransportError(TransportError):
    """Raised when a registry call fails in a way we cannot classify."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.status = status


class PipelineSubmissionError(TransportError):
    """Raised when the execution platform rejects or fails a request."""


class UnexpectedStatusError(EdgeError):
    """Raised when a call succeeds at the transport level with a bad code."""

    def __init__(self, operation: str, status: int) -> None:
        super().__init__(f"failed to {operation}: server responded with {status}")
        self.operation = operation
        self.status = status
