from __future__ import annotations

"""Helpers for loading environment configuration."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from aiedge.config import DEFAULT_MODEL_REGISTRY_URL

_ENV_LOADED = False

_LOGGER = logging.getLogger(__name__)

ENV_REGISTRY_URL = "AIEDGE_MODEL_REGISTRY_URL"
ENV_KUBECONFIG = "KUBECONFIG"
ENV_NAMESPACE = "AIEDGE_NAMESPACE"
ENV_REQUEST_TIMEOUT = "AIEDGE_REQUEST_TIMEOUT"


def load_dotenv(dotenv_path: Union[str, Path] = ".env") -> None:
    """Load environment variables from a simple ``.env`` file if present."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    path = Path(dotenv_path)
    if path.exists():
        for line in path.read_text().splitlines():
            parsed = _parse_line(line)
            if parsed:
                key, value = parsed
                os.environ.setdefault(key, value)

    _ENV_LOADED = True


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    if "=" not in stripped:
        return None

    key, value = stripped.split("=", 1)
    return (key.strip(), value.strip())


@dataclass(frozen=True)
class RuntimeSettings:
    """Connection settings resolved from the environment."""

    model_registry_url: str
    kubeconfig: str
    namespace: str
    request_timeout: Optional[float]


def default_kubeconfig() -> str:
    return str(Path.home() / ".kube" / "config")


def load_settings() -> RuntimeSettings:
    """Resolve runtime settings, reading ``.env`` on first use."""

    load_dotenv()
    registry_url = (
        os.environ.get(ENV_REGISTRY_URL, "").strip()
        or DEFAULT_MODEL_REGISTRY_URL
    )
    kubeconfig = (
        os.environ.get(ENV_KUBECONFIG, "").strip() or default_kubeconfig()
    )
    namespace = os.environ.get(ENV_NAMESPACE, "").strip()
    return RuntimeSettings(
        model_registry_url=registry_url,
        kubeconfig=kubeconfig,
        namespace=namespace,
        request_timeout=_read_timeout(os.environ.get(ENV_REQUEST_TIMEOUT)),
    )


def _read_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        _LOGGER.warning(
            "Ignoring %s=%r; expected a number of seconds",
            ENV_REQUEST_TIMEOUT,
            raw,
        )
        return None
    if value <= 0:
        return None
    return value
