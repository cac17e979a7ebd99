"""Base class for outbound service clients."""

from __future__ import annotations

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class BaseClient(Generic[T]):
    """Run outbound requests with latency logging.

    Clients hold no state between calls besides their injected transport, so
    callers may build one per operation or share it.
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def _execute(
        self,
        operation: Callable[[], T],
        *,
        name: Optional[str] = None,
    ) -> T:
        """Run ``operation`` and log how long it took."""
        label = name or getattr(operation, "__name__", "<anonymous>")

        started_at = time.perf_counter()
        try:
            return operation()
        finally:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            if self._logger.isEnabledFor(logging.DEBUG):
                self._logger.debug(
                    "Operation %s completed in %.2f ms",
                    label,
                    elapsed_ms,
                )
