"""Port interface for text-generation backends. The extraction core depends on this, not on clients."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TextGenerationBackend(Protocol):
    """Run one model invocation, a queued batch submission, or a batch poll.

    ``inputs`` is one of:
      - ``{"messages": [...], "response_format": {...}}`` for a single extraction
      - ``{"requests": [...]}`` with ``queue_request=True`` for a batch submission
      - ``{"request_id": "..."}`` for a batch poll
    Returns the decoded result envelope (or None when the backend sent no body).
    Raises BackendError on transport or upstream failure.
    """

    async def run(
        self,
        backend_id: str,
        inputs: dict[str, Any],
        *,
        queue_request: bool = False,
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        ...
