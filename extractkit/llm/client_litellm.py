"""
LiteLLM client: single structured-output calls through any LiteLLM-routable model id.
Exception mapping (LiteLLM → BackendError):
  - APITimeoutError / Timeout → BackendTimeout
  - RateLimitError → BackendRateLimited
  - AuthenticationError / PermissionDeniedError → BackendAuthError
  - BadRequestError / InvalidRequestError / NotFoundError → BackendBadRequest
  - APIError / ServiceUnavailableError / APIConnectionError → BackendUnavailable
  - unknown → BackendUnavailable (5xx-ish) or BackendError(UNKNOWN)
Batch queueing is not offered through this transport.
"""
from __future__ import annotations

import asyncio
import json
import time
from typing import Any

from litellm import acompletion

from extractkit.llm.errors import (
    BackendAuthError,
    BackendBadRequest,
    BackendError,
    BackendRateLimited,
    BackendResponseInvalid,
    BackendTimeout,
    BackendUnavailable,
)
from extractkit.llm.settings import BackendSettings
from extractkit.llm.telemetry import log_backend_call

# Exception mapping uses type(e).__name__ (see _map_exception) so LiteLLM layout changes are safe.


def _map_exception(e: Exception, backend_id: str) -> BackendError:
    """Map LiteLLM/provider exceptions to BackendError by class name."""
    exc_name = type(e).__name__
    if isinstance(e, BackendError):
        return e
    if exc_name in ("APITimeoutError", "Timeout"):
        return BackendTimeout(details=exc_name, backend_id=backend_id)
    if exc_name == "RateLimitError":
        return BackendRateLimited(details=exc_name, backend_id=backend_id)
    if exc_name in ("AuthenticationError", "PermissionDeniedError"):
        return BackendAuthError(details=exc_name, backend_id=backend_id)
    if exc_name in ("BadRequestError", "InvalidRequestError", "NotFoundError"):
        return BackendBadRequest(str(e), details=exc_name, backend_id=backend_id)
    if exc_name in ("ServiceUnavailableError", "APIConnectionError", "APIError"):
        return BackendUnavailable(str(e), details=exc_name, backend_id=backend_id)
    if getattr(e, "status_code", None) in (500, 502, 503, 504) or "timeout" in str(e).lower():
        return BackendUnavailable(str(e), details=exc_name, backend_id=backend_id)
    return BackendError(
        str(e),
        code="UNKNOWN",
        retryable=False,
        backend_id=backend_id,
        details=exc_name,
    )


def _openai_response_format(response_format: dict[str, Any] | None) -> dict[str, Any] | None:
    """Wrap a bare ``json_schema`` constraint into OpenAI's ``{name, schema}`` shape."""
    if not response_format or response_format.get("type") != "json_schema":
        return response_format
    schema = response_format.get("json_schema") or {}
    if "schema" in schema and "name" in schema:
        return response_format
    return {
        "type": "json_schema",
        "json_schema": {"name": "structured_extraction", "schema": schema, "strict": False},
    }


def _content_from_completion(raw: Any) -> str | None:
    if hasattr(raw, "choices") and raw.choices:
        msg = getattr(raw.choices[0], "message", None)
        if msg is not None:
            return getattr(msg, "content", None)
    return None


def _decode_content(content: str | None, backend_id: str) -> Any:
    """Decode message content to JSON; None when the model produced nothing."""
    if content is None or not content.strip():
        return None
    text = content.strip()
    # Some models still wrap JSON in a markdown fence
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[len("json"):]
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise BackendResponseInvalid(
            f"Model {backend_id} returned content that is not JSON",
            backend_id=backend_id,
            details=str(e),
        ) from e


class LiteLLMClient:
    """Async LiteLLM wrapper: semaphore, timeout, retries, response normalization."""

    def __init__(
        self,
        *,
        concurrency_limit: int = 8,
        max_retries: int = 2,
        default_timeout_s: float = 120.0,
        backoff_base_s: float = 0.5,
        backoff_max_s: float = 8.0,
        drop_params: bool = True,
    ) -> None:
        self._sem = asyncio.Semaphore(concurrency_limit)
        self._max_retries = max_retries
        self._default_timeout_s = default_timeout_s
        self._backoff_base_s = backoff_base_s
        self._backoff_max_s = backoff_max_s
        self._drop_params = drop_params

    @classmethod
    def from_settings(cls, settings: BackendSettings) -> "LiteLLMClient":
        return cls(
            concurrency_limit=settings.concurrency_limit,
            max_retries=settings.max_retries,
            default_timeout_s=settings.default_timeout_s,
            backoff_base_s=settings.retry_backoff_base_s,
            backoff_max_s=settings.retry_backoff_max_s,
            drop_params=settings.drop_unsupported_params,
        )

    async def run(
        self,
        backend_id: str,
        inputs: dict[str, Any],
        *,
        queue_request: bool = False,
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        """Execute one completion and return ``{"response": <decoded JSON>}``. Raises BackendError."""
        if queue_request or "requests" in inputs or "request_id" in inputs:
            raise BackendBadRequest(
                "Batch queueing is not supported by the litellm transport",
                backend_id=backend_id,
            )
        kwargs: dict[str, Any] = {
            "model": backend_id,
            "messages": inputs.get("messages") or [],
            "timeout": timeout_s if timeout_s is not None else self._default_timeout_s,
        }
        response_format = _openai_response_format(inputs.get("response_format"))
        if response_format is not None:
            kwargs["response_format"] = response_format
        if self._drop_params:
            kwargs["drop_params"] = True

        last_error: BackendError | None = None
        for attempt in range(self._max_retries + 1):
            async with self._sem:
                t0 = time.perf_counter()
                try:
                    raw = await acompletion(**kwargs)
                    payload = _decode_content(_content_from_completion(raw), backend_id)
                    log_backend_call(
                        backend_id=backend_id,
                        operation="run",
                        latency_ms=int((time.perf_counter() - t0) * 1000),
                        status="SUCCEEDED",
                        attempt=attempt,
                    )
                    return {"response": payload}
                except Exception as e:  # noqa: BLE001
                    err = _map_exception(e, backend_id)
                    last_error = err
                    log_backend_call(
                        backend_id=backend_id,
                        operation="run",
                        latency_ms=int((time.perf_counter() - t0) * 1000),
                        status="FAILED",
                        attempt=attempt,
                        error_code=err.code,
                    )
                    if not err.retryable or attempt == self._max_retries:
                        raise err from e
            delay = min(self._backoff_base_s * (2**attempt), self._backoff_max_s)
            await asyncio.sleep(delay)
        if last_error is not None:
            raise last_error
        raise BackendUnavailable("Max retries exceeded", backend_id=backend_id)
