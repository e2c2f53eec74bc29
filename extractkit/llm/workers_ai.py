"""
Workers AI REST client: one "run" endpoint for single calls, queued batches and batch polls.
Error mapping (HTTP / httpx → BackendError):
  - httpx.TimeoutException, 408, 504 → BackendTimeout
  - 429 → BackendRateLimited
  - 401 / 403 → BackendAuthError
  - 400 / 404 / 422, envelope success=false → BackendBadRequest
  - other 5xx, httpx.TransportError, other httpx.HTTPError → BackendUnavailable
  - undecodable body, httpx.DecodingError → BackendResponseInvalid
"""
from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from extractkit.llm.errors import (
    BackendBadRequest,
    BackendError,
    BackendResponseInvalid,
    BackendTimeout,
    BackendUnavailable,
    error_for_status,
)
from extractkit.llm.settings import BackendSettings
from extractkit.llm.telemetry import log_backend_call


def _operation(inputs: dict[str, Any], queue_request: bool) -> str:
    if queue_request:
        return "batch_submit"
    if "request_id" in inputs:
        return "batch_poll"
    return "run"


def _upstream_messages(body: Any) -> str:
    """Join the messages of a Cloudflare-style ``errors`` list."""
    if not isinstance(body, dict):
        return ""
    errors = body.get("errors") or []
    parts = []
    for err in errors:
        if isinstance(err, dict):
            parts.append(str(err.get("message") or err.get("code") or err))
        else:
            parts.append(str(err))
    return "; ".join(parts)


def _unwrap_envelope(response: httpx.Response, backend_id: str) -> dict[str, Any] | None:
    """Return ``result`` from a ``{success, result, errors}`` envelope. Raises BackendError."""
    if not response.content:
        return None
    try:
        body = response.json()
    except ValueError as e:
        raise BackendResponseInvalid(
            f"Backend {backend_id} returned a non-JSON body",
            backend_id=backend_id,
            details=type(e).__name__,
        ) from e
    if not isinstance(body, dict):
        raise BackendResponseInvalid(
            f"Backend {backend_id} returned a {type(body).__name__} instead of an object",
            backend_id=backend_id,
        )
    if body.get("success") is False:
        raise BackendBadRequest(
            _upstream_messages(body) or f"Backend {backend_id} reported failure",
            backend_id=backend_id,
        )
    if "result" in body:
        result = body["result"]
        if result is not None and not isinstance(result, dict):
            raise BackendResponseInvalid(
                f"Backend {backend_id} returned a {type(result).__name__} result",
                backend_id=backend_id,
            )
        return result
    return body


class WorkersAIClient:
    """Async Workers AI client: semaphore, timeout, retries, envelope normalization."""

    def __init__(
        self,
        *,
        account_id: str,
        api_token: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        concurrency_limit: int = 8,
        max_retries: int = 2,
        default_timeout_s: float = 120.0,
        backoff_base_s: float = 0.5,
        backoff_max_s: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._account_id = account_id
        self._sem = asyncio.Semaphore(concurrency_limit)
        self._max_retries = max_retries
        self._default_timeout_s = default_timeout_s
        self._backoff_base_s = backoff_base_s
        self._backoff_max_s = backoff_max_s
        self._client = httpx.AsyncClient(
            base_url=api_base,
            headers={"Authorization": f"Bearer {api_token}"},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: BackendSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "WorkersAIClient":
        return cls(
            account_id=settings.workers_ai_account_id or "",
            api_token=settings.workers_ai_api_token or "",
            api_base=settings.workers_ai_api_base,
            concurrency_limit=settings.concurrency_limit,
            max_retries=settings.max_retries,
            default_timeout_s=settings.default_timeout_s,
            backoff_base_s=settings.retry_backoff_base_s,
            backoff_max_s=settings.retry_backoff_max_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "WorkersAIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _path(self, backend_id: str) -> str:
        return f"/accounts/{self._account_id}/ai/run/{backend_id}"

    async def _post_once(
        self,
        backend_id: str,
        inputs: dict[str, Any],
        *,
        queue_request: bool,
        timeout_s: float,
    ) -> dict[str, Any] | None:
        params = {"queueRequest": "true"} if queue_request else None
        try:
            response = await self._client.post(
                self._path(backend_id),
                json=inputs,
                params=params,
                timeout=timeout_s,
            )
        except httpx.TimeoutException as e:
            raise BackendTimeout(backend_id=backend_id, details=type(e).__name__) from e
        except httpx.TransportError as e:
            raise BackendUnavailable(str(e) or "connection failed", backend_id=backend_id, details=type(e).__name__) from e
        except httpx.DecodingError as e:
            raise BackendResponseInvalid(
                f"Backend {backend_id} sent a body that could not be decoded: {e}",
                backend_id=backend_id,
                details=type(e).__name__,
            ) from e
        except httpx.HTTPError as e:
            raise BackendUnavailable(str(e) or "request failed", backend_id=backend_id, details=type(e).__name__) from e
        if response.is_error:
            message = f"Backend {backend_id} responded with HTTP {response.status_code}"
            try:
                upstream = _upstream_messages(response.json())
            except ValueError:
                upstream = ""
            if upstream:
                message = f"{message}: {upstream}"
            raise error_for_status(response.status_code, message, backend_id=backend_id)
        return _unwrap_envelope(response, backend_id)

    async def run(
        self,
        backend_id: str,
        inputs: dict[str, Any],
        *,
        queue_request: bool = False,
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        """Execute one call. Applies semaphore, timeout, retries. Raises BackendError on failure."""
        timeout = timeout_s if timeout_s is not None else self._default_timeout_s
        operation = _operation(inputs, queue_request)
        # a resubmitted batch would be queued twice
        max_retries = 0 if queue_request else self._max_retries
        last_error: BackendError | None = None
        for attempt in range(max_retries + 1):
            async with self._sem:
                t0 = time.perf_counter()
                try:
                    result = await self._post_once(
                        backend_id, inputs, queue_request=queue_request, timeout_s=timeout
                    )
                    log_backend_call(
                        backend_id=backend_id,
                        operation=operation,
                        latency_ms=int((time.perf_counter() - t0) * 1000),
                        status="SUCCEEDED",
                        attempt=attempt,
                    )
                    return result
                except BackendError as err:
                    last_error = err
                    log_backend_call(
                        backend_id=backend_id,
                        operation=operation,
                        latency_ms=int((time.perf_counter() - t0) * 1000),
                        status="FAILED",
                        attempt=attempt,
                        error_code=err.code,
                    )
                    if not err.retryable or attempt == max_retries:
                        raise
            delay = min(self._backoff_base_s * (2**attempt), self._backoff_max_s)
            await asyncio.sleep(delay)
        if last_error is not None:
            raise last_error
        raise BackendUnavailable("Max retries exceeded", backend_id=backend_id)
