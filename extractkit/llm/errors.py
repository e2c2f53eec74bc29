"""Error taxonomy for backend calls. Codes are stable for logs and result records."""
from __future__ import annotations


class BackendError(Exception):
    """Base for all backend errors. details must not leak secrets."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN",
        retryable: bool = False,
        backend_id: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.backend_id = backend_id
        self.details = details or ""


class BackendTimeout(BackendError):
    """Request timed out."""

    def __init__(self, message: str = "Backend request timed out", **kwargs: object) -> None:
        super().__init__(message, code="TIMEOUT", retryable=True, **kwargs)


class BackendRateLimited(BackendError):
    """Rate limit (429) or quota exceeded."""

    def __init__(self, message: str = "Backend rate limited", **kwargs: object) -> None:
        super().__init__(message, code="RATE_LIMITED", retryable=True, **kwargs)


class BackendBadRequest(BackendError):
    """Rejected request (schema, params, unknown model, unsupported operation)."""

    def __init__(self, message: str = "Backend bad request", **kwargs: object) -> None:
        super().__init__(message, code="BAD_REQUEST", retryable=False, **kwargs)


class BackendAuthError(BackendError):
    """Authentication or authorization failure."""

    def __init__(self, message: str = "Backend auth error", **kwargs: object) -> None:
        super().__init__(message, code="AUTH_ERROR", retryable=False, **kwargs)


class BackendUnavailable(BackendError):
    """Service unavailable (5xx, connection, etc.)."""

    def __init__(self, message: str = "Backend unavailable", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, code="UNAVAILABLE", **kwargs)


class BackendResponseInvalid(BackendError):
    """Response body could not be decoded into the expected envelope."""

    def __init__(self, message: str = "Backend response invalid", **kwargs: object) -> None:
        super().__init__(message, code="RESPONSE_INVALID", retryable=False, **kwargs)


def error_for_status(status_code: int, message: str, *, backend_id: str | None = None) -> BackendError:
    """Map an HTTP status code to the matching BackendError."""
    details = f"HTTP {status_code}"
    if status_code in (408, 504):
        return BackendTimeout(message, backend_id=backend_id, details=details)
    if status_code == 429:
        return BackendRateLimited(message, backend_id=backend_id, details=details)
    if status_code in (401, 403):
        return BackendAuthError(message, backend_id=backend_id, details=details)
    if status_code in (400, 404, 422):
        return BackendBadRequest(message, backend_id=backend_id, details=details)
    if status_code >= 500:
        return BackendUnavailable(message, backend_id=backend_id, details=details)
    return BackendError(message, code="UNKNOWN", backend_id=backend_id, details=details)
