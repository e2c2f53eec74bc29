"""Observability: redaction and structured log records. No ad hoc logs in clients."""
from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Redaction: patterns to mask (never log raw)
_SECRET_PATTERNS = [
    re.compile(r"\b(?:sk-[a-zA-Z0-9]{20,})\b", re.IGNORECASE),  # OpenAI-style
    re.compile(r"\bBearer\s+[a-zA-Z0-9_.-]+\b", re.IGNORECASE),
    re.compile(r"\b[a-zA-Z0-9_-]{40}\b"),  # Cloudflare API token shape
]
_PII_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")  # email
_PREVIEW_MAX_CHARS = 200


def redact_preview(text: str) -> str:
    """Redact secrets and PII, then truncate. Use for any text that reaches a log."""
    if not text:
        return ""
    out = text
    for pat in _SECRET_PATTERNS:
        out = pat.sub("[REDACTED]", out)
    out = _PII_PATTERN.sub("[EMAIL]", out)
    if len(out) > _PREVIEW_MAX_CHARS:
        out = out[:_PREVIEW_MAX_CHARS] + "..."
    return out


def log_backend_call(
    *,
    backend_id: str,
    operation: str,
    latency_ms: int,
    status: str,
    attempt: int = 0,
    error_code: str | None = None,
) -> None:
    """Emit structured log for one transport call. Never log prompt text or tokens."""
    extra: dict[str, Any] = {
        "backend_id": backend_id,
        "operation": operation,
        "latency_ms": latency_ms,
        "status": status,
        "attempt": attempt,
    }
    if error_code is not None:
        extra["error_code"] = error_code
    logger.info("backend_call", extra=extra)


def log_extraction_attempt(
    *,
    backend_id: str,
    is_chunk: bool,
    text_chars: int,
    latency_ms: int,
    status: str,
    error_code: str | None = None,
    error_preview: str | None = None,
) -> None:
    """Emit structured log for one extraction attempt (invoke, chunk, or batch item)."""
    extra: dict[str, Any] = {
        "backend_id": backend_id,
        "is_chunk": is_chunk,
        "text_chars": text_chars,
        "latency_ms": latency_ms,
        "status": status,
    }
    if error_code is not None:
        extra["error_code"] = error_code
    if error_preview:
        extra["error_preview"] = redact_preview(error_preview)
    logger.info("extraction_attempt", extra=extra)
