"""Extraction error taxonomy.

Configuration errors are raised to the caller. Model, validation, chunk and item
errors are caught at the extraction boundary and returned inside result records.
"""
from __future__ import annotations

import json
from typing import Any

from extractkit.extraction.types import Chunk


class ExtractionError(Exception):
    """Base for extraction errors. code is stable for logs and result records."""

    def __init__(self, message: str, *, code: str = "EXTRACTION_ERROR") -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(ExtractionError):
    """Caller misuse: empty input, unusable schema, mismatched batch arrays."""

    def __init__(self, message: str, *, code: str = "CONFIGURATION") -> None:
        super().__init__(message, code=code)


class BatchSubmissionError(ConfigurationError):
    """Batch endpoint did not acknowledge with status=queued and a request id."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="BATCH_SUBMISSION")


class ModelError(ExtractionError):
    """Backend returned an empty, null or undecodable payload."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="MODEL_ERROR")


class ValidationError(ExtractionError):
    """Payload still fails schema validation after repair. field_errors holds per-field detail."""

    def __init__(self, message: str, *, field_errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field_errors = field_errors or []

    @classmethod
    def from_field_errors(cls, field_errors: list[dict[str, Any]]) -> "ValidationError":
        return cls(json.dumps(field_errors, default=str), field_errors=field_errors)


class ChunkFailure(ExtractionError):
    """A ModelError/ValidationError on one chunk; aborts chunk-and-merge."""

    def __init__(self, chunk: Chunk, cause: str) -> None:
        super().__init__(f"Chunking failure on chunk {chunk.label}: {cause}", code="CHUNK_FAILURE")
        self.index = chunk.index
        self.total = chunk.total
        self.cause = cause


class ItemError(ExtractionError):
    """A single batch item failed upstream or failed repair; isolated to that item."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="ITEM_ERROR")
