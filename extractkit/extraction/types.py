"""Result records and DTOs for the extraction core (Pydantic v2)."""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldKind(str, Enum):
    """Closed set of field kinds used for default synthesis."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"


class ExtractionRequest(BaseModel):
    """One extraction attempt against one backend. Ephemeral."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    backend_id: str
    text: str
    schema_handle: Any = Field(description="SchemaDescriptor borrowed from the caller")
    is_chunk: bool = False


class ExtractionResult(BaseModel):
    """Uniform result of every extraction path (direct, cascade, chunk-and-merge)."""

    success: bool
    backend_used: str
    structured_result: dict[str, Any] | None = None
    error: str | None = None
    is_chunked: bool = False

    @model_validator(mode="after")
    def check_result_matches_success(self) -> "ExtractionResult":
        if self.success and self.structured_result is None:
            raise ValueError("successful result requires structured_result")
        if not self.success and self.structured_result is not None:
            raise ValueError("failed result must not carry structured_result")
        return self

    @classmethod
    def failed(cls, backend_used: str, error: str, *, is_chunked: bool = False) -> "ExtractionResult":
        return cls(success=False, backend_used=backend_used, error=error, is_chunked=is_chunked)


class Chunk(BaseModel):
    """Contiguous slice of the input text. index is 0-based."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    total: int = Field(ge=1)
    text: str

    @property
    def label(self) -> str:
        """Human-readable position, e.g. ``2/3``."""
        return f"{self.index + 1}/{self.total}"


class BatchSubmission(BaseModel):
    """Acknowledgement of a queued batch."""

    model_config = ConfigDict(extra="allow")

    request_id: str
    status: Literal["queued"] = "queued"


class BatchItemResult(BaseModel):
    """One item of a completed batch. Upstream keys (id, external_reference, ...) are kept."""

    model_config = ConfigDict(extra="allow")

    success: bool
    result: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    @property
    def response(self) -> Any:
        return self.result.get("response")


class BatchStatus(BaseModel):
    """Status of a batch; responses only present once completed."""

    model_config = ConfigDict(extra="allow")

    status: str | None = None
    responses: list[BatchItemResult] | None = None

    @property
    def completed(self) -> bool:
        return self.status == "completed"
