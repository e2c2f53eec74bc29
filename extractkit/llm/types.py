"""Typed request pieces for the backend layer (Pydantic v2)."""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel


class BackendKind(str, Enum):
    """Supported transports for text-generation backends."""

    WORKERS_AI = "workers_ai"
    LITELLM = "litellm"


class BackendMessage(BaseModel):
    """Single message in OpenAI-style format."""

    role: Literal["system", "user", "assistant"]
    content: str


def json_schema_response_format(wire_schema: dict[str, Any]) -> dict[str, Any]:
    """Structured-output constraint in the Workers AI shape."""
    return {"type": "json_schema", "json_schema": wire_schema}
