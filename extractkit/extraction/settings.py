"""Extraction orchestrator configuration. Env prefix: EXTRACT_."""
from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LLAMA_4_SCOUT = "@cf/meta/llama-4-scout-17b-16e-instruct"
MISTRAL_SMALL_3_1 = "@cf/mistralai/mistral-small-3.1-24b-instruct"
HERMES_2_PRO = "@hf/nousresearch/hermes-2-pro-mistral-7b"
LLAMA_3_3 = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"


class ExtractionSettings(BaseSettings):
    """Backend rosters and context threshold. Lists are JSON in env (EXTRACT_SMALL_CONTEXT_BACKENDS='["a","b"]')."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    small_context_chars: int = Field(
        default=80_000,
        ge=1,
        description="Inputs longer than this use the large-context tier; also the chunk size",
    )
    large_context_backends: list[str] = Field(
        default=[LLAMA_4_SCOUT, MISTRAL_SMALL_3_1],
        description="Cascade order for inputs over small_context_chars",
    )
    small_context_backends: list[str] = Field(
        default=[HERMES_2_PRO, MISTRAL_SMALL_3_1, LLAMA_4_SCOUT, LLAMA_3_3],
        description="Cascade order for inputs within small_context_chars",
    )
    chunk_backend: str | None = Field(
        default=None,
        description="Backend for chunk-and-merge (default: first large-context backend)",
    )
    batch_backend: str | None = Field(
        default=None,
        description="Default backend for batch submit/poll (default: first large-context backend)",
    )
    timeout_s: float | None = Field(default=None, gt=0, description="Per-call timeout forwarded to backends")

    @model_validator(mode="after")
    def validate_rosters(self) -> "ExtractionSettings":
        for name in ("large_context_backends", "small_context_backends"):
            backend_ids = getattr(self, name)
            if not backend_ids:
                raise ValueError(f"{name} must contain at least one backend id")
            if any(not b.strip() for b in backend_ids):
                raise ValueError(f"{name} must not contain blank backend ids")
        for name in ("chunk_backend", "batch_backend"):
            backend_id = getattr(self, name)
            if backend_id is not None and not backend_id.strip():
                raise ValueError(f"{name} must not be blank")
        return self
