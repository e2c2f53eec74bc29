"""Backend transport configuration. Env prefix: BACKEND_. Workers AI token: BACKEND_WORKERS_AI_API_TOKEN."""
from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from extractkit.llm.types import BackendKind


class BackendSettings(BaseSettings):
    """Settings for backend clients. All overridable via BACKEND_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="BACKEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    kind: BackendKind = Field(default=BackendKind.WORKERS_AI, description="Transport used for all backend ids")
    concurrency_limit: int = Field(default=8, ge=1, description="Max concurrent backend calls per process")
    default_timeout_s: float = Field(default=120.0, gt=0, description="Default request timeout")
    max_retries: int = Field(default=2, ge=0, description="Max retries for retryable errors")
    retry_backoff_base_s: float = Field(default=0.5, gt=0, description="Base delay for exponential backoff")
    retry_backoff_max_s: float = Field(default=8.0, gt=0, description="Max backoff delay")

    workers_ai_api_base: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Workers AI REST API base URL",
    )
    workers_ai_account_id: str | None = Field(default=None, description="Account id (env: BACKEND_WORKERS_AI_ACCOUNT_ID)")
    workers_ai_api_token: str | None = Field(default=None, description="API token (env: BACKEND_WORKERS_AI_API_TOKEN)")

    drop_unsupported_params: bool = Field(
        default=True,
        description="LiteLLM: drop OpenAI params not supported by provider",
    )

    @model_validator(mode="after")
    def validate_transport(self) -> "BackendSettings":
        if self.kind == BackendKind.WORKERS_AI:
            if not (self.workers_ai_account_id or "").strip():
                raise ValueError("kind=workers_ai requires workers_ai_account_id (set BACKEND_WORKERS_AI_ACCOUNT_ID)")
            if not (self.workers_ai_api_token or "").strip():
                raise ValueError("kind=workers_ai requires workers_ai_api_token (set BACKEND_WORKERS_AI_API_TOKEN)")
        if self.retry_backoff_max_s < self.retry_backoff_base_s:
            raise ValueError("retry_backoff_max_s must be >= retry_backoff_base_s")
        return self
