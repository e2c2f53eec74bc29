"""
Backend layer: single async port for all text-generation calls.
Public API: TextGenerationBackend, WorkersAIClient, LiteLLMClient, build_backend, BackendSettings.
The extraction core must not call httpx or LiteLLM directly.
"""
from extractkit.llm.client_litellm import LiteLLMClient
from extractkit.llm.errors import (
    BackendAuthError,
    BackendBadRequest,
    BackendError,
    BackendRateLimited,
    BackendResponseInvalid,
    BackendTimeout,
    BackendUnavailable,
)
from extractkit.llm.factory import build_backend
from extractkit.llm.ports import TextGenerationBackend
from extractkit.llm.settings import BackendSettings
from extractkit.llm.types import BackendKind, BackendMessage
from extractkit.llm.workers_ai import WorkersAIClient

__all__ = [
    "TextGenerationBackend",
    "WorkersAIClient",
    "LiteLLMClient",
    "build_backend",
    "BackendSettings",
    "BackendKind",
    "BackendMessage",
    "BackendError",
    "BackendTimeout",
    "BackendRateLimited",
    "BackendBadRequest",
    "BackendAuthError",
    "BackendUnavailable",
    "BackendResponseInvalid",
]
