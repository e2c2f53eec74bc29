"""Build the configured backend client."""
from __future__ import annotations

from extractkit.llm.client_litellm import LiteLLMClient
from extractkit.llm.ports import TextGenerationBackend
from extractkit.llm.settings import BackendSettings
from extractkit.llm.types import BackendKind
from extractkit.llm.workers_ai import WorkersAIClient


def build_backend(settings: BackendSettings | None = None) -> TextGenerationBackend:
    """Return a client for ``settings.kind``; settings are read from the environment when omitted."""
    settings = settings or BackendSettings()
    if settings.kind == BackendKind.LITELLM:
        return LiteLLMClient.from_settings(settings)
    if settings.kind == BackendKind.WORKERS_AI:
        return WorkersAIClient.from_settings(settings)
    raise ValueError(f"Unknown backend kind: {settings.kind}")
