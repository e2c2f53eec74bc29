"""ExtractionRouter: size-tiered backend ordering from settings. Performs no calls."""
from __future__ import annotations

from enum import Enum

from extractkit.extraction.settings import ExtractionSettings


class ContextTier(str, Enum):
    SMALL = "small"
    LARGE = "large"


class ExtractionRouter:
    """Select the cascade for a payload by its character length."""

    def __init__(self, settings: ExtractionSettings) -> None:
        self._settings = settings

    @property
    def threshold(self) -> int:
        return self._settings.small_context_chars

    def tier_for(self, text: str) -> ContextTier:
        return ContextTier.LARGE if len(text) > self.threshold else ContextTier.SMALL

    def backends_for(self, text: str) -> list[str]:
        """Ordered cascade for this payload."""
        if self.tier_for(text) == ContextTier.LARGE:
            return list(self._settings.large_context_backends)
        return list(self._settings.small_context_backends)

    def chunk_backend(self) -> str:
        return self._settings.chunk_backend or self._settings.large_context_backends[0]

    def batch_backend(self) -> str:
        return self._settings.batch_backend or self._settings.large_context_backends[0]

    def available_backends(self) -> list[str]:
        """Every configured backend id, first occurrence order."""
        ordered = [
            *self._settings.large_context_backends,
            *self._settings.small_context_backends,
            self.chunk_backend(),
            self.batch_backend(),
        ]
        return list(dict.fromkeys(ordered))
