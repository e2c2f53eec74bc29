"""
ExtractionOrchestrator: public entrypoint for structured extraction.

Small inputs go through the small-context cascade. Large inputs try the
large-context cascade, then fall back to chunk-and-merge on one backend.
Configuration problems raise ConfigurationError; everything else is returned
as an ExtractionResult.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from extractkit.extraction.batch import BatchQueueClient
from extractkit.extraction.cascade import FallbackCascade
from extractkit.extraction.chunking import split_text
from extractkit.extraction.errors import ChunkFailure, ConfigurationError, ExtractionError
from extractkit.extraction.invoker import ModelInvoker
from extractkit.extraction.merge import merge_into
from extractkit.extraction.repair import fill_missing_fields
from extractkit.extraction.routing import ContextTier, ExtractionRouter
from extractkit.extraction.schema import SchemaDescriptor, compile_wire_schema
from extractkit.extraction.settings import ExtractionSettings
from extractkit.extraction.types import BatchStatus, BatchSubmission, ExtractionResult
from extractkit.llm.factory import build_backend
from extractkit.llm.ports import TextGenerationBackend

logger = logging.getLogger(__name__)


class ExtractionOrchestrator:
    """Chooses the size-based strategy and exposes single, chunked and batch extraction."""

    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        *,
        backend: TextGenerationBackend | None = None,
        router: ExtractionRouter | None = None,
    ) -> None:
        self._settings = settings or ExtractionSettings()
        self._backend = backend or build_backend()
        self._router = router or ExtractionRouter(self._settings)
        self._invoker = ModelInvoker(self._backend, timeout_s=self._settings.timeout_s)
        self._cascade = FallbackCascade(self._invoker)
        self._batch = BatchQueueClient(self._backend, timeout_s=self._settings.timeout_s)

    @property
    def chunk_size(self) -> int:
        return self._settings.small_context_chars

    async def analyze_text(self, schema: SchemaDescriptor, text: str) -> ExtractionResult:
        """Extract with the size-appropriate cascade; large inputs escalate to chunk-and-merge."""
        if not text:
            raise ConfigurationError("Input text cannot be empty for analyze_text.")
        compile_wire_schema(schema)

        tier = self._router.tier_for(text)
        backends = self._router.backends_for(text)
        result = await self._cascade.run(backends, text, schema)
        if result.success or tier == ContextTier.SMALL:
            return result

        chunk_backend = self._router.chunk_backend()
        logger.info(
            "Large-context cascade exhausted for %d chars; chunking with %s",
            len(text),
            chunk_backend,
        )
        return await self.chunk_and_merge(chunk_backend, text, schema)

    async def analyze_text_with_backend(
        self,
        schema: SchemaDescriptor,
        text: str,
        backend_id: str,
    ) -> ExtractionResult:
        """Single attempt on one backend, no cascade and no chunking."""
        if not text:
            raise ConfigurationError("Input text cannot be empty for analyze_text_with_backend.")
        return await self._invoker.invoke(backend_id, text, schema)

    async def chunk_and_merge(
        self,
        backend_id: str,
        text: str,
        schema: SchemaDescriptor,
    ) -> ExtractionResult:
        """Extract chunk by chunk, fold in order, repair once. The first failed chunk aborts."""
        if not text:
            raise ConfigurationError("Input text cannot be empty for chunk_and_merge.")
        compile_wire_schema(schema)
        chunks = split_text(text, self.chunk_size)
        merged: dict[str, Any] = {}
        first_backend: str | None = None

        for chunk in chunks:
            result = await self._invoker.invoke(backend_id, chunk.text, schema, is_chunk=True)
            if not result.success or result.structured_result is None:
                failure = ChunkFailure(chunk, result.error or "no structured result")
                logger.warning("Aborting chunk-and-merge on %s: %s", backend_id, failure)
                return ExtractionResult.failed(backend_id, str(failure), is_chunked=True)
            first_backend = first_backend or result.backend_used
            merge_into(merged, result.structured_result)

        backend_used = first_backend or backend_id
        try:
            final = fill_missing_fields(schema, merged)
        except ExtractionError as e:
            return ExtractionResult.failed(
                backend_used,
                f"Final validation after merging failed: {e}",
                is_chunked=True,
            )
        logger.info("Merged %d chunks from %s", len(chunks), backend_used)
        return ExtractionResult(
            success=True,
            backend_used=backend_used,
            structured_result=final,
            is_chunked=True,
        )

    async def request_batch_analysis(
        self,
        texts: Sequence[str],
        schema: SchemaDescriptor,
        external_refs: Sequence[str] | None = None,
        *,
        backend_id: str | None = None,
    ) -> BatchSubmission:
        return await self._batch.submit(backend_id or self._router.batch_backend(), texts, schema, external_refs)

    async def poll_batch_analysis(
        self,
        request_id: str,
        schema: SchemaDescriptor,
        *,
        backend_id: str | None = None,
    ) -> BatchStatus:
        return await self._batch.poll(backend_id or self._router.batch_backend(), request_id, schema)

    def available_backends(self) -> list[str]:
        return self._router.available_backends()

    async def aclose(self) -> None:
        """Close the backend's transport when it owns one."""
        close = getattr(self._backend, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ExtractionOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
