"""ModelInvoker: one extraction attempt against one backend id. Never raises for runtime failures."""
from __future__ import annotations

import logging
import time
from typing import Any

from extractkit.extraction.errors import ExtractionError, ModelError
from extractkit.extraction.prompts import build_extraction_inputs
from extractkit.extraction.repair import decode_payload, fill_missing_fields
from extractkit.extraction.schema import SchemaDescriptor, compile_wire_schema
from extractkit.extraction.types import ExtractionRequest, ExtractionResult
from extractkit.llm.errors import BackendError
from extractkit.llm.ports import TextGenerationBackend
from extractkit.llm.telemetry import log_extraction_attempt

logger = logging.getLogger(__name__)


def _payload_from_envelope(envelope: Any, backend_id: str) -> Any:
    """Return the generated object at ``response``. Raises ModelError when absent or undecodable."""
    payload = envelope.get("response") if isinstance(envelope, dict) else None
    if payload is None:
        raise ModelError(f"Model {backend_id} returned an empty or invalid response.")
    return decode_payload(payload, f"Model {backend_id}")


class ModelInvoker:
    """Build the prompt, call the backend with a schema constraint, repair and validate the reply."""

    def __init__(self, backend: TextGenerationBackend, *, timeout_s: float | None = None) -> None:
        self._backend = backend
        self._timeout_s = timeout_s

    @property
    def backend(self) -> TextGenerationBackend:
        return self._backend

    async def invoke(
        self,
        backend_id: str,
        text: str,
        schema: SchemaDescriptor,
        *,
        is_chunk: bool = False,
        timeout_s: float | None = None,
    ) -> ExtractionResult:
        """
        Run one attempt. ConfigurationError (bad schema) is raised before the backend call;
        backend, model and validation failures come back as success=False results.
        """
        req = ExtractionRequest(backend_id=backend_id, text=text, schema_handle=schema, is_chunk=is_chunk)
        wire_schema = compile_wire_schema(schema)
        return await self._attempt(req, wire_schema, timeout_s if timeout_s is not None else self._timeout_s)

    async def _attempt(
        self,
        req: ExtractionRequest,
        wire_schema: dict[str, Any],
        timeout_s: float | None,
    ) -> ExtractionResult:
        t0 = time.perf_counter()
        try:
            envelope = await self._backend.run(
                req.backend_id,
                build_extraction_inputs(req.text, wire_schema),
                timeout_s=timeout_s,
            )
            payload = _payload_from_envelope(envelope, req.backend_id)
            repaired = fill_missing_fields(req.schema_handle, payload)
        except (BackendError, ExtractionError) as e:
            log_extraction_attempt(
                backend_id=req.backend_id,
                is_chunk=req.is_chunk,
                text_chars=len(req.text),
                latency_ms=int((time.perf_counter() - t0) * 1000),
                status="FAILED",
                error_code=e.code,
                error_preview=str(e),
            )
            return ExtractionResult.failed(
                req.backend_id,
                f"Model {req.backend_id} failed: {e}",
                is_chunked=req.is_chunk,
            )
        log_extraction_attempt(
            backend_id=req.backend_id,
            is_chunk=req.is_chunk,
            text_chars=len(req.text),
            latency_ms=int((time.perf_counter() - t0) * 1000),
            status="SUCCEEDED",
        )
        return ExtractionResult(
            success=True,
            backend_used=req.backend_id,
            structured_result=repaired,
            is_chunked=req.is_chunk,
        )
