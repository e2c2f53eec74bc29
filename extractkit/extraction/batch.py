"""
BatchQueueClient: queue many texts as one asynchronous batch, then poll and repair per item.

Item failures are local: a bad item is marked failed and the batch status is left alone.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from extractkit.extraction.errors import (
    BatchSubmissionError,
    ConfigurationError,
    ExtractionError,
    ItemError,
    ModelError,
)
from extractkit.extraction.prompts import build_request_item
from extractkit.extraction.repair import decode_payload, fill_missing_fields
from extractkit.extraction.schema import SchemaDescriptor, compile_wire_schema
from extractkit.extraction.types import BatchItemResult, BatchStatus, BatchSubmission
from extractkit.llm.ports import TextGenerationBackend
from extractkit.llm.types import json_schema_response_format

logger = logging.getLogger(__name__)

DEFAULT_ITEM_ERROR = "AI processing failed or result structure invalid."


def _failed_item(item: dict[str, Any], message: str) -> BatchItemResult:
    return BatchItemResult.model_validate(
        {**item, "success": False, "error": message, "result": {"response": {"error": message}}}
    )


def _repair_item(item: dict[str, Any], schema: SchemaDescriptor) -> dict[str, Any]:
    """Return the repaired response. Raises ItemError on upstream failure or failed repair."""
    result = item.get("result")
    response = result.get("response") if isinstance(result, dict) else None
    if not item.get("success") or response is None:
        raise ItemError(item.get("error") or DEFAULT_ITEM_ERROR)
    try:
        payload = decode_payload(response, "Batch item")
    except ModelError as e:
        raise ItemError(str(e)) from e
    try:
        return fill_missing_fields(schema, payload)
    except ExtractionError as e:
        raise ItemError(f"Schema validation failed: {e}") from e


class BatchQueueClient:
    """Submit/poll against a queue-capable backend."""

    def __init__(self, backend: TextGenerationBackend, *, timeout_s: float | None = None) -> None:
        self._backend = backend
        self._timeout_s = timeout_s

    async def submit(
        self,
        backend_id: str,
        texts: Sequence[str],
        schema: SchemaDescriptor,
        external_refs: Sequence[str] | None = None,
    ) -> BatchSubmission:
        """Queue one request per text. All preconditions raise ConfigurationError before the call."""
        if not texts:
            raise ConfigurationError("At least one text payload is required for batch analysis.")
        if any(not isinstance(text, str) or not text.strip() for text in texts):
            raise ConfigurationError("All text payloads in the batch must be non-empty.")
        if external_refs is not None and len(external_refs) != len(texts):
            raise ConfigurationError("Length of external_refs must match the length of texts.")
        response_format = json_schema_response_format(compile_wire_schema(schema))

        requests = [
            build_request_item(
                text,
                response_format,
                external_reference=external_refs[i] if external_refs is not None else None,
            )
            for i, text in enumerate(texts)
        ]
        ack = await self._backend.run(
            backend_id,
            {"requests": requests},
            queue_request=True,
            timeout_s=self._timeout_s,
        )
        status = ack.get("status") if isinstance(ack, dict) else None
        request_id = ack.get("request_id") if isinstance(ack, dict) else None
        if status != "queued" or not request_id:
            raise BatchSubmissionError(f"Failed to queue batch analysis request. Received status: {status}")
        logger.info("Queued batch %s with %d items on %s", request_id, len(requests), backend_id)
        return BatchSubmission.model_validate(ack)

    async def poll(self, backend_id: str, request_id: str, schema: SchemaDescriptor) -> BatchStatus:
        """Return the batch status; once completed, every item is repaired independently."""
        if not request_id or not request_id.strip():
            raise ConfigurationError("Request ID is required to poll batch status.")

        response = await self._backend.run(
            backend_id,
            {"request_id": request_id},
            timeout_s=self._timeout_s,
        )
        if not isinstance(response, dict):
            raise ModelError(f"Batch poll for {request_id} returned an empty or invalid response.")
        if response.get("status") != "completed":
            return BatchStatus.model_validate(response)

        items = response.get("responses")
        if not isinstance(items, list):
            raise ModelError(f"Completed batch analysis response for {request_id} has invalid structure.")

        processed = await asyncio.gather(*(self._process_item(item, schema) for item in items))
        failed = sum(1 for p in processed if not p.success)
        if failed:
            logger.warning("Batch %s completed with %d/%d failed items", request_id, failed, len(processed))
        return BatchStatus.model_validate({**response, "responses": processed, "status": "completed"})

    async def _process_item(self, item: Any, schema: SchemaDescriptor) -> BatchItemResult:
        raw = item if isinstance(item, dict) else {}
        try:
            repaired = _repair_item(raw, schema)
        except ItemError as e:
            return _failed_item(raw, str(e))
        return BatchItemResult.model_validate({**raw, "success": True, "result": {"response": repaired}})
