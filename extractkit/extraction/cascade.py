"""FallbackCascade: try backends one after another, first success wins."""
from __future__ import annotations

import logging
from typing import Sequence

from extractkit.extraction.errors import ConfigurationError
from extractkit.extraction.invoker import ModelInvoker
from extractkit.extraction.schema import SchemaDescriptor, compile_wire_schema
from extractkit.extraction.types import ExtractionResult

logger = logging.getLogger(__name__)


def exhausted_message(backend_ids: Sequence[str], last_error: str | None) -> str:
    return (
        f"All backends ({', '.join(backend_ids)}) failed to generate a valid structured "
        f"response. Last error: {last_error}"
    )


class FallbackCascade:
    """Sequential cascade over an ordered backend list. Attempts never overlap."""

    def __init__(self, invoker: ModelInvoker) -> None:
        self._invoker = invoker

    async def run(
        self,
        backend_ids: Sequence[str],
        text: str,
        schema: SchemaDescriptor,
        *,
        timeout_s: float | None = None,
    ) -> ExtractionResult:
        if not backend_ids:
            raise ConfigurationError("FallbackCascade requires at least one backend id.")
        compile_wire_schema(schema)

        last: ExtractionResult | None = None
        for backend_id in backend_ids:
            last = await self._invoker.invoke(backend_id, text, schema, timeout_s=timeout_s)
            if last.success:
                return last
            logger.warning("Backend %s failed, trying next: %s", backend_id, last.error)

        return ExtractionResult.failed(
            backend_ids[-1],
            exhausted_message(backend_ids, last.error if last else None),
        )
