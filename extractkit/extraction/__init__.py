"""
Extraction module: schema-conforming extraction over unreliable backends.
Public API: ExtractionOrchestrator, ExtractionResult, PydanticSchema, SchemaDescriptor, ExtractionSettings.
"""
from extractkit.extraction.batch import BatchQueueClient
from extractkit.extraction.cascade import FallbackCascade
from extractkit.extraction.chunking import split_text
from extractkit.extraction.errors import (
    BatchSubmissionError,
    ChunkFailure,
    ConfigurationError,
    ExtractionError,
    ItemError,
    ModelError,
    ValidationError,
)
from extractkit.extraction.invoker import ModelInvoker
from extractkit.extraction.merge import merge_chunk_results, merge_into
from extractkit.extraction.orchestrator import ExtractionOrchestrator
from extractkit.extraction.repair import fill_missing_fields
from extractkit.extraction.routing import ContextTier, ExtractionRouter
from extractkit.extraction.schema import PydanticSchema, SchemaDescriptor, compile_wire_schema
from extractkit.extraction.settings import ExtractionSettings
from extractkit.extraction.types import (
    BatchItemResult,
    BatchStatus,
    BatchSubmission,
    Chunk,
    ExtractionRequest,
    ExtractionResult,
    FieldKind,
)

__all__ = [
    "ExtractionOrchestrator",
    "ExtractionSettings",
    "ExtractionRouter",
    "ContextTier",
    "ModelInvoker",
    "FallbackCascade",
    "BatchQueueClient",
    "SchemaDescriptor",
    "PydanticSchema",
    "compile_wire_schema",
    "fill_missing_fields",
    "split_text",
    "merge_into",
    "merge_chunk_results",
    "ExtractionRequest",
    "ExtractionResult",
    "Chunk",
    "FieldKind",
    "BatchSubmission",
    "BatchItemResult",
    "BatchStatus",
    "ExtractionError",
    "ConfigurationError",
    "BatchSubmissionError",
    "ModelError",
    "ValidationError",
    "ChunkFailure",
    "ItemError",
]
