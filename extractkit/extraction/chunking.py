"""Fixed-size character chunking for inputs over the small-context limit.

Slices ignore token and sentence boundaries, so a word can be split across two
chunks. Concatenating the chunks always reproduces the input exactly.
"""
from __future__ import annotations

from extractkit.extraction.errors import ConfigurationError
from extractkit.extraction.types import Chunk


def split_text(text: str, chunk_size: int) -> list[Chunk]:
    """Split into ceil(len(text) / chunk_size) contiguous chunks; only the last may be short."""
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")
    slices = [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]
    return [Chunk(index=i, total=len(slices), text=s) for i, s in enumerate(slices)]
