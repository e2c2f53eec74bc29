"""Fixed-size chunking: count, sizes, exact reconstruction."""
from __future__ import annotations

import math

import pytest

from extractkit.extraction.chunking import split_text
from extractkit.extraction.errors import ChunkFailure, ConfigurationError


@pytest.mark.parametrize(
    ("length", "size"),
    [(1, 1), (10, 3), (9, 3), (100, 7), (5, 80), (80_001, 80_000)],
)
def test_split_text_reconstructs_exactly(length: int, size: int) -> None:
    text = "".join(chr(ord("a") + i % 26) for i in range(length))
    chunks = split_text(text, size)
    assert len(chunks) == math.ceil(length / size)
    assert "".join(c.text for c in chunks) == text
    assert all(len(c.text) == size for c in chunks[:-1])
    assert 0 < len(chunks[-1].text) <= size


def test_split_text_indexes_and_labels() -> None:
    chunks = split_text("abcdefg", 3)
    assert [(c.index, c.total, c.text) for c in chunks] == [(0, 3, "abc"), (1, 3, "def"), (2, 3, "g")]
    assert [c.label for c in chunks] == ["1/3", "2/3", "3/3"]


def test_split_text_may_split_mid_word() -> None:
    chunks = split_text("hello world", 4)
    assert [c.text for c in chunks] == ["hell", "o wo", "rld"]


def test_split_text_empty_input() -> None:
    assert split_text("", 10) == []


@pytest.mark.parametrize("size", [0, -5])
def test_split_text_rejects_bad_size(size: int) -> None:
    with pytest.raises(ConfigurationError):
        split_text("abc", size)


def test_chunk_failure_reports_chunk_label() -> None:
    chunk = split_text("abcdefg", 3)[1]
    failure = ChunkFailure(chunk, "Model m1 failed: boom")
    assert str(failure) == f"Chunking failure on chunk {chunk.label}: Model m1 failed: boom"
    assert chunk.label == "2/3"
    assert (failure.index, failure.total, failure.code) == (1, 3, "CHUNK_FAILURE")
