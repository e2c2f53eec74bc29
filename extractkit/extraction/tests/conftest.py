"""Fixtures for extraction tests: a scripted in-memory backend (no network)."""
from __future__ import annotations

from typing import Any, Callable

import pytest

from extractkit.extraction.prompts import TEXT_END, TEXT_START
from extractkit.extraction.schema import PydanticSchema
from extractkit.llm.errors import BackendUnavailable


def text_of(inputs: dict[str, Any]) -> str:
    """Recover the embedded document text from a single-extraction payload."""
    prompt = inputs["messages"][-1]["content"]
    start = prompt.index(TEXT_START) + len(TEXT_START) + 1
    end = prompt.index(TEXT_END) - 1
    return prompt[start:end]


class ScriptedBackend:
    """Replies are queued per backend id: dicts are returned, exceptions raised, callables called with inputs."""

    def __init__(self) -> None:
        self._replies: dict[str, list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def script(self, backend_id: str, *replies: Any) -> "ScriptedBackend":
        self._replies.setdefault(backend_id, []).extend(replies)
        return self

    def always(self, backend_id: str, reply: Callable[[dict[str, Any]], Any]) -> "ScriptedBackend":
        self._replies[backend_id] = [reply] * 1000
        return self

    @property
    def called_ids(self) -> list[str]:
        return [c["backend_id"] for c in self.calls]

    async def run(
        self,
        backend_id: str,
        inputs: dict[str, Any],
        *,
        queue_request: bool = False,
        timeout_s: float | None = None,
    ) -> dict[str, Any] | None:
        self.calls.append(
            {"backend_id": backend_id, "inputs": inputs, "queue_request": queue_request, "timeout_s": timeout_s}
        )
        queue = self._replies.get(backend_id) or []
        if not queue:
            raise BackendUnavailable("no scripted reply", backend_id=backend_id)
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(inputs)
        return reply


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def person_schema() -> PydanticSchema:
    return PydanticSchema.from_fields("Person", {"name": str, "tags": list[str]})


@pytest.fixture
def doc_schema() -> PydanticSchema:
    return PydanticSchema.from_fields(
        "DocSummary",
        {
            "title": str,
            "tags": list[str],
            "meta": dict[str, str],
            "pages": int,
            "draft": bool,
        },
    )


@pytest.fixture
def embedded_text() -> Callable[[dict[str, Any]], str]:
    return text_of
