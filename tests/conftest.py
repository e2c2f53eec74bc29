"""Fixtures for end-to-end tests: a fake Workers AI upstream behind httpx.MockTransport."""
from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from extractkit.extraction.prompts import TEXT_END, TEXT_START
from extractkit.llm.workers_ai import WorkersAIClient

ACCOUNT_ID = "acc-e2e"

Reply = Callable[[str], Any]


def document_text(item: dict[str, Any]) -> str:
    prompt = item["messages"][-1]["content"]
    start = prompt.index(TEXT_START) + len(TEXT_START) + 1
    return prompt[start:prompt.index(TEXT_END) - 1]


class FakeWorkersAI:
    """
    Per-model behaviour keyed by model id. A reply function receives the document text
    and returns the generated object, or an ``httpx.Response`` to send as-is.
    Queued batches complete on the first poll.
    """

    def __init__(self) -> None:
        self.models: dict[str, Reply] = {}
        self.requests: list[tuple[str, dict[str, Any], bool]] = []
        self.http_requests: list[httpx.Request] = []
        self._batches: dict[str, tuple[str, list[dict[str, Any]]]] = {}

    def model(self, model_id: str, reply: Reply) -> "FakeWorkersAI":
        self.models[model_id] = reply
        return self

    @property
    def called_models(self) -> list[str]:
        return [model_id for model_id, _, _ in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.http_requests.append(request)
        model_id = request.url.path.split("/ai/run/", 1)[1]
        body = json.loads(request.content)
        queued = request.url.params.get("queueRequest") == "true"
        self.requests.append((model_id, body, queued))
        if model_id not in self.models:
            return httpx.Response(404, json={"success": False, "errors": [{"message": f"No such model {model_id}"}]})

        if queued:
            request_id = f"batch-{len(self._batches) + 1}"
            self._batches[request_id] = (model_id, body["requests"])
            return _ok({"status": "queued", "request_id": request_id, "model": model_id})
        if "request_id" in body:
            return _ok(self._poll(body["request_id"]))

        reply = self.models[model_id](document_text(body))
        if isinstance(reply, httpx.Response):
            return reply
        return _ok({"response": reply, "usage": {"prompt_tokens": 1, "completion_tokens": 1}})

    def _poll(self, request_id: str) -> dict[str, Any]:
        model_id, items = self._batches[request_id]
        responses = []
        for i, item in enumerate(items):
            entry: dict[str, Any] = {"id": i, "external_reference": item.get("external_reference")}
            reply = self.models[model_id](document_text(item))
            if isinstance(reply, httpx.Response):
                entry.update(success=False, error=f"upstream status {reply.status_code}")
            else:
                entry.update(success=True, result={"response": reply})
            responses.append(entry)
        return {"status": "completed", "request_id": request_id, "responses": responses}


def _ok(result: Any) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "result": result, "errors": [], "messages": []})


@pytest.fixture
def upstream() -> FakeWorkersAI:
    return FakeWorkersAI()


@pytest.fixture
def workers_client(upstream: FakeWorkersAI) -> WorkersAIClient:
    return WorkersAIClient(
        account_id=ACCOUNT_ID,
        api_token="e2e-token",
        api_base="https://workers.example.test/client/v4",
        max_retries=0,
        transport=httpx.MockTransport(upstream.handler),
    )
