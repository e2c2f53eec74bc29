"""BatchQueueClient: submit preconditions, acknowledgement check, per-item isolation on poll."""
from __future__ import annotations

import pytest

from extractkit.extraction.batch import DEFAULT_ITEM_ERROR, BatchQueueClient
from extractkit.extraction.errors import BatchSubmissionError, ConfigurationError, ModelError
from extractkit.extraction.invoker import ModelInvoker
from extractkit.extraction.types import BatchItemResult, BatchStatus

QUEUED = {"status": "queued", "request_id": "req-1"}


@pytest.mark.asyncio
async def test_submit_builds_one_request_per_text(backend, person_schema, embedded_text) -> None:
    backend.script("batch-model", QUEUED)
    client = BatchQueueClient(backend)

    submission = await client.submit("batch-model", ["first doc", "second doc"], person_schema, ["r1", "r2"])

    assert submission.request_id == "req-1"
    assert submission.status == "queued"
    call = backend.calls[0]
    assert call["queue_request"] is True
    requests = call["inputs"]["requests"]
    assert [embedded_text(r) for r in requests] == ["first doc", "second doc"]
    assert [r["external_reference"] for r in requests] == ["r1", "r2"]
    assert requests[0]["response_format"] == requests[1]["response_format"]
    assert requests[0]["response_format"]["json_schema"]["type"] == "object"


@pytest.mark.asyncio
async def test_submit_without_refs_omits_external_reference(backend, person_schema) -> None:
    backend.script("batch-model", QUEUED)
    await BatchQueueClient(backend).submit("batch-model", ["doc"], person_schema)
    assert "external_reference" not in backend.calls[0]["inputs"]["requests"][0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("texts", "refs"),
    [
        ([], None),
        (["ok", ""], None),
        (["ok", "   "], None),
        (["a", "b", "c"], ["r1", "r2"]),
    ],
)
async def test_submit_preconditions_raise_before_network(backend, person_schema, texts, refs) -> None:
    with pytest.raises(ConfigurationError):
        await BatchQueueClient(backend).submit("batch-model", texts, person_schema, refs)
    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "ack",
    [None, {"status": "failed"}, {"status": "queued"}, {"status": "running", "request_id": "x"}],
)
async def test_submit_rejects_bad_acknowledgement(backend, person_schema, ack) -> None:
    backend.script("batch-model", ack)
    with pytest.raises(BatchSubmissionError, match="Failed to queue"):
        await BatchQueueClient(backend).submit("batch-model", ["doc"], person_schema)


@pytest.mark.asyncio
async def test_poll_passes_through_unfinished_status(backend, person_schema) -> None:
    backend.script("batch-model", {"status": "running", "request_id": "req-1"})

    status = await BatchQueueClient(backend).poll("batch-model", "req-1", person_schema)

    assert isinstance(status, BatchStatus)
    assert status.status == "running"
    assert status.responses is None
    assert backend.calls[0]["inputs"] == {"request_id": "req-1"}
    assert backend.calls[0]["queue_request"] is False


@pytest.mark.asyncio
async def test_poll_isolates_item_failures(backend, person_schema) -> None:
    backend.script(
        "batch-model",
        {
            "status": "completed",
            "request_id": "req-1",
            "responses": [
                {"id": 0, "success": True, "result": {"response": {"name": "Ada"}}},
                {"id": 1, "success": True, "result": {"response": {"name": "Bob", "tags": "oops"}}},
                {"id": 2, "success": True, "result": {"response": {"name": "Cy", "tags": ["x"]}}},
            ],
        },
    )

    status = await BatchQueueClient(backend).poll("batch-model", "req-1", person_schema)

    assert status.status == "completed"
    first, second, third = status.responses
    assert first.success is True
    assert first.response == {"name": "Ada", "tags": []}
    assert second.success is False
    assert second.error.startswith("Schema validation failed:")
    assert second.result == {"response": {"error": second.error}}
    assert third.success is True
    assert third.response == {"name": "Cy", "tags": ["x"]}
    assert [r.model_extra["id"] for r in status.responses] == [0, 1, 2]


@pytest.mark.asyncio
async def test_poll_normalizes_upstream_failures(backend, person_schema) -> None:
    backend.script(
        "batch-model",
        {
            "status": "completed",
            "responses": [
                {"success": False, "error": "model overloaded"},
                {"success": True, "result": {}},
                {"success": True},
            ],
        },
    )

    status = await BatchQueueClient(backend).poll("batch-model", "req-1", person_schema)

    assert status.status == "completed"
    errors = [r.error for r in status.responses]
    assert errors == ["model overloaded", DEFAULT_ITEM_ERROR, DEFAULT_ITEM_ERROR]
    for item in status.responses:
        assert isinstance(item, BatchItemResult)
        assert item.success is False
        assert item.result == {"response": {"error": item.error}}


@pytest.mark.asyncio
async def test_poll_rejects_non_list_responses(backend, person_schema) -> None:
    backend.script("batch-model", {"status": "completed", "responses": {"0": {}}})
    with pytest.raises(ModelError, match="invalid structure"):
        await BatchQueueClient(backend).poll("batch-model", "req-1", person_schema)


@pytest.mark.asyncio
async def test_poll_requires_request_id(backend, person_schema) -> None:
    with pytest.raises(ConfigurationError):
        await BatchQueueClient(backend).poll("batch-model", " ", person_schema)
    assert backend.calls == []


@pytest.mark.asyncio
async def test_poll_decodes_json_text_payloads_like_single_extraction(backend, person_schema) -> None:
    backend.script("single-model", {"response": '{"name": "Ada"}'})
    backend.script(
        "batch-model",
        {
            "status": "completed",
            "responses": [
                {"success": True, "result": {"response": '{"name": "Ada"}'}},
                {"success": True, "result": {"response": "not json"}},
                {"success": True, "result": {"response": "null"}},
            ],
        },
    )

    single = await ModelInvoker(backend).invoke("single-model", "Ada", person_schema)
    status = await BatchQueueClient(backend).poll("batch-model", "req-1", person_schema)

    decoded, undecodable, null_text = status.responses
    assert single.success is True
    assert decoded.success is True
    assert decoded.response == single.structured_result == {"name": "Ada", "tags": []}
    assert undecodable.success is False
    assert "not valid JSON" in undecodable.error
    assert null_text.success is False
    assert null_text.error == "Batch item returned an empty or invalid response."
