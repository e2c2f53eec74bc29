"""Live Workers AI smoke test. Requires BACKEND_WORKERS_AI_ACCOUNT_ID and BACKEND_WORKERS_AI_API_TOKEN."""
import os

import pytest
from pydantic import BaseModel

from extractkit.extraction import ExtractionOrchestrator, ExtractionSettings, PydanticSchema
from extractkit.llm import BackendSettings, build_backend

LIVE = bool(os.environ.get("BACKEND_WORKERS_AI_ACCOUNT_ID") and os.environ.get("BACKEND_WORKERS_AI_API_TOKEN"))

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not LIVE, reason="Workers AI credentials not set"),
]


class Contact(BaseModel):
    name: str
    email: str
    skills: list[str]


@pytest.mark.asyncio
async def test_small_text_extraction_live() -> None:
    backend = build_backend(BackendSettings(kind="workers_ai"))
    text = "Grace Hopper (grace@example.com) is a compiler pioneer who also knows COBOL and FORTRAN."
    async with ExtractionOrchestrator(ExtractionSettings(), backend=backend) as orch:
        result = await orch.analyze_text(PydanticSchema(Contact), text)
    assert result.success, result.error
    assert set(result.structured_result) == {"name", "email", "skills"}
