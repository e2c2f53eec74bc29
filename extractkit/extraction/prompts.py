"""Prompt and request payload builders shared by single and batch extraction."""
from __future__ import annotations

from typing import Any

from extractkit.llm.types import BackendMessage, json_schema_response_format

SYSTEM_INSTRUCTION = (
    "You are an AI assistant specialized in extracting structured data from text "
    "into a specified JSON format."
)

TEXT_START = "--- TEXT START ---"
TEXT_END = "--- TEXT END ---"


def build_prompt(text: str) -> str:
    return (
        "You are an AI assistant tasked with analyzing the following text and extracting "
        "information according to a specific JSON schema.\n"
        f"{TEXT_START}\n{text}\n{TEXT_END}\n"
        "Your response MUST be a single, valid JSON object that strictly adheres to the "
        "provided JSON schema. Do not include any explanatory text, markdown formatting, "
        "or anything else outside the JSON object itself. "
        "Respond with the JSON for the text provided above."
    )


def build_messages(text: str) -> list[dict[str, str]]:
    messages = [
        BackendMessage(role="system", content=SYSTEM_INSTRUCTION),
        BackendMessage(role="user", content=build_prompt(text)),
    ]
    return [m.model_dump() for m in messages]


def build_request_item(
    text: str,
    response_format: dict[str, Any],
    *,
    external_reference: str | None = None,
) -> dict[str, Any]:
    """One ``{messages, response_format}`` item, optionally tagged for batch correlation."""
    item: dict[str, Any] = {
        "messages": build_messages(text),
        "response_format": response_format,
    }
    if external_reference is not None:
        item["external_reference"] = external_reference
    return item


def build_extraction_inputs(text: str, wire_schema: dict[str, Any]) -> dict[str, Any]:
    return build_request_item(text, json_schema_response_format(wire_schema))
