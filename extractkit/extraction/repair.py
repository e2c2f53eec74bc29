"""Response repair: synthesize defaults for missing fields, then validate."""
from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from extractkit.extraction.errors import ModelError, ValidationError
from extractkit.extraction.schema import SchemaDescriptor
from extractkit.extraction.types import FieldKind

_DEFAULT_FACTORIES: dict[FieldKind, Callable[[], Any]] = {
    FieldKind.ARRAY: list,
    FieldKind.OBJECT: dict,
    FieldKind.STRING: str,
    FieldKind.BOOLEAN: lambda: False,
    FieldKind.NUMBER: lambda: 0,
    FieldKind.UNKNOWN: lambda: None,
}


def default_for_kind(kind: FieldKind) -> Any:
    return _DEFAULT_FACTORIES.get(kind, _DEFAULT_FACTORIES[FieldKind.UNKNOWN])()


def decode_payload(payload: Any, source: str) -> Any:
    """Decode a payload that arrived as JSON text; other values pass through. Raises ModelError."""
    if not isinstance(payload, str):
        return payload
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ModelError(f"{source} returned text that is not valid JSON: {e}") from e
    if decoded is None:
        raise ModelError(f"{source} returned an empty or invalid response.")
    return decoded


def fill_missing_fields(schema: SchemaDescriptor, candidate: Any) -> dict[str, Any]:
    """
    Fill every declared field absent from candidate with a kind default, then validate.
    Present but wrong-shaped values are not coerced away: they raise ValidationError.
    """
    if not isinstance(candidate, Mapping):
        kind = type(candidate).__name__
        raise ValidationError.from_field_errors(
            [{"field": "<root>", "message": f"Expected a JSON object, got {kind}", "type": "object_type"}]
        )
    full = dict(candidate)
    for name in schema.field_names():
        if name not in full:
            full[name] = default_for_kind(schema.field_kind(name))
    return schema.validate(full)
