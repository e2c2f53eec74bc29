"""
Schema capability used by the extraction core, plus the Pydantic adapter.

The core only sees SchemaDescriptor: render a wire schema, list fields, classify
a field's kind, validate a candidate. Library-specific type tags map into
FieldKind here and nowhere else.
"""
from __future__ import annotations

import collections.abc
import copy
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Mapping, Protocol, get_args, get_origin, runtime_checkable

from pydantic import BaseModel, PydanticUserError, create_model
from pydantic import ValidationError as PydanticValidationError

from extractkit.extraction.errors import ConfigurationError, ValidationError
from extractkit.extraction.types import FieldKind


@runtime_checkable
class SchemaDescriptor(Protocol):
    """Read-only schema handle. Safe to share across concurrent extractions."""

    def to_wire_schema(self) -> dict[str, Any]:
        """JSON Schema for the backend's response-format constraint."""
        ...

    def field_names(self) -> list[str]:
        """Declared top-level field names, as they appear on the wire."""
        ...

    def field_kind(self, name: str) -> FieldKind:
        ...

    def validate(self, value: Mapping[str, Any]) -> dict[str, Any]:
        """Return the validated value. Raises ValidationError with field_errors."""
        ...


_ARRAY_TYPES = (list, tuple, set, frozenset)
_ARRAY_ORIGINS = _ARRAY_TYPES + (
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)
_OBJECT_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def classify_annotation(annotation: Any) -> FieldKind:
    """Map a Python/Pydantic annotation to a FieldKind. Unions, Literals and Optionals are UNKNOWN."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return classify_annotation(get_args(annotation)[0])
    if origin is not None:
        if origin in _ARRAY_ORIGINS:
            return FieldKind.ARRAY
        if origin in _OBJECT_ORIGINS:
            return FieldKind.OBJECT
        return FieldKind.UNKNOWN
    if not isinstance(annotation, type):
        return FieldKind.UNKNOWN
    if issubclass(annotation, Enum):
        return FieldKind.UNKNOWN
    if issubclass(annotation, bool):
        return FieldKind.BOOLEAN
    if issubclass(annotation, str):
        return FieldKind.STRING
    if issubclass(annotation, (int, float, Decimal)):
        return FieldKind.NUMBER
    if issubclass(annotation, _ARRAY_TYPES):
        return FieldKind.ARRAY
    if issubclass(annotation, (dict, BaseModel)):
        return FieldKind.OBJECT
    return FieldKind.UNKNOWN


def _field_errors(exc: PydanticValidationError) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for err in exc.errors(include_url=False):
        loc = ".".join(str(p) for p in err.get("loc", ()))
        out.append({"field": loc or "<root>", "message": err.get("msg", ""), "type": err.get("type", "")})
    return out


class PydanticSchema:
    """SchemaDescriptor backed by a Pydantic v2 model class."""

    def __init__(self, model: type[BaseModel]) -> None:
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise ConfigurationError(f"PydanticSchema requires a BaseModel subclass, got {model!r}")
        self._model = model
        self._kinds: dict[str, FieldKind] = {
            (info.alias or name): classify_annotation(info.annotation)
            for name, info in model.model_fields.items()
        }

    @classmethod
    def from_fields(cls, name: str, fields: Mapping[str, Any]) -> "PydanticSchema":
        """Build from ``{field: type}`` or ``{field: (type, default)}``; bare types are required."""
        definitions = {
            field_name: spec if isinstance(spec, tuple) else (spec, ...)
            for field_name, spec in fields.items()
        }
        return cls(create_model(name, **definitions))

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    def to_wire_schema(self) -> dict[str, Any]:
        return self._model.model_json_schema(by_alias=True)

    def field_names(self) -> list[str]:
        return list(self._kinds)

    def field_kind(self, name: str) -> FieldKind:
        return self._kinds.get(name, FieldKind.UNKNOWN)

    def validate(self, value: Mapping[str, Any]) -> dict[str, Any]:
        try:
            instance = self._model.model_validate(value)
        except PydanticValidationError as e:
            raise ValidationError.from_field_errors(_field_errors(e)) from e
        return instance.model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return f"PydanticSchema({self._model.__name__})"


def _inline_refs(wire: dict[str, Any]) -> dict[str, Any]:
    """Replace local ``$ref`` pointers with their definitions and drop ``$defs``."""
    defs: dict[str, Any] = {}
    defs.update(wire.pop("$defs", None) or {})
    defs.update(wire.pop("definitions", None) or {})

    def resolve(node: Any, stack: frozenset[str]) -> Any:
        if isinstance(node, list):
            return [resolve(n, stack) for n in node]
        if not isinstance(node, dict):
            return node
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith(("#/$defs/", "#/definitions/")):
            name = ref.rsplit("/", 1)[-1]
            if name in stack:
                raise ConfigurationError(f"Recursive schema reference {ref!r} cannot be inlined")
            if name not in defs:
                raise ConfigurationError(f"Unresolved schema reference {ref!r}")
            target = resolve(defs[name], stack | {name})
            siblings = {k: resolve(v, stack) for k, v in node.items() if k != "$ref"}
            return {**target, **siblings}
        return {k: resolve(v, stack) for k, v in node.items()}

    return resolve(wire, frozenset())


def compile_wire_schema(schema: SchemaDescriptor) -> dict[str, Any]:
    """Render, clean and check the wire schema. Raises ConfigurationError before any backend call."""
    try:
        rendered = schema.to_wire_schema()
    except (PydanticUserError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Failed to generate a valid JSON schema for the request: {e}") from e
    if not isinstance(rendered, Mapping):
        raise ConfigurationError("Failed to generate a valid JSON schema for the request.")
    wire = copy.deepcopy(dict(rendered))
    wire.pop("$schema", None)
    wire = _inline_refs(wire)
    if wire.get("type") != "object" or not isinstance(wire.get("properties"), Mapping):
        raise ConfigurationError("Failed to generate a valid JSON schema for the request.")
    return wire
