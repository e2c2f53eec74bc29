"""Response repair: default synthesis then validation."""
from __future__ import annotations

from typing import Optional

import pytest
from pydantic import BaseModel

from extractkit.extraction.errors import ValidationError
from extractkit.extraction.repair import default_for_kind, fill_missing_fields
from extractkit.extraction.schema import PydanticSchema
from extractkit.extraction.types import FieldKind


class Inner(BaseModel):
    note: str = ""


class Everything(BaseModel):
    text: str
    count: int
    ratio: float
    flag: bool
    items: list[int]
    mapping: dict[str, int]
    inner: Inner
    maybe: Optional[str]


def test_fill_missing_fields_totality(person_schema) -> None:
    out = fill_missing_fields(person_schema, {})
    assert out == {"name": "", "tags": []}
    assert person_schema.validate(out) == out


def test_fill_missing_fields_idempotent(person_schema) -> None:
    once = fill_missing_fields(person_schema, {"name": "Ada"})
    twice = fill_missing_fields(person_schema, once)
    assert once == twice == {"name": "Ada", "tags": []}


def test_fill_missing_fields_defaults_per_kind() -> None:
    out = fill_missing_fields(PydanticSchema(Everything), {})
    assert out == {
        "text": "",
        "count": 0,
        "ratio": 0.0,
        "flag": False,
        "items": [],
        "mapping": {},
        "inner": {"note": ""},
        "maybe": None,
    }


def test_fill_missing_fields_keeps_present_values(person_schema) -> None:
    out = fill_missing_fields(person_schema, {"name": "Grace", "tags": ["navy"], "extra": 1})
    assert out == {"name": "Grace", "tags": ["navy"]}


def test_wrong_shape_is_not_coerced(person_schema) -> None:
    with pytest.raises(ValidationError) as exc_info:
        fill_missing_fields(person_schema, {"name": "Ada", "tags": "not-a-list"})
    assert exc_info.value.field_errors[0]["field"].startswith("tags")


def test_null_value_is_present_not_missing(person_schema) -> None:
    with pytest.raises(ValidationError):
        fill_missing_fields(person_schema, {"name": None})


def test_non_object_candidate_rejected(person_schema) -> None:
    with pytest.raises(ValidationError) as exc_info:
        fill_missing_fields(person_schema, ["Ada"])
    assert exc_info.value.field_errors[0]["field"] == "<root>"


def test_default_for_kind_returns_fresh_containers() -> None:
    a = default_for_kind(FieldKind.ARRAY)
    a.append(1)
    assert default_for_kind(FieldKind.ARRAY) == []
