"""Fold per-chunk structured results into one object, in chunk order."""
from __future__ import annotations

from typing import Any, Iterable, Mapping

_SEQUENCE_TYPES = (list, tuple)


def merge_into(acc: dict[str, Any], result: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge one chunk result into acc (mutated and returned):
      - sequence: appended after the existing sequence (duplicates kept)
      - mapping: shallow merge, new keys win
      - non-None scalar: overwrites
      - None: kept only if the key was not there yet
    """
    for key, new_value in result.items():
        existing = acc.get(key)
        if isinstance(new_value, _SEQUENCE_TYPES):
            base = list(existing) if isinstance(existing, _SEQUENCE_TYPES) else []
            acc[key] = base + list(new_value)
        elif isinstance(new_value, Mapping):
            base = dict(existing) if isinstance(existing, Mapping) else {}
            acc[key] = {**base, **new_value}
        elif new_value is not None:
            acc[key] = new_value
        elif key not in acc:
            acc[key] = new_value
    return acc


def merge_chunk_results(results: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Deterministic left fold of merge_into over results."""
    merged: dict[str, Any] = {}
    for result in results:
        merge_into(merged, result)
    return merged
