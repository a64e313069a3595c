"""
Deterministic key generation for stored results.

key = sha256(pack_id + ":" + canonical_inputs)[:16]

Same pack id + same inputs => same key, so storing a new run overwrites the
previous result for that input set.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from .constants import RESULT_KEY_LENGTH


class _Undefined:
    """Marker for an input that is present as a key but carries no value."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()


def _strip_and_sort(value: Any) -> Any:
    if value is UNDEFINED:
        # Only reachable for list items; JSON has no "absent" array slot.
        return None
    if isinstance(value, Mapping):
        return {
            str(k): _strip_and_sort(v)
            for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))
            if v is not UNDEFINED
        }
    if isinstance(value, (list, tuple)):
        return [_strip_and_sort(v) for v in value]
    return value


def canonicalize_inputs(inputs: Mapping[str, Any]) -> str:
    """
    Stable JSON for an input mapping.

    Mapping keys are sorted recursively and UNDEFINED entries dropped; list
    order is kept. `None` is a real value and serializes as `null`.
    """
    return json.dumps(_strip_and_sort(inputs), separators=(",", ":"), ensure_ascii=False)


def generate_result_key(pack_id: str, inputs: Mapping[str, Any]) -> str:
    payload = f"{pack_id}:{canonicalize_inputs(inputs)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:RESULT_KEY_LENGTH]
