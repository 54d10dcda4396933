"""
Canonical JSON for the slip document and batch fingerprints.

Keys are sorted, separators carry no whitespace and the text is UTF-8.
Decimals travel as strings, so a float anywhere in the value is an error.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def _check_encodable(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError(f"float in canonical value: {value!r}")
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"non-string key in canonical value: {key!r}")
            _check_encodable(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item)


def canonical_json_bytes(value: Any) -> bytes:
    _check_encodable(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
        "utf-8"
    )


def canonical_digest(value: Any) -> str:
    """Hex SHA-256 of the canonical encoding of `value`."""
    return hashlib.sha256(canonical_json_bytes(value)).hexdigest()
