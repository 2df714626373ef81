"""
Canonical JSON serialization and content comparison.

Two config contents are considered equal when their canonical JSON text is
identical. The canonicalization ensures:
- Keys are sorted recursively (object key order is immaterial)
- List order is preserved (array order is material)
- Unicode is normalized (NFC)
- No insignificant whitespace
- JSON types stay distinct (1, 1.0 and true do not compare equal)
"""

import hashlib
import json
import unicodedata
from typing import Any


def canonicalize(obj: Any) -> str:
    """
    Canonicalize a JSON-compatible value to a stable string.

    Args:
        obj: The value to canonicalize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        _normalize_for_canonical(obj),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def _normalize_for_canonical(obj: Any) -> Any:
    """
    Recursively normalize a value for canonical serialization.

    - Normalizes unicode strings (NFC)
    - Recursively processes dicts and lists
    """
    if obj is None:
        return None

    if isinstance(obj, str):
        return unicodedata.normalize("NFC", obj)

    if isinstance(obj, bool):
        # Handle bool before int (bool is subclass of int)
        return obj

    if isinstance(obj, (int, float)):
        return obj

    if isinstance(obj, dict):
        return {
            _normalize_for_canonical(k): _normalize_for_canonical(v)
            for k, v in obj.items()
        }

    if isinstance(obj, (list, tuple)):
        return [_normalize_for_canonical(item) for item in obj]

    return unicodedata.normalize("NFC", str(obj))


def content_hash(obj: Any) -> str:
    """
    Compute the SHA256 hash of a value's canonical form.

    Returns:
        Hex-encoded SHA256 hash string
    """
    return hashlib.sha256(canonicalize(obj).encode("utf-8")).hexdigest()


def contents_equal(left: Any, right: Any) -> bool:
    """Deep structural equality over JSON values."""
    return canonicalize(left) == canonicalize(right)
