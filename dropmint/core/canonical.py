"""
dropmint: Canonical JSON Encoding — RFC 8785 (JCS)

Every byte string the event log hashes or signs comes from here.

JCS serializes numbers as IEEE-754 doubles, so integers beyond
±(2^53 - 1) would lose precision. Those are canonicalized as decimal
strings; the signed bytes then bind the exact amount.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
from typing import Any

import jcs

MAX_SAFE_INTEGER = 2 ** 53 - 1


def _exact(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER else str(value)
    if isinstance(value, dict):
        return {k: _exact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_exact(v) for v in value]
    return value


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    Values must be JSON primitives; bytes go in as 0x-hex strings.
    """
    return jcs.canonicalize(_exact(obj))


def canonical_hash(obj: dict) -> str:
    """Lowercase hex SHA-256 of the canonical form (64 characters)."""
    return hashlib.sha256(canonicalize(obj)).hexdigest()
