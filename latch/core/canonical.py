"""
latch/core/canonical.py

Canonical JSON Encoding — RFC 8785 (JCS)

Every signed or hashed structure in Latch (event envelopes, settlement
attestations) goes through this module. Nothing else serializes bytes for
signing.

JCS serializes numbers as IEEE-754 doubles, which cannot carry the 256-bit
field elements and 18-decimal amounts the engine works with. Payloads are
therefore passed through wire_value() first: integers become decimal
strings, bytes become 0x hex.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
from enum import Enum
from typing import Any

import jcs


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    Values must already be wire-safe; see wire_value().
    """
    return jcs.canonicalize(obj)


def canonical_hash(obj: dict) -> str:
    """
    SHA-256 of the RFC 8785 canonical form.

    Returns:
        Lowercase hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(canonicalize(obj)).hexdigest()


def wire_value(value: Any) -> Any:
    """
    Convert a payload value to its wire representation.

        bool        → bool (checked before int)
        IntEnum     → member name
        int         → decimal string
        bytes       → 0x-prefixed lowercase hex
        dict / list → converted recursively
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {str(k): wire_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [wire_value(v) for v in value]
    return value


def hex_word(value: int) -> str:
    """Render a field element as a 0x-prefixed 32-byte hex string."""
    return "0x" + value.to_bytes(32, "big").hex()
