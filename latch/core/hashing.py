"""
latch/core/hashing.py

Hash primitives shared by the commitment ledger, the order tree, the
allowlist tree and the public-claims layout.

Two hash families:

    commitment_hash(...)  → 32 bytes
        SHA-256 over the packed encoding
        COMMITMENT_DOMAIN(32) ‖ identity(20) ‖ amount(16) ‖ limit_price(16)
        ‖ is_buy(1) ‖ salt(32)

    field_hash(*words)    → int in [0, FIELD_MODULUS)
        SHA-256 over each word as a 32-byte big-endian integer, reduced
        modulo the BN254 scalar field so results can be carried as public
        claims of a proof over that field.

Domain tags keep leaf, node and trader hashes in disjoint spaces.
"""

import hashlib
import re
from typing import Union

from latch.core.exceptions import InvalidIdentity, InvalidOrder

# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

FIELD_MODULUS = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

# ASCII tags packed as integers
ORDER_DOMAIN  = int.from_bytes(b"LATCH_ORDER_V1", "big")
MERKLE_DOMAIN = int.from_bytes(b"LATCH_MERKLE_V1", "big")
TRADER_DOMAIN = int.from_bytes(b"LATCH_TRADER", "big")

COMMITMENT_DOMAIN: bytes = hashlib.sha256(b"LATCH_COMMITMENT_V1").digest()

UINT128_MAX = (1 << 128) - 1
UINT256_MAX = (1 << 256) - 1

ZERO_HASH = b"\x00" * 32

_IDENTITY_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

Salt = Union[bytes, int]


# ─────────────────────────────────────────────────────────────
# Identities
# ─────────────────────────────────────────────────────────────

def normalize_identity(value: str) -> str:
    """
    Validate and lowercase a participant identity.

    Identities are 0x-prefixed 20-byte hex addresses.
    Raises InvalidIdentity otherwise.
    """
    if not isinstance(value, str) or not _IDENTITY_RE.match(value):
        raise InvalidIdentity(value)
    return value.lower()


def identity_to_field(identity: str) -> int:
    """Interpret an identity as an unsigned integer (always < FIELD_MODULUS)."""
    return int(normalize_identity(identity), 16)


# ─────────────────────────────────────────────────────────────
# Field hash
# ─────────────────────────────────────────────────────────────

def field_hash(*words: int) -> int:
    """Hash unsigned 256-bit words into a field element."""
    h = hashlib.sha256()
    for word in words:
        if not isinstance(word, int) or word < 0 or word > UINT256_MAX:
            raise ValueError(f"field_hash input out of range: {word!r}")
        h.update(word.to_bytes(32, "big"))
    return int.from_bytes(h.digest(), "big") % FIELD_MODULUS


def hash_pair(a: int, b: int) -> int:
    """Commutative node hash: children are sorted before hashing."""
    if a <= b:
        return field_hash(MERKLE_DOMAIN, a, b)
    return field_hash(MERKLE_DOMAIN, b, a)


def order_leaf(identity: str, amount: int, limit_price: int, is_buy: bool) -> int:
    """Leaf of the revealed-order tree."""
    return field_hash(
        ORDER_DOMAIN,
        identity_to_field(identity),
        amount,
        limit_price,
        1 if is_buy else 0,
    )


def trader_leaf(identity: str) -> int:
    """Leaf of the allowlist tree."""
    return field_hash(TRADER_DOMAIN, identity_to_field(identity))


# ─────────────────────────────────────────────────────────────
# Commitment hash
# ─────────────────────────────────────────────────────────────

def salt_bytes(salt: Salt) -> bytes:
    """Normalize a salt to 32 bytes."""
    if isinstance(salt, int) and not isinstance(salt, bool):
        if salt < 0 or salt > UINT256_MAX:
            raise InvalidOrder("salt out of range")
        return salt.to_bytes(32, "big")
    if isinstance(salt, (bytes, bytearray)) and len(salt) == 32:
        return bytes(salt)
    raise InvalidOrder("salt must be a 32-byte value", salt=repr(salt))


def commitment_hash(
    identity:    str,
    amount:      int,
    limit_price: int,
    is_buy:      bool,
    salt:        Salt,
) -> bytes:
    """
    Binding hash of a hidden order.

    Amount and limit price are packed as uint128; values outside that
    range raise InvalidOrder.
    """
    for name, value in (("amount", amount), ("limit_price", limit_price)):
        if not isinstance(value, int) or value < 0 or value > UINT128_MAX:
            raise InvalidOrder(f"{name} must fit in 128 bits", **{name: value})

    packed = b"".join((
        COMMITMENT_DOMAIN,
        bytes.fromhex(normalize_identity(identity)[2:]),
        amount.to_bytes(16, "big"),
        limit_price.to_bytes(16, "big"),
        b"\x01" if is_buy else b"\x00",
        salt_bytes(salt),
    ))
    return hashlib.sha256(packed).digest()
