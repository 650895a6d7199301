"""
latch/verification/verifier.py

Proof verification port and the Ed25519 attestation reference backend.

The engine treats proof verification as an opaque, synchronous yes/no
answer over (proof, public_inputs). Soundness of the proof system is out
of scope; AttestationVerifier stands in for it with a signature by a
trusted prover key over the canonical claims vector:

    signed bytes = JCS({"domain": ATTESTATION_DOMAIN,
                        "claims": [str(c) for c in public_inputs]})
    proof        = base64url Ed25519 signature (no padding)

Any failure to verify returns False; verify_proof() never raises.
"""

from typing import Iterable, List, Protocol, Sequence

from latch.core.canonical import canonicalize
from latch.core.crypto import Ed25519KeyManager

ATTESTATION_DOMAIN = "latch.settlement.v1"


class ProofVerifier(Protocol):
    def verify_proof(self, proof: str, public_inputs: Sequence[int]) -> bool:
        """Return True iff proof attests to public_inputs."""


def attestation_bytes(public_inputs: Sequence[int]) -> bytes:
    """THE bytes an attestation signs."""
    return canonicalize({
        "domain": ATTESTATION_DOMAIN,
        "claims": [str(int(c)) for c in public_inputs],
    })


class AttestationProver:
    """Signs claims vectors. Used by solver clients and tests."""

    def __init__(self, key_manager: Ed25519KeyManager) -> None:
        self.key_manager = key_manager

    @property
    def public_key_hex(self) -> str:
        return self.key_manager.public_key_hex

    def prove(self, public_inputs: Sequence[int]) -> str:
        return self.key_manager.sign(attestation_bytes(public_inputs))


class AttestationVerifier:
    """
    Accepts proofs signed by any of a fixed set of trusted prover keys.

    Usage:
        prover   = AttestationProver(Ed25519KeyManager.generate())
        verifier = AttestationVerifier([prover.public_key_hex])
        verifier.verify_proof(prover.prove(claims), claims)  # True
    """

    def __init__(self, trusted_public_keys: Iterable[str]) -> None:
        self.trusted_public_keys: List[str] = list(trusted_public_keys)
        if not self.trusted_public_keys:
            raise ValueError("AttestationVerifier needs at least one trusted key")

    def verify_proof(self, proof: str, public_inputs: Sequence[int]) -> bool:
        if not isinstance(proof, str) or not proof:
            return False
        try:
            data = attestation_bytes(public_inputs)
        except (TypeError, ValueError):
            return False
        return any(
            Ed25519KeyManager.verify_detached(data, proof, key)
            for key in self.trusted_public_keys
        )
