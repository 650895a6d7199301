"""Proof verifiers for settlement claims."""

from latch.verification.verifier import (
    AttestationProver,
    AttestationVerifier,
    ProofVerifier,
)

__all__ = ["AttestationProver", "AttestationVerifier", "ProofVerifier"]
