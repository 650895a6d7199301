"""
Latch Exception Hierarchy

All exceptions inherit from LatchError for easy catching.

Every rejection is named and parameterized. The parameters travel in
``details`` so callers (and logs) can report the exact violated
precondition instead of a bare message.
"""


class LatchError(Exception):
    """Base exception for all Latch errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ─────────────────────────────────────────────────────────────
# Categories
# ─────────────────────────────────────────────────────────────

class ValidationError(LatchError):
    """Raised when input data validation fails"""
    pass


class ConfigError(ValidationError):
    """Raised when pool or engine configuration is invalid"""
    pass


class PhaseError(LatchError):
    """Raised when an operation is attempted outside its lifecycle phase"""
    pass


class CommitmentError(LatchError):
    """Raised when a commit, reveal or refund precondition fails"""
    pass


class SettlementError(LatchError):
    """Raised when a settlement attempt is rejected"""
    pass


class AuthorizationError(LatchError):
    """Raised when the caller is not allowed to perform an operation"""
    pass


class ClaimError(LatchError):
    """Raised when a claim precondition fails"""
    pass


class EmergencyError(LatchError):
    """Raised when an emergency safety-net precondition fails"""
    pass


class PauseError(LatchError):
    """Raised when a paused operation is attempted"""
    pass


class LedgerError(LatchError):
    """Raised when a value transfer cannot be performed"""
    pass


class EventLogError(LatchError):
    """Raised when the event log cannot be written or read"""
    pass


# ─────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────

class PoolAlreadyConfigured(ConfigError):
    def __init__(self, market_id: str):
        super().__init__(
            "Pool configuration is immutable once set",
            {"market_id": market_id},
        )


class PoolNotConfigured(ConfigError):
    def __init__(self, market_id: str):
        super().__init__(
            "Pool has not been configured",
            {"market_id": market_id},
        )


class MarketNotFound(ValidationError):
    def __init__(self, market_id: str):
        super().__init__("Unknown market", {"market_id": market_id})


class MarketAlreadyExists(ConfigError):
    def __init__(self, market_id: str):
        super().__init__("Market id already registered", {"market_id": market_id})


class InvalidIdentity(ValidationError):
    def __init__(self, value):
        super().__init__(
            "Identity must be a 0x-prefixed 20-byte hex address",
            {"value": value},
        )


# ─────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────

class WrongPhase(PhaseError):
    def __init__(self, expected, actual):
        super().__init__(
            "Operation not allowed in current phase",
            {"expected": _name(expected), "actual": _name(actual)},
        )
        self.expected = expected
        self.actual = actual


class RoundNotFound(PhaseError):
    def __init__(self, round_id: int):
        super().__init__("Round does not exist", {"round_id": round_id})
        self.round_id = round_id


class RoundAlreadyActive(PhaseError):
    def __init__(self, round_id: int, phase):
        super().__init__(
            "A round is already active",
            {"round_id": round_id, "phase": _name(phase)},
        )
        self.round_id = round_id


class RoundNotSettled(PhaseError):
    def __init__(self, round_id: int):
        super().__init__("Round has not been settled", {"round_id": round_id})
        self.round_id = round_id


class RoundAlreadyFinalized(PhaseError):
    def __init__(self, round_id: int):
        super().__init__("Round already finalized", {"round_id": round_id})
        self.round_id = round_id


class ClaimWindowOpen(PhaseError):
    def __init__(self, round_id: int, claim_end: int, tick: int):
        super().__init__(
            "Claim window has not elapsed",
            {"round_id": round_id, "claim_end": claim_end, "tick": tick},
        )


class RangeTooLarge(ValidationError):
    def __init__(self, requested: int, maximum: int):
        super().__init__(
            "Historical range query exceeds maximum length",
            {"requested": requested, "maximum": maximum},
        )


# ─────────────────────────────────────────────────────────────
# Commitments
# ─────────────────────────────────────────────────────────────

class ZeroCommitmentHash(CommitmentError):
    def __init__(self):
        super().__init__("Commitment hash must be non-zero")


class ZeroDeposit(CommitmentError):
    def __init__(self):
        super().__init__("Deposit must be non-zero")


class RoundFull(CommitmentError):
    def __init__(self, round_id: int, capacity: int):
        super().__init__(
            "Round has no remaining commitment capacity",
            {"round_id": round_id, "capacity": capacity},
        )


class AlreadyCommitted(CommitmentError):
    def __init__(self, round_id: int, participant: str):
        super().__init__(
            "Participant already committed in this round",
            {"round_id": round_id, "participant": participant},
        )


class NotAllowlisted(CommitmentError):
    def __init__(self, participant: str, root: int):
        super().__init__(
            "Allowlist membership proof rejected",
            {"participant": participant, "root": hex(root)},
        )


class NoCommitment(CommitmentError):
    def __init__(self, round_id: int, participant: str):
        super().__init__(
            "No commitment for participant in round",
            {"round_id": round_id, "participant": participant},
        )


class InvalidCommitmentStatus(CommitmentError):
    def __init__(self, expected, actual):
        super().__init__(
            "Commitment is not in the required status",
            {"expected": _name(expected), "actual": _name(actual)},
        )
        self.expected = expected
        self.actual = actual


class CommitmentHashMismatch(CommitmentError):
    def __init__(self, expected: str, actual: str):
        super().__init__(
            "Revealed order does not match commitment",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class DepositMismatch(CommitmentError):
    def __init__(self, expected: int, actual: int):
        super().__init__(
            "Declared deposit differs from escrowed deposit",
            {"expected": expected, "actual": actual},
        )


class InvalidOrder(CommitmentError):
    def __init__(self, reason: str, **fields):
        super().__init__(f"Invalid order: {reason}", fields)


class InsufficientDeposit(CommitmentError):
    def __init__(self, required: int, provided: int):
        super().__init__(
            "Deposit does not cover the order",
            {"required": required, "provided": provided},
        )


class AlreadyRefunded(CommitmentError):
    def __init__(self, round_id: int, participant: str):
        super().__init__(
            "Deposit already returned for this round",
            {"round_id": round_id, "participant": participant},
        )


# ─────────────────────────────────────────────────────────────
# Settlement
# ─────────────────────────────────────────────────────────────

class AlreadySettled(SettlementError):
    def __init__(self, round_id: int):
        super().__init__("Round already settled", {"round_id": round_id})
        self.round_id = round_id


class InvalidClaimsLength(SettlementError):
    def __init__(self, expected: int, actual: int):
        super().__init__(
            "Public claims vector has wrong length",
            {"expected": expected, "actual": actual},
        )


class InvalidPublicClaims(SettlementError):
    def __init__(self, index: int, value):
        super().__init__(
            "Public claim is not an unsigned integer",
            {"index": index, "value": value},
        )


class PublicClaimMismatch(SettlementError):
    def __init__(self, field: str, expected, actual):
        super().__init__(
            "Public claim does not match tracked state",
            {"field": field, "expected": expected, "actual": actual},
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class ProofRejected(SettlementError):
    def __init__(self, round_id: int):
        super().__init__("Proof verification failed", {"round_id": round_id})


class EscrowShortfall(SettlementError):
    def __init__(self, escrowed: int, payouts: int, fee: int):
        super().__init__(
            "Fills pay out more asset B than the round escrows",
            {"escrowed": escrowed, "payouts": payouts, "fee": fee},
        )


class InsufficientSolverLiquidity(SettlementError):
    def __init__(self, required: int, available: int):
        super().__init__(
            "Solver has not supplied enough asset A liquidity",
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available


# ─────────────────────────────────────────────────────────────
# Authorization
# ─────────────────────────────────────────────────────────────

class NotAdmin(AuthorizationError):
    def __init__(self, caller: str):
        super().__init__("Caller is not the market admin", {"caller": caller})


class SolverNotAuthorized(AuthorizationError):
    def __init__(self, solver: str, tier):
        super().__init__(
            "Solver may not settle in the current tier",
            {"solver": solver, "tier": _name(tier)},
        )
        self.tier = tier


class UnknownSolver(AuthorizationError):
    def __init__(self, solver: str):
        super().__init__("Solver is not registered", {"solver": solver})


# ─────────────────────────────────────────────────────────────
# Claims, rewards and withdrawals
# ─────────────────────────────────────────────────────────────

class NothingToClaim(ClaimError):
    def __init__(self, round_id: int, account: str):
        super().__init__(
            "Nothing claimable",
            {"round_id": round_id, "account": account},
        )


class AlreadyClaimed(ClaimError):
    def __init__(self, round_id: int, account: str):
        super().__init__(
            "Claimable already claimed",
            {"round_id": round_id, "account": account},
        )


class NothingToWithdraw(ClaimError):
    def __init__(self, account: str):
        super().__init__("No pending rewards", {"account": account})


class WithdrawalAlreadyPending(ClaimError):
    def __init__(self, account: str, unlock_tick: int):
        super().__init__(
            "A withdrawal is already pending",
            {"account": account, "unlock_tick": unlock_tick},
        )


class NoPendingWithdrawal(ClaimError):
    def __init__(self, account: str):
        super().__init__("No pending withdrawal", {"account": account})


class WithdrawalLocked(ClaimError):
    def __init__(self, unlock_tick: int, tick: int):
        super().__init__(
            "Withdrawal is still timelocked",
            {"unlock_tick": unlock_tick, "tick": tick},
        )


# ─────────────────────────────────────────────────────────────
# Emergency
# ─────────────────────────────────────────────────────────────

class EmergencyNotEnabled(EmergencyError):
    def __init__(self, market_id: str):
        super().__init__(
            "Emergency safety net is not installed on this market",
            {"market_id": market_id},
        )


class EmergencyTimeoutNotReached(EmergencyError):
    def __init__(self, activation_tick: int, tick: int):
        super().__init__(
            "Emergency timeout has not elapsed",
            {"activation_tick": activation_tick, "tick": tick},
        )
        self.activation_tick = activation_tick


class EmergencyAlreadyActive(EmergencyError):
    def __init__(self, round_id: int):
        super().__init__("Emergency already active", {"round_id": round_id})


class EmergencyNotActive(EmergencyError):
    def __init__(self, round_id: int):
        super().__init__("Emergency is not active", {"round_id": round_id})


class EmergencyActive(SettlementError):
    def __init__(self, round_id: int):
        super().__init__(
            "Round is in emergency mode and can no longer settle",
            {"round_id": round_id},
        )


# ─────────────────────────────────────────────────────────────
# Pause
# ─────────────────────────────────────────────────────────────

class OperationPaused(PauseError):
    def __init__(self, operation):
        super().__init__("Operation is paused", {"operation": _name(operation)})
        self.operation = operation


class ForceUnpauseNotReady(PauseError):
    def __init__(self, ready_at, tick: int):
        super().__init__(
            "Force unpause not yet available",
            {"ready_at": ready_at, "tick": tick},
        )


# ─────────────────────────────────────────────────────────────
# Value transfer
# ─────────────────────────────────────────────────────────────

class InsufficientBalance(LedgerError):
    def __init__(self, account: str, asset, required: int, available: int):
        super().__init__(
            "Insufficient balance",
            {
                "account": account,
                "asset": _name(asset),
                "required": required,
                "available": available,
            },
        )


class InsufficientPayment(LedgerError):
    def __init__(self, required: int, offered: int):
        super().__init__(
            "Native payment below required amount",
            {"required": required, "offered": offered},
        )


def _name(value):
    return getattr(value, "name", value)
