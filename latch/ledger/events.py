"""
latch/ledger/events.py

Market Event Log

Every state change of a market is published to an EventSink. The
persistent sink, MarketEventLog, writes an append-only JSONL file of
signed, hash-chained EventEnvelope records.

Envelope contracts:

    Signing   bytes_signed = JCS(env.to_signing_dict()), Ed25519,
              base64url without padding
    Chain     causal_hash  = SHA-256(JCS(prev.to_signing_dict()));
              the first entry carries GENESIS_HASH
    Sequence  0, 1, 2, ... with no gaps
    Nonce     32 random hex chars, unique within a log
    Payload   wire-safe only: integers as decimal strings, hashes as
              0x hex (see core/canonical.py)

emit() order: lock → create → sign → check chain invariants → append →
advance state. State never advances past a failed write.
"""

import json
import logging
import re
import secrets
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Set

from latch.core.canonical import canonical_hash, canonicalize, wire_value
from latch.core.crypto import Ed25519KeyManager
from latch.core.exceptions import EventLogError
from latch.core.time import TIMESTAMP_RE, log_timestamp

logger = logging.getLogger(__name__)

LOG_VERSION  = "1.0"
GENESIS_HASH = "0" * 64

_NONCE_HEX_LENGTH      = 32
_PUBLIC_KEY_HEX_LENGTH = 64
_HEX64_RE = re.compile(r"^[0-9a-f]{64}$")


# ─────────────────────────────────────────────────────────────
# Record Type Vocabulary
# ─────────────────────────────────────────────────────────────

class RecordType:
    POOL_CONFIGURED     = "pool_configured"
    ROUND_STARTED       = "round_started"
    COMMITTED           = "committed"
    ORDER_REVEALED      = "order_revealed"
    REFUNDED            = "refunded"
    SETTLED             = "settled"
    CLAIMED             = "claimed"
    FINALIZED           = "finalized"
    EMERGENCY_ACTIVATED = "emergency_activated"
    EMERGENCY_REFUNDED  = "emergency_refunded"
    SOLVER_UPDATED      = "solver_updated"
    PAUSE_CHANGED       = "pause_changed"
    REWARD_WITHDRAWAL   = "reward_withdrawal"


VALID_RECORD_TYPES: Set[str] = {
    value for name, value in vars(RecordType).items() if not name.startswith("_")
}


# ─────────────────────────────────────────────────────────────
# Sinks
# ─────────────────────────────────────────────────────────────

class EventSink(Protocol):
    def publish(
        self,
        record_type: str,
        market_id:   str,
        round_id:    int,
        tick:        int,
        payload:     Dict[str, Any],
    ) -> None:
        """Record one market event. round_id 0 marks market-level events."""


class NullEventSink:
    def publish(self, record_type, market_id, round_id, tick, payload) -> None:
        return None


@dataclass(frozen=True)
class EventRecord:
    record_type: str
    market_id:   str
    round_id:    int
    tick:        int
    payload:     Dict[str, Any]


class InMemoryEventSink:
    """Keeps published events in a list. Used by tests and embedders."""

    def __init__(self) -> None:
        self.records: List[EventRecord] = []

    def publish(self, record_type, market_id, round_id, tick, payload) -> None:
        self.records.append(EventRecord(
            record_type= record_type,
            market_id=   market_id,
            round_id=    round_id,
            tick=        tick,
            payload=     wire_value(payload),
        ))

    def of_type(self, record_type: str) -> List[EventRecord]:
        return [r for r in self.records if r.record_type == record_type]


# ─────────────────────────────────────────────────────────────
# SchemaValidationResult
# ─────────────────────────────────────────────────────────────

@dataclass
class SchemaValidationResult:
    """
    Returned, not raised, so callers can choose hard fail vs report.
    bool(result) is True iff valid.
    """
    valid:  bool
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


# ─────────────────────────────────────────────────────────────
# EventEnvelope
# ─────────────────────────────────────────────────────────────

@dataclass
class EventEnvelope:
    log_version:       str
    record_id:         str
    record_type:       str
    market_id:         str
    round_id:          int
    tick:              int
    signer_public_key: str
    sequence:          int
    nonce:             str
    timestamp:         str
    causal_hash:       str
    payload:           Dict[str, Any]
    signature:         Optional[str] = None

    @classmethod
    def create(
        cls,
        record_type:       str,
        market_id:         str,
        round_id:          int,
        tick:              int,
        signer_public_key: str,
        sequence:          int,
        payload:           Dict[str, Any],
        prev:              Optional["EventEnvelope"] = None,
    ) -> "EventEnvelope":
        """Create an unsigned envelope. Raises ValueError on bad input."""
        if record_type not in VALID_RECORD_TYPES:
            raise ValueError(
                f"Invalid record_type '{record_type}'. "
                f"Valid: {sorted(VALID_RECORD_TYPES)}"
            )
        if not isinstance(payload, dict):
            raise TypeError(f"payload must be dict, got {type(payload).__name__}")
        if not isinstance(sequence, int) or sequence < 0:
            raise ValueError(f"sequence must be non-negative int, got {sequence!r}")

        return cls(
            log_version=       LOG_VERSION,
            record_id=         f"evt-{uuid.uuid4()}",
            record_type=       record_type,
            market_id=         market_id,
            round_id=          round_id,
            tick=              tick,
            signer_public_key= signer_public_key,
            sequence=          sequence,
            nonce=             secrets.token_hex(_NONCE_HEX_LENGTH // 2),
            timestamp=         log_timestamp(),
            causal_hash=       cls.chain_hash(prev),
            payload=           wire_value(payload),
            signature=         None,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventEnvelope":
        """
        Deserialize a JSONL line. Trusts persisted data; callers check
        validate_schema(). Raises KeyError on a missing field.
        """
        return cls(
            log_version=       data["log_version"],
            record_id=         data["record_id"],
            record_type=       data["record_type"],
            market_id=         data["market_id"],
            round_id=          data["round_id"],
            tick=              data["tick"],
            signer_public_key= data["signer_public_key"],
            sequence=          data["sequence"],
            nonce=             data["nonce"],
            timestamp=         data["timestamp"],
            causal_hash=       data["causal_hash"],
            payload=           data.get("payload", {}),
            signature=         data.get("signature"),
        )

    # ── Schema ────────────────────────────────────────────────

    def validate_schema(self) -> SchemaValidationResult:
        errors: List[str] = []

        if self.log_version != LOG_VERSION:
            errors.append(f"log_version: expected '{LOG_VERSION}', got '{self.log_version}'")
        if self.record_type not in VALID_RECORD_TYPES:
            errors.append(f"record_type '{self.record_type}' not in valid set")
        if not isinstance(self.record_id, str) or not self.record_id.startswith("evt-"):
            errors.append(f"record_id must start with 'evt-', got {self.record_id!r}")
        if not isinstance(self.market_id, str) or not self.market_id:
            errors.append("market_id must be a non-empty string")
        for name in ("round_id", "tick", "sequence"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(f"{name} must be non-negative int, got {value!r}")
        if not isinstance(self.signer_public_key, str) or not _HEX64_RE.match(self.signer_public_key):
            errors.append("signer_public_key must be 64 lowercase hex chars")
        if (
            not isinstance(self.nonce, str)
            or len(self.nonce) != _NONCE_HEX_LENGTH
            or not re.fullmatch(r"[0-9a-f]+", self.nonce)
        ):
            errors.append(f"nonce must be {_NONCE_HEX_LENGTH} lowercase hex chars")
        if not isinstance(self.timestamp, str) or not TIMESTAMP_RE.match(self.timestamp):
            errors.append(f"timestamp '{self.timestamp}' is not YYYY-MM-DDTHH:MM:SS.mmmZ")
        if not isinstance(self.causal_hash, str) or not _HEX64_RE.match(self.causal_hash):
            errors.append("causal_hash must be 64 lowercase hex chars")
        if not isinstance(self.payload, dict):
            errors.append(f"payload must be dict, got {type(self.payload).__name__}")

        return SchemaValidationResult(valid=not errors, errors=errors)

    # ── Canonical forms ───────────────────────────────────────

    def to_signing_dict(self) -> Dict[str, Any]:
        """The exact dict that is signed and, for the next entry, chained."""
        return {
            "causal_hash":       self.causal_hash,
            "log_version":       self.log_version,
            "market_id":         self.market_id,
            "nonce":             self.nonce,
            "payload":           self.payload,
            "record_id":         self.record_id,
            "record_type":       self.record_type,
            "round_id":          self.round_id,
            "sequence":          self.sequence,
            "signer_public_key": self.signer_public_key,
            "tick":              self.tick,
            "timestamp":         self.timestamp,
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_signing_dict()
        d["signature"] = self.signature
        return d

    @staticmethod
    def chain_hash(prev: Optional["EventEnvelope"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return canonical_hash(prev.to_signing_dict())

    # ── Sign / verify ─────────────────────────────────────────

    def sign(self, key_manager: Ed25519KeyManager) -> "EventEnvelope":
        self.signature = key_manager.sign(canonicalize(self.to_signing_dict()))
        return self

    def verify_signature(self) -> bool:
        if not self.signature:
            return False
        try:
            data = canonicalize(self.to_signing_dict())
        except (TypeError, ValueError):
            return False
        return Ed25519KeyManager.verify_detached(data, self.signature, self.signer_public_key)

    def verify_chain(self, prev: Optional["EventEnvelope"]) -> bool:
        return self.causal_hash == EventEnvelope.chain_hash(prev)

    def verify_sequence(self, expected: int) -> bool:
        return self.sequence == expected


# ─────────────────────────────────────────────────────────────
# MarketEventLog
# ─────────────────────────────────────────────────────────────

class MarketEventLog:
    """
    Signed JSONL EventSink.

    Thread-safe via an internal lock (single process). State survives a
    restart by reading the last line of an existing log.
    """

    def __init__(self, key_manager: Ed25519KeyManager, path: Path) -> None:
        self.key_manager = key_manager
        self.path        = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._lock:     threading.Lock          = threading.Lock()
        self._sequence: int                     = 0
        self._last:     Optional[EventEnvelope] = None

        self._restore_state()

    @property
    def next_sequence(self) -> int:
        return self._sequence

    def publish(self, record_type, market_id, round_id, tick, payload) -> None:
        self.emit(record_type, market_id, round_id, tick, payload)

    def emit(
        self,
        record_type: str,
        market_id:   str,
        round_id:    int,
        tick:        int,
        payload:     Dict[str, Any],
    ) -> EventEnvelope:
        """Append one signed envelope. Raises EventLogError on failure."""
        with self._lock:
            envelope = EventEnvelope.create(
                record_type=       record_type,
                market_id=         market_id,
                round_id=          round_id,
                tick=              tick,
                signer_public_key= self.key_manager.public_key_hex,
                sequence=          self._sequence,
                payload=           payload,
                prev=              self._last,
            ).sign(self.key_manager)

            if not envelope.verify_sequence(self._sequence) or not envelope.verify_chain(self._last):
                raise EventLogError(
                    "Chain invariant violated before write",
                    {"sequence": envelope.sequence},
                )

            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(envelope.to_dict()) + "\n")
            except OSError as exc:
                raise EventLogError("Event log write failed", {"path": str(self.path)}) from exc

            self._sequence += 1
            self._last      = envelope
            return envelope

    def _restore_state(self) -> None:
        if not self.path.exists():
            return

        last_line = None
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    last_line = line.strip()
        if last_line is None:
            return

        try:
            env = EventEnvelope.from_dict(json.loads(last_line))
        except (json.JSONDecodeError, KeyError) as exc:
            raise EventLogError(
                "Cannot resume event log: last line is corrupt",
                {"path": str(self.path)},
            ) from exc

        schema = env.validate_schema()
        if not schema:
            raise EventLogError(
                "Cannot resume event log: schema violation in last line",
                {"path": str(self.path), "errors": schema.errors},
            )

        self._sequence = env.sequence + 1
        self._last     = env
        logger.debug(f"resumed event log {self.path} at sequence {self._sequence}")
