"""
latch/ledger/replay.py

Event log replay and verification.

    load()    JSONL → EventEnvelope.from_dict → validate_schema (fail fast)
    verify()  sequence, chain, nonce uniqueness and signatures; violations
              are collected, not raised
    rounds()  per-(market, round) summaries rebuilt from the payloads

All envelope checks delegate to EventEnvelope; this module computes no
hashes of its own.
"""

import json
from collections import defaultdict
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from latch.core.exceptions import EventLogError
from latch.ledger.events import EventEnvelope, RecordType


@dataclass
class ChainViolation:
    at_sequence:    int
    record_id:      str
    violation_type: str   # "sequence_gap" | "chain_break" | "duplicate_nonce" | "invalid_signature"
    detail:         str


@dataclass
class ReplaySummary:
    total_entries:      int
    chain_valid:        bool
    violations:         List[ChainViolation]
    valid_signatures:   int
    invalid_signatures: int
    record_type_counts: Dict[str, int]
    markets_seen:       List[str]
    signers_seen:       List[str]
    first_timestamp:    Optional[str]
    last_timestamp:     Optional[str]


@dataclass
class RoundReport:
    market_id:      str
    round_id:       int
    started_at:     Optional[int] = None
    commits:        int = 0
    reveals:        int = 0
    refunds:        int = 0
    claims:         int = 0
    settled:        bool = False
    clearing_price: Optional[str] = None
    buy_volume:     Optional[str] = None
    sell_volume:    Optional[str] = None
    protocol_fee:   Optional[str] = None
    solver:         Optional[str] = None
    emergency:      bool = False
    emergency_refunds: int = 0
    finalized:      bool = False

    @property
    def status(self) -> str:
        if self.finalized:
            return "finalized"
        if self.emergency:
            return "emergency"
        if self.settled:
            return "settled"
        return "open"

    def to_dict(self) -> Dict:
        d = asdict(self)
        d["status"] = self.status
        return d


class EventLogReplay:
    """
    Usage:
        replay = EventLogReplay()
        replay.load(Path("market.jsonl"))
        summary = replay.verify()
        reports = replay.rounds(market_id="eth-usdc")
    """

    def __init__(self) -> None:
        self.envelopes:  List[EventEnvelope]  = []
        self.violations: List[ChainViolation] = []
        self.path:       Optional[Path]       = None

    # ── Load ──────────────────────────────────────────────────

    def load(self, path: Path) -> None:
        """
        Raises:
            FileNotFoundError — log does not exist
            EventLogError     — malformed JSON, missing field or schema violation
        """
        path = Path(path)
        self.path       = path
        self.envelopes  = []
        self.violations = []

        if not path.exists():
            raise FileNotFoundError(f"Event log not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            for line_num, raw in enumerate(f, 1):
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    env = EventEnvelope.from_dict(json.loads(raw))
                except json.JSONDecodeError as exc:
                    raise EventLogError("Malformed JSON", {"line": line_num}) from exc
                except KeyError as exc:
                    raise EventLogError(
                        "Missing envelope field", {"line": line_num, "field": exc.args[0]}
                    ) from exc

                schema = env.validate_schema()
                if not schema:
                    raise EventLogError(
                        "Schema violation",
                        {"line": line_num, "errors": "; ".join(schema.errors)},
                    )
                self.envelopes.append(env)

    # ── Verify ────────────────────────────────────────────────

    def verify(self) -> ReplaySummary:
        self.violations = []
        seen_nonces: Set[str] = set()
        valid_sigs = 0

        for i, env in enumerate(self.envelopes):
            prev = self.envelopes[i - 1] if i > 0 else None

            if not env.verify_sequence(i):
                self._violation(env, "sequence_gap", f"Expected sequence {i}, got {env.sequence}")

            if not env.verify_chain(prev):
                expected = EventEnvelope.chain_hash(prev)
                self._violation(
                    env, "chain_break",
                    f"causal_hash mismatch: expected ...{expected[-12:]}, "
                    f"got ...{env.causal_hash[-12:]}",
                )

            if env.nonce in seen_nonces:
                self._violation(env, "duplicate_nonce", f"Duplicate nonce '{env.nonce}'")
            seen_nonces.add(env.nonce)

            if env.verify_signature():
                valid_sigs += 1
            else:
                self._violation(
                    env, "invalid_signature",
                    f"Signature invalid (signer: {env.signer_public_key[:16]}...)",
                )

        counts: Dict[str, int] = defaultdict(int)
        for env in self.envelopes:
            counts[env.record_type] += 1

        return ReplaySummary(
            total_entries=      len(self.envelopes),
            chain_valid=        not self.violations,
            violations=         list(self.violations),
            valid_signatures=   valid_sigs,
            invalid_signatures= len(self.envelopes) - valid_sigs,
            record_type_counts= dict(counts),
            markets_seen=       sorted({e.market_id for e in self.envelopes}),
            signers_seen=       sorted({e.signer_public_key for e in self.envelopes}),
            first_timestamp=    self.envelopes[0].timestamp if self.envelopes else None,
            last_timestamp=     self.envelopes[-1].timestamp if self.envelopes else None,
        )

    def _violation(self, env: EventEnvelope, kind: str, detail: str) -> None:
        self.violations.append(ChainViolation(
            at_sequence=    env.sequence,
            record_id=      env.record_id,
            violation_type= kind,
            detail=         detail,
        ))

    # ── Round reconstruction ──────────────────────────────────

    def rounds(self, market_id: Optional[str] = None) -> List[RoundReport]:
        reports: Dict[Tuple[str, int], RoundReport] = {}

        for env in self.envelopes:
            if env.round_id == 0:
                continue
            if market_id is not None and env.market_id != market_id:
                continue
            key = (env.market_id, env.round_id)
            report = reports.setdefault(key, RoundReport(env.market_id, env.round_id))
            p = env.payload

            if env.record_type == RecordType.ROUND_STARTED:
                report.started_at = env.tick
            elif env.record_type == RecordType.COMMITTED:
                report.commits += 1
            elif env.record_type == RecordType.ORDER_REVEALED:
                report.reveals += 1
            elif env.record_type == RecordType.REFUNDED:
                report.refunds += 1
            elif env.record_type == RecordType.CLAIMED:
                report.claims += 1
            elif env.record_type == RecordType.SETTLED:
                report.settled        = True
                report.clearing_price = p.get("clearing_price")
                report.buy_volume     = p.get("buy_volume")
                report.sell_volume    = p.get("sell_volume")
                report.protocol_fee   = p.get("protocol_fee")
                report.solver         = p.get("solver")
            elif env.record_type == RecordType.EMERGENCY_ACTIVATED:
                report.emergency = True
            elif env.record_type == RecordType.EMERGENCY_REFUNDED:
                report.emergency_refunds += 1
            elif env.record_type == RecordType.FINALIZED:
                report.finalized = True

        return [reports[k] for k in sorted(reports)]

    # ── Export ────────────────────────────────────────────────

    def export_json(self, output_path: Path) -> None:
        """Write the verification summary as a JSON report."""
        summary     = self.verify()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        report = {
            "latch_replay_report": {
                "log":                str(self.path or "in-memory"),
                "total_entries":      summary.total_entries,
                "chain_valid":        summary.chain_valid,
                "valid_signatures":   summary.valid_signatures,
                "invalid_signatures": summary.invalid_signatures,
                "record_type_counts": summary.record_type_counts,
                "markets_seen":       summary.markets_seen,
                "violations":         [asdict(v) for v in summary.violations],
                "rounds":             [r.to_dict() for r in self.rounds()],
            }
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
