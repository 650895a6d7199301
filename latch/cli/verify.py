"""
latch/cli/verify.py

latch verify — Market Event Log Verification
============================================

Usage:
    latch verify <log>                         Human output (default)
    latch verify <log> --format json           Machine-readable JSON
    latch verify <log> --format compact        One-line pipeline output
    latch verify <log> --export report.json    Export full replay report
    latch verify <log> --market eth-usdc       Report one market only
    latch verify <log> --round 3               Report one round only
    latch verify <log> --quiet                 Exit code only
    latch verify <log> --no-color              Disable ANSI

The chain is always verified over the whole log; --market and --round
only narrow which violations and counts are reported.

Exit codes:
    0  Log fully valid  (sequence + chain + nonces + signatures)
    1  Log has violations
    2  Error  (file missing, malformed JSON, schema violation)
"""

import json
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

import click

from latch.cli._style import (
    BAR_HEAVY,
    BAR_LIGHT,
    Color,
    emit_error,
    header,
    row_fail,
    row_info,
    row_ok,
)
from latch.core.exceptions import EventLogError
from latch.ledger.events import EventEnvelope
from latch.ledger.replay import ChainViolation, EventLogReplay, ReplaySummary


@click.command(name="verify")
@click.argument("log", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json", "compact"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default), json (CI/automation), compact (pipelines).",
)
@click.option(
    "--export",
    "export_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help="Export the full replay report to a JSON file.",
)
@click.option(
    "--market",
    type=str,
    default=None,
    metavar="MARKET_ID",
    help="Report only entries of one market.",
)
@click.option(
    "--round", "round_id",
    type=click.IntRange(min=1),
    default=None,
    metavar="N",
    help="Report only entries of one round.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable ANSI color output.",
)
def verify_command(
    log:         str,
    fmt:         str,
    export_path: Optional[str],
    market:      Optional[str],
    round_id:    Optional[int],
    quiet:       bool,
    no_color:    bool,
) -> None:
    """
    Verify a market event log: sequence, chain, nonces, signatures.

    LOG is the path to a .jsonl event log written by MarketEventLog.

    \b
    Examples:
      latch verify market.jsonl
      latch verify market.jsonl --format json
      latch verify market.jsonl --market eth-usdc --round 3
      latch verify market.jsonl --quiet && echo "clean"
    """
    Color.configure(not no_color)
    log_path = Path(log)

    if not log_path.exists():
        emit_error(f"Event log not found: {log}", fmt, quiet, "latch_verify")
        sys.exit(2)

    replay  = EventLogReplay()
    t_start = time.perf_counter()

    try:
        replay.load(log_path)
    except (FileNotFoundError, EventLogError) as e:
        emit_error(str(e), fmt, quiet, "latch_verify")
        sys.exit(2)

    summary   = replay.verify()
    t_elapsed = time.perf_counter() - t_start

    # Head hash always covers the full, unfiltered log.
    head_hash = EventEnvelope.chain_hash(replay.envelopes[-1]) if replay.envelopes else None

    selected   = _select(replay.envelopes, market, round_id)
    in_scope   = {e.sequence for e in selected}
    filtered   = len(selected) != len(replay.envelopes)
    violations = [v for v in summary.violations if v.at_sequence in in_scope]
    log_valid  = not violations

    if export_path:
        try:
            replay.export_json(Path(export_path))
        except OSError as e:
            if not quiet and fmt == "human":
                click.echo(Color.yellow(f"\n  ⚠️   Export failed: {e}"), err=True)

    if quiet:
        sys.exit(0 if log_valid else 1)

    scope = _scope_note(market, round_id)

    if fmt == "json":
        _output_json(summary, log_path, selected, violations, scope, head_hash, t_elapsed, log_valid)
    elif fmt == "compact":
        _output_compact(log_path, selected, violations, t_elapsed, log_valid)
    else:
        _output_human(
            summary, log_path, selected, violations, scope, filtered,
            export_path, head_hash, t_elapsed, log_valid,
        )

    sys.exit(0 if log_valid else 1)


def _select(
    envelopes: List[EventEnvelope],
    market:    Optional[str],
    round_id:  Optional[int],
) -> List[EventEnvelope]:
    selected = envelopes
    if market is not None:
        selected = [e for e in selected if e.market_id == market]
    if round_id is not None:
        selected = [e for e in selected if e.round_id == round_id]
    return selected


def _scope_note(market: Optional[str], round_id: Optional[int]) -> str:
    parts = []
    if market is not None:
        parts.append(f"market={market}")
    if round_id is not None:
        parts.append(f"round={round_id}")
    return "  ".join(parts)


def _type_counts(envelopes: List[EventEnvelope]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for env in envelopes:
        counts[env.record_type] = counts.get(env.record_type, 0) + 1
    return counts


# ── Human output ──────────────────────────────────────────────────────────────

def _output_human(
    summary:     ReplaySummary,
    log_path:    Path,
    selected:    List[EventEnvelope],
    violations:  List[ChainViolation],
    scope:       str,
    filtered:    bool,
    export_path: Optional[str],
    head_hash:   Optional[str],
    elapsed:     float,
    log_valid:   bool,
) -> None:
    header("Market Event Log Verification")

    click.echo(row_info("Log", str(log_path)))
    click.echo(row_info(
        "Entries",
        f"{len(selected):,}" + (f"  of {summary.total_entries:,} total" if filtered else ""),
    ))
    click.echo(row_info("Markets", ", ".join(summary.markets_seen) or "—"))
    click.echo(row_info("Signers", str(len(summary.signers_seen))))
    if filtered:
        click.echo(row_info("Filter", scope))
    click.echo()

    by_type: Dict[str, List[ChainViolation]] = {}
    for v in violations:
        by_type.setdefault(v.violation_type, []).append(v)

    checks = [
        ("Sequence",   "sequence_gap",      "gap-free"),
        ("Chain",      "chain_break",       "intact, all causal hashes valid"),
        ("Nonces",     "duplicate_nonce",   "unique"),
        ("Signatures", "invalid_signature", f"{len(selected):,} / {len(selected):,} valid"),
    ]
    for label, kind, ok_text in checks:
        found = by_type.get(kind, [])
        if found:
            click.echo(row_fail(label, Color.red(f"{len(found)} violation(s)")))
        else:
            click.echo(row_ok(label, ok_text))

    click.echo()
    for record_type, count in sorted(_type_counts(selected).items()):
        click.echo(row_info(record_type, f"{count:,}"))

    if head_hash:
        click.echo()
        click.echo(row_info("Head hash", head_hash))
    if export_path:
        click.echo(row_info("Exported", export_path))
    click.echo(row_info("Elapsed", f"{elapsed:.3f}s"))

    if violations:
        click.echo()
        click.echo(Color.dim(f"  {BAR_LIGHT}"))
        for v in violations[:20]:
            click.echo(
                f"  {Color.red(v.violation_type):<20}  seq={v.at_sequence:<6}  {v.detail}"
            )
        if len(violations) > 20:
            click.echo(Color.dim(f"  ... {len(violations) - 20} more"))

    click.echo()
    click.echo(Color.bold(f"  {BAR_HEAVY}"))
    if log_valid:
        click.echo(Color.green(Color.bold("  VERDICT: VALID")))
    else:
        click.echo(Color.red(Color.bold(f"  VERDICT: INVALID ({len(violations)} violation(s))")))
    click.echo(Color.bold(f"  {BAR_HEAVY}"))
    click.echo()


# ── JSON output ───────────────────────────────────────────────────────────────

def _output_json(
    summary:    ReplaySummary,
    log_path:   Path,
    selected:   List[EventEnvelope],
    violations: List[ChainViolation],
    scope:      str,
    head_hash:  Optional[str],
    elapsed:    float,
    log_valid:  bool,
) -> None:
    out = {
        "latch_verify": {
            "log":                str(log_path),
            "valid":              log_valid,
            "scope":              scope or None,
            "total_entries":      summary.total_entries,
            "entries_in_scope":   len(selected),
            "markets_seen":       summary.markets_seen,
            "signers_seen":       summary.signers_seen,
            "record_type_counts": _type_counts(selected),
            "violations":         [asdict(v) for v in violations],
            "head_hash":          head_hash,
            "first_timestamp":    summary.first_timestamp,
            "last_timestamp":     summary.last_timestamp,
            "elapsed_seconds":    round(elapsed, 4),
        }
    }
    click.echo(json.dumps(out, indent=2))


# ── Compact output ────────────────────────────────────────────────────────────

def _output_compact(
    log_path:   Path,
    selected:   List[EventEnvelope],
    violations: List[ChainViolation],
    elapsed:    float,
    log_valid:  bool,
) -> None:
    status = "VALID" if log_valid else "INVALID"
    click.echo(
        f"{status} {log_path} entries={len(selected)} "
        f"violations={len(violations)} t={elapsed:.3f}s"
    )
