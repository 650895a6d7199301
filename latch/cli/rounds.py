"""
latch/cli/rounds.py

latch rounds — per-round history rebuilt from an event log.

Usage:
    latch rounds <log>
    latch rounds <log> --market eth-usdc
    latch rounds <log> --format json

Exit codes:
    0  Report printed
    2  Error  (file missing, malformed log)
"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import click

from latch.cli._style import BAR_LIGHT, Color, emit_error, header
from latch.core.exceptions import EventLogError
from latch.ledger.replay import EventLogReplay, RoundReport


_STATUS_COLOR = {
    "finalized": Color.green,
    "settled":   Color.cyan,
    "emergency": Color.red,
    "open":      Color.yellow,
}


@click.command(name="rounds")
@click.argument("log", type=click.Path(exists=False))
@click.option(
    "--market",
    type=str,
    default=None,
    metavar="MARKET_ID",
    help="Show rounds of one market only.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
)
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI color output.")
def rounds_command(log: str, market: Optional[str], fmt: str, no_color: bool) -> None:
    """
    Summarize every round recorded in a market event log.

    The log is not verified here; run `latch verify` for that.
    """
    Color.configure(not no_color)

    replay = EventLogReplay()
    try:
        replay.load(Path(log))
    except (FileNotFoundError, EventLogError) as e:
        emit_error(str(e), fmt, False, "latch_rounds")
        sys.exit(2)

    reports = replay.rounds(market_id=market)

    if fmt == "json":
        click.echo(json.dumps({"latch_rounds": [r.to_dict() for r in reports]}, indent=2))
        return

    _output_human(Path(log), reports)


def _output_human(log_path: Path, reports: List[RoundReport]) -> None:
    header(f"Rounds  ·  {log_path.name}")

    if not reports:
        click.echo(Color.dim("  no rounds recorded"))
        click.echo()
        return

    click.echo(Color.dim(
        f"  {'market':<14} {'round':>5}  {'status':<10} {'commits':>7} {'reveals':>7}"
        f"  {'clearing price':<22} {'solver'}"
    ))
    click.echo(Color.dim(f"  {BAR_LIGHT}"))
    for r in reports:
        paint  = _STATUS_COLOR[r.status]
        status = paint(f"{r.status:<10}")
        click.echo(
            f"  {r.market_id:<14} {r.round_id:>5}  {status} {r.commits:>7} {r.reveals:>7}"
            f"  {r.clearing_price or '—':<22} {r.solver or '—'}"
        )
    click.echo()
