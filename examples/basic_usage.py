"""
Latch: Basic Usage Example

Demonstrates:
- Loading a market from YAML config
- One full round: commit, reveal, settle, claim
- Signed event log and replay verification
"""

import secrets
import tempfile
from pathlib import Path

from latch import (
    Asset,
    AttestationProver,
    AttestationVerifier,
    AuctionMarket,
    Ed25519KeyManager,
    EventLogReplay,
    InMemoryAssetLedger,
    ManualTicker,
    MarketEventLog,
    MarketModules,
    PublicClaims,
    commitment_hash,
    load_market_config,
)
from latch.commitments.ledger import required_deposit

E18    = 10 ** 18
ALICE  = "0x" + "a1" * 20
BOB    = "0x" + "b0" * 20
SOLVER = "0x" + "5a" * 20


def main():
    """Run the 0.9 clearing-price round end to end."""

    print("=" * 60)
    print("Latch: Basic Usage Example")
    print("=" * 60)
    print()

    # 1️⃣ Market from config
    print("1️⃣ Loading market config...")
    config = load_market_config(Path(__file__).parent / "market.yaml")

    prover   = AttestationProver(Ed25519KeyManager.generate())
    verifier = AttestationVerifier([prover.public_key_hex])
    assets   = InMemoryAssetLedger()
    ticker   = ManualTicker(100)
    workdir  = Path(tempfile.mkdtemp(prefix="latch-"))
    log      = MarketEventLog(Ed25519KeyManager.generate(), workdir / "eth-usdc.jsonl")

    market = AuctionMarket.from_config(
        config,
        verifier= verifier,
        assets=   assets,
        ticks=    ticker,
        modules=  MarketModules.full(config.settings, config.penalty_recipient),
        events=   log,
    )
    market.register_solver(config.admin, SOLVER, primary=True)

    for account in (ALICE, BOB):
        assets.mint(account, Asset.B, 1_000 * E18)
    assets.mint(SOLVER, Asset.A, 1_000 * E18)
    assets.approve(SOLVER, Asset.A, 1_000 * E18)
    print(f"  ✅ Market {market.market_id} (fee {config.pool.fee_rate} bps)")
    print()

    # 2️⃣ Commit
    print("2️⃣ Committing hidden orders...")
    round_id = market.start_round(config.admin)
    orders = [
        (ALICE, 100 * E18, E18,           True,  secrets.token_bytes(32)),
        (BOB,   100 * E18, 9 * E18 // 10, False, secrets.token_bytes(32)),
    ]
    for participant, amount, price, is_buy, salt in orders:
        deposit = required_deposit(amount, price, is_buy)
        market.commit(participant, commitment_hash(participant, amount, price, is_buy, salt), deposit)
        print(f"  📝 {participant[:10]}... deposited {deposit / E18:g} B")
    print()

    # 3️⃣ Reveal
    print("3️⃣ Revealing...")
    ticker.set(market.get_batch(round_id).commit_end)
    for participant, amount, price, is_buy, salt in orders:
        deposit = required_deposit(amount, price, is_buy)
        market.reveal(participant, amount, price, is_buy, salt, deposit)
    print(f"  ✅ Orders root: {hex(market.orders_root(round_id))[:18]}...")
    print()

    # 4️⃣ Settle at 0.9
    print("4️⃣ Settling at 0.9...")
    batch = market.get_batch(round_id)
    ticker.set(batch.reveal_end)
    claims = PublicClaims.build(
        round_id=       round_id,
        clearing_price= 9 * E18 // 10,
        buy_volume=     100 * E18,
        sell_volume=    100 * E18,
        orders_root=    market.orders_root(round_id),
        allowlist_root= batch.allowlist_root,
        fee_rate=       config.pool.fee_rate,
        fills=          [100 * E18, 100 * E18],
    ).to_list()
    summary = market.settle(SOLVER, prover.prove(claims), claims)
    print(f"  ✅ Protocol fee: {summary.protocol_fee / E18:g} A")
    print()

    # 5️⃣ Claim
    print("5️⃣ Claiming...")
    for account in (ALICE, BOB, SOLVER):
        c = market.claim(account, round_id)
        print(f"  💰 {account[:10]}... A={c.amount_a / E18:g} B={c.amount_b / E18:g}")
    print()

    # 6️⃣ Verify the event log
    print("6️⃣ Verifying event log...")
    replay = EventLogReplay()
    replay.load(log.path)
    result = replay.verify()
    print(f"  ✅ {result.total_entries} entries, chain valid: {result.chain_valid}")
    print(f"  ✅ Log: {log.path}")
    print()

    print("=" * 60)
    print("✅ Example complete!")
    print("=" * 60)
    print()
    print(f"Try: latch verify {log.path}")
    print(f"     latch rounds {log.path}")


if __name__ == "__main__":
    main()
