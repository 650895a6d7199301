"""
tests/test_phase_clock.py

Phase derivation, tick source and round lifecycle (start / finalize).
"""

import pytest

from latch.core.clock import ManualTicker, phase_at, round_boundaries
from latch.core.exceptions import (
    ClaimWindowOpen,
    ConfigError,
    NotAdmin,
    PoolAlreadyConfigured,
    PoolNotConfigured,
    RoundAlreadyActive,
    RoundAlreadyFinalized,
    RoundNotFound,
    RoundNotSettled,
)
from latch.core.models import Batch, BatchPhase, PoolConfig, PoolMode
from latch.market.market import AuctionMarket

from support import ADMIN, ALICE, BOB, E18, SOLVER, TREASURY, make_order


def make_batch(**overrides) -> Batch:
    fields = dict(
        market_id=      "m",
        round_id=       1,
        start_tick=     0,
        commit_end=     10,
        reveal_end=     20,
        settle_end=     30,
        claim_end=      50,
        allowlist_root= 0,
        starter=        ADMIN,
    )
    fields.update(overrides)
    return Batch(**fields)


class TestManualTicker:

    def test_advance_and_set(self):
        t = ManualTicker(5)
        assert t.current_tick() == 5
        assert t.advance(3) == 8
        assert t.set(20) == 20

    def test_ticks_never_go_backwards(self):
        t = ManualTicker(10)
        with pytest.raises(ValueError):
            t.set(9)
        with pytest.raises(ValueError):
            t.advance(-1)

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            ManualTicker(-1)


class TestPhaseDerivation:

    def test_no_round_is_inactive(self):
        assert phase_at(None, 0) == BatchPhase.INACTIVE

    @pytest.mark.parametrize("tick,phase", [
        (0,   BatchPhase.COMMIT),
        (9,   BatchPhase.COMMIT),
        (10,  BatchPhase.REVEAL),
        (19,  BatchPhase.REVEAL),
        (20,  BatchPhase.SETTLE),
        (30,  BatchPhase.SETTLE),
        (500, BatchPhase.SETTLE),
    ])
    def test_unsettled_round_phases(self, tick, phase):
        assert phase_at(make_batch(), tick) == phase

    def test_unsettled_round_waits_in_settle_forever(self):
        """An unsettled round never reaches CLAIM on its own."""
        assert phase_at(make_batch(), 10 ** 9) == BatchPhase.SETTLE

    def test_settled_round_claim_then_finalized(self):
        batch = make_batch(settled=True)
        assert phase_at(batch, 25) == BatchPhase.CLAIM
        assert phase_at(batch, 49) == BatchPhase.CLAIM
        assert phase_at(batch, 50) == BatchPhase.FINALIZED

    def test_finalized_flag_wins(self):
        batch = make_batch(settled=True, finalized=True)
        assert phase_at(batch, 0) == BatchPhase.FINALIZED

    def test_phase_is_monotone_in_tick(self):
        for batch in (make_batch(), make_batch(settled=True)):
            phases = [phase_at(batch, t) for t in range(0, 80)]
            assert phases == sorted(phases)

    def test_boundaries_are_cumulative(self, pool):
        b = round_boundaries(100, pool)
        assert (b.start_tick, b.commit_end, b.reveal_end, b.settle_end, b.claim_end) == (
            100, 110, 120, 130, 150,
        )


class TestPoolConfiguration:

    def test_pool_is_set_once(self, market, pool):
        with pytest.raises(PoolAlreadyConfigured):
            market.configure_pool(ADMIN, pool)

    def test_only_admin_configures(self, settings, verifier, assets, ticker, pool):
        m = AuctionMarket("m", ADMIN, TREASURY, verifier, assets, ticker, settings)
        with pytest.raises(NotAdmin):
            m.configure_pool(ALICE, pool)
        assert m.pool_config is None

    @pytest.mark.parametrize("overrides", [
        {"commit_duration": 0},
        {"settle_duration": 100_001},
        {"fee_rate": 1_001},
        {"mode": PoolMode.GATED, "allowlist_root": 0},
    ])
    def test_invalid_pool_rejected(self, settings, verifier, assets, ticker, overrides):
        fields = dict(
            mode=PoolMode.OPEN, commit_duration=10, reveal_duration=10,
            settle_duration=10, claim_duration=10, fee_rate=30,
        )
        fields.update(overrides)
        m = AuctionMarket("m", ADMIN, TREASURY, verifier, assets, ticker, settings)
        with pytest.raises(ConfigError):
            m.configure_pool(ADMIN, PoolConfig(**fields))

    def test_start_requires_pool(self, settings, verifier, assets, ticker):
        m = AuctionMarket("m", ADMIN, TREASURY, verifier, assets, ticker, settings)
        with pytest.raises(PoolNotConfigured):
            m.start_round(ADMIN)


class TestRoundLifecycle:

    def test_start_stamps_boundaries(self, driver, market):
        round_id = driver.start()
        batch = market.get_batch(round_id)
        assert round_id == 1
        assert (batch.commit_end, batch.reveal_end, batch.settle_end, batch.claim_end) == (
            110, 120, 130, 150,
        )
        assert batch.starter == ADMIN
        assert market.current_phase() == BatchPhase.COMMIT

    def test_second_round_rejected_while_active(self, driver, market, ticker):
        driver.start()
        with pytest.raises(RoundAlreadyActive):
            market.start_round(ADMIN)
        ticker.set(10_000)
        with pytest.raises(RoundAlreadyActive):
            market.start_round(ADMIN)

    def test_phase_tracks_ticks(self, driver, market):
        driver.start()
        assert market.current_phase() == BatchPhase.COMMIT
        driver.to_reveal()
        assert market.current_phase() == BatchPhase.REVEAL
        driver.to_settle()
        assert market.current_phase() == BatchPhase.SETTLE

    def test_next_round_after_finalized(self, driver, market):
        buy  = make_order(ALICE, 10 * E18, E18, True)
        sell = make_order(BOB, 10 * E18, E18, False)
        driver.start()
        driver.run_orders([buy, sell])
        driver.settle(SOLVER, driver.claims(E18, [10 * E18, 10 * E18]))
        assert market.current_phase() == BatchPhase.CLAIM

        with pytest.raises(RoundAlreadyActive):
            market.start_round(ADMIN)

        driver.to_claim_end()
        assert market.current_phase() == BatchPhase.FINALIZED
        assert market.start_round(ADMIN) == 2
        assert market.get_batch(1).round_id == 1

    def test_finalize_rules(self, driver, market):
        buy  = make_order(ALICE, 10 * E18, E18, True)
        sell = make_order(BOB, 10 * E18, E18, False)
        driver.start()
        with pytest.raises(RoundNotSettled):
            market.finalize(1)

        driver.run_orders([buy, sell])
        driver.settle(SOLVER, driver.claims(E18, [10 * E18, 10 * E18]))
        with pytest.raises(ClaimWindowOpen):
            market.finalize(1)

        driver.to_claim_end()
        market.finalize(1)
        assert market.get_batch(1).finalized
        assert market.phase_of(1) == BatchPhase.FINALIZED
        assert market.orders_root(1) == 0

        with pytest.raises(RoundAlreadyFinalized):
            market.finalize(1)

    def test_finalize_unknown_round(self, market):
        with pytest.raises(RoundNotFound):
            market.finalize(7)
