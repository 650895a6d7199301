"""
tests/conftest.py

Fixtures shared across the suite. Every test gets fresh keys, a fresh
tick source, a fresh asset ledger and a fresh market.
"""

import pytest

from latch.core.clock import ManualTicker
from latch.core.config import EngineSettings
from latch.core.crypto import Ed25519KeyManager
from latch.core.models import PoolConfig, PoolMode
from latch.ledger.assets import InMemoryAssetLedger
from latch.ledger.events import InMemoryEventSink
from latch.market.market import AuctionMarket, MarketModules
from latch.verification.verifier import AttestationProver, AttestationVerifier

from support import ADMIN, SOLVER, TREASURY, AuctionDriver, fund, fund_solver


@pytest.fixture
def key():
    """A fresh Ed25519 key manager for each test."""
    return Ed25519KeyManager.generate()


@pytest.fixture
def prover():
    return AttestationProver(Ed25519KeyManager.generate())


@pytest.fixture
def verifier(prover):
    return AttestationVerifier([prover.public_key_hex])


@pytest.fixture
def ticker():
    return ManualTicker(100)


@pytest.fixture
def assets():
    ledger = InMemoryAssetLedger()
    fund(ledger, accounts=[ADMIN])
    fund(ledger)
    fund_solver(ledger)
    return ledger


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def pool():
    return PoolConfig(
        mode=            PoolMode.OPEN,
        commit_duration= 10,
        reveal_duration= 10,
        settle_duration= 10,
        claim_duration=  20,
        fee_rate=        30,
    )


@pytest.fixture
def events():
    return InMemoryEventSink()


@pytest.fixture
def market(settings, pool, verifier, assets, ticker, events):
    """Market with every optional module installed and SOLVER as primary."""
    m = AuctionMarket(
        market_id=         "eth-usdc",
        admin=             ADMIN,
        penalty_recipient= TREASURY,
        verifier=          verifier,
        assets=            assets,
        ticks=             ticker,
        settings=          settings,
        modules=           MarketModules.full(settings, TREASURY),
        events=            events,
    )
    m.configure_pool(ADMIN, pool)
    m.register_solver(ADMIN, SOLVER, primary=True)
    return m


@pytest.fixture
def minimal_market(settings, pool, verifier, assets, ticker, events):
    """Market with the no-op defaults for every optional module."""
    m = AuctionMarket(
        market_id=         "eth-usdc",
        admin=             ADMIN,
        penalty_recipient= TREASURY,
        verifier=          verifier,
        assets=            assets,
        ticks=             ticker,
        settings=          settings,
        events=            events,
    )
    m.configure_pool(ADMIN, pool)
    return m


@pytest.fixture
def driver(market, ticker, prover):
    return AuctionDriver(market, ticker, prover)


@pytest.fixture
def minimal_driver(minimal_market, ticker, prover):
    return AuctionDriver(minimal_market, ticker, prover)
