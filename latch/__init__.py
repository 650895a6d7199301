"""
latch/__init__.py

Latch: Sealed-Bid Batch Auctions with Verified Settlement

Participants commit hidden orders, reveal them, and a solver settles
each round at a single clearing price backed by a proof over public
claims. Every state change is published as a signed, hash-chained
event.

    market = AuctionMarket(market_id, admin, penalty_recipient,
                           verifier, assets, ticks)
    market.configure_pool(admin, pool)
    round_id = market.start_round(admin)
    market.commit(...); market.reveal(...); market.settle(...)
    market.claim(account, round_id)
"""

__version__     = "0.1.0"
__log_version__ = "1.0"

from latch.core.clock import ManualTicker
from latch.core.config import EngineSettings, MarketConfig, load_market_config
from latch.core.crypto import Ed25519KeyManager
from latch.core.exceptions import LatchError
from latch.core.hashing import commitment_hash
from latch.core.models import Asset, BatchPhase, PoolConfig, PoolMode
from latch.ledger.assets import InMemoryAssetLedger
from latch.ledger.events import InMemoryEventSink, MarketEventLog, RecordType
from latch.ledger.replay import EventLogReplay
from latch.market.market import AuctionMarket, MarketModules
from latch.market.registry import MarketRegistry
from latch.settlement.claims import PublicClaims
from latch.verification.verifier import AttestationProver, AttestationVerifier

__all__ = [
    # Engine
    "AuctionMarket",
    "MarketModules",
    "MarketRegistry",
    # Model
    "Asset",
    "BatchPhase",
    "PoolConfig",
    "PoolMode",
    "PublicClaims",
    # Configuration
    "EngineSettings",
    "MarketConfig",
    "load_market_config",
    # Infrastructure
    "ManualTicker",
    "InMemoryAssetLedger",
    "InMemoryEventSink",
    "MarketEventLog",
    "EventLogReplay",
    "RecordType",
    "Ed25519KeyManager",
    "AttestationProver",
    "AttestationVerifier",
    # Helpers
    "commitment_hash",
    # Errors
    "LatchError",
]
