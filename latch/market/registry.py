"""
latch/market/registry.py

MarketRegistry — many independent markets keyed by market id.

Markets never share per-round state. They may share a tick source, an
asset ledger and an event sink; every event carries its market id.
"""

import logging
from typing import Dict, Iterator, List, Optional

from latch.commitments.allowlist import MembershipVerifier
from latch.core.clock import TickSource
from latch.core.config import MarketConfig
from latch.core.exceptions import MarketAlreadyExists, MarketNotFound
from latch.ledger.assets import AssetLedger
from latch.ledger.events import EventSink
from latch.market.market import AuctionMarket, MarketModules
from latch.verification.verifier import ProofVerifier

logger = logging.getLogger(__name__)


class MarketRegistry:

    def __init__(self) -> None:
        self._markets: Dict[str, AuctionMarket] = {}

    def add(self, market: AuctionMarket) -> AuctionMarket:
        if market.market_id in self._markets:
            raise MarketAlreadyExists(market.market_id)
        self._markets[market.market_id] = market
        logger.info(f"market {market.market_id} registered")
        return market

    def create(
        self,
        config:     MarketConfig,
        verifier:   ProofVerifier,
        assets:     AssetLedger,
        ticks:      TickSource,
        modules:    Optional[MarketModules] = None,
        membership: Optional[MembershipVerifier] = None,
        events:     Optional[EventSink] = None,
    ) -> AuctionMarket:
        """Build a market from config and register it."""
        if config.market_id in self._markets:
            raise MarketAlreadyExists(config.market_id)
        return self.add(AuctionMarket.from_config(
            config,
            verifier=   verifier,
            assets=     assets,
            ticks=      ticks,
            modules=    modules,
            membership= membership,
            events=     events,
        ))

    def get(self, market_id: str) -> AuctionMarket:
        market = self._markets.get(market_id)
        if market is None:
            raise MarketNotFound(market_id)
        return market

    def market_ids(self) -> List[str]:
        return sorted(self._markets)

    def __contains__(self, market_id: str) -> bool:
        return market_id in self._markets

    def __iter__(self) -> Iterator[AuctionMarket]:
        return iter(self._markets[m] for m in self.market_ids())

    def __len__(self) -> int:
        return len(self._markets)
