"""
Latch Market - the auction engine and the registry of markets.
"""

from latch.market.market import AuctionMarket, MarketModules
from latch.market.registry import MarketRegistry

__all__ = ["AuctionMarket", "MarketModules", "MarketRegistry"]
