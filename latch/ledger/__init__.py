"""
Latch Ledger - asset custody and the signed market event log.
"""

from latch.ledger.assets import InMemoryAssetLedger
from latch.ledger.events import InMemoryEventSink, MarketEventLog, RecordType
from latch.ledger.replay import EventLogReplay

__all__ = [
    "InMemoryAssetLedger",
    "InMemoryEventSink",
    "MarketEventLog",
    "RecordType",
    "EventLogReplay",
]
