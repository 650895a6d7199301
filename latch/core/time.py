"""
latch/core/time.py

Wall-clock timestamps for persisted event envelopes.

Engine logic never reads wall-clock time; it runs on ticks supplied by a
TickSource (latch/core/clock.py). This function only stamps log records.

Wire format: YYYY-MM-DDTHH:MM:SS.mmmZ
"""

import re
from datetime import datetime, timezone

TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def log_timestamp() -> str:
    """
    Return current UTC time in envelope wire format.
    Format: YYYY-MM-DDTHH:MM:SS.mmmZ  (exactly 3 fractional digits, Z suffix)
    """
    now = datetime.now(timezone.utc)
    ms  = now.microsecond // 1000
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms:03d}Z"
