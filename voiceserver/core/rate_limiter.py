"""
Per-client fixed-window rate limiting for inbound notifications.

Client identity comes from a request header and is trusted as-is; this is a
soft limit for a local, proxy-less deployment.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger("voiceserver.rate_limiter")


@dataclass
class RateRecord:
    """Request count for one client identity within the current window."""
    count: int
    reset_at: float


class RateLimiter:
    """
    Admit at most ``limit`` requests per ``window_seconds`` for each identity.

    A window starts at an identity's first request (or the first request after
    the previous window expired). ``max_identities`` bounds the record map:
    expired records are pruned first, then the oldest windows are evicted.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        max_identities: int = 10000,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self.max_identities = max_identities
        self.records: "OrderedDict[str, RateRecord]" = OrderedDict()

    def check(self, identity: str) -> bool:
        """Record a request from identity and return whether it is admitted."""
        now = self.clock()
        record = self.records.get(identity)

        if record is None or now >= record.reset_at:
            self.records[identity] = RateRecord(count=1, reset_at=now + self.window_seconds)
            # Newest window goes last so eviction drops the oldest first
            self.records.move_to_end(identity)
            self._evict(now)
            return True

        if record.count < self.limit:
            record.count += 1
            return True

        logger.debug(f"Rate limit hit for {identity} ({record.count}/{self.limit})")
        return False

    def _evict(self, now: float):
        if len(self.records) <= self.max_identities:
            return

        expired = [key for key, record in self.records.items() if now >= record.reset_at]
        for key in expired:
            del self.records[key]

        while len(self.records) > self.max_identities:
            key, _ = self.records.popitem(last=False)
            logger.debug(f"Evicted rate limit record for {key}")

    def __len__(self):
        return len(self.records)
