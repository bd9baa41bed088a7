from __future__ import annotations

import logging

from pybloom_live import BloomFilter

logger = logging.getLogger(__name__)


class VisitedTracker:
    """Keys already expanded during a run, for traversal dedup.

    Backed by a set, or by a BloomFilter when ``use_bloom_filter`` is set.
    A Bloom filter can report false positives (a key treated as visited that
    never was) and stops accepting keys at capacity.
    """

    def __init__(
        self,
        use_bloom_filter: bool = False,
        bloom_capacity: int = 100_000,
        bloom_error_rate: float = 0.01,
    ):
        if use_bloom_filter:
            self.seen: set[str] | BloomFilter = BloomFilter(
                capacity=bloom_capacity, error_rate=bloom_error_rate
            )
        else:
            self.seen = set()
        self._bloom_full_warned = False

    def __contains__(self, key: str) -> bool:
        return key in self.seen

    def __len__(self) -> int:
        return len(self.seen)

    def mark(self, key: str) -> bool:
        """Mark ``key`` visited. Returns False if it already was."""
        if key in self.seen:
            return False
        try:
            self.seen.add(key)
        except IndexError:
            # BloomFilter at capacity - warn once and treat as visited
            if not self._bloom_full_warned:
                logger.warning("BloomFilter at capacity, skipping new keys")
                self._bloom_full_warned = True
            return False
        return True
