"""
Cache Module - fetch 結果快取

ResultCache 保證：同一個 key 在快取的生命週期內，最多只會對底層
fetcher 發出一次成功的 fetch。lock 在 fetch 期間持續持有，
所以併發的第一次請求不會重複抓取。

兩種 lock 模式：
1. global - 單一 lock，所有 fetch 串行
2. per_key - 每個 key 一個 lock，不同 key 可以並行抓取
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from linkcrawl.exceptions import CacheContentionError
from linkcrawl.metrics import NullMetrics

if TYPE_CHECKING:
    from linkcrawl.fetcher import Fetcher, FetchResult
    from linkcrawl.metrics import Metrics

logger = logging.getLogger(__name__)

LOCK_MODES = ("global", "per_key")


class ResultCache:
    """Fetch results keyed by identifier, with no eviction."""

    def __init__(
        self,
        lock_mode: str = "global",
        lock_timeout: float | None = None,
        *,
        metrics: Metrics | NullMetrics | None = None,
    ):
        if lock_mode not in LOCK_MODES:
            raise ValueError(f"lock_mode must be one of {LOCK_MODES}, got {lock_mode!r}")
        if lock_timeout is not None and lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")

        self.lock_mode = lock_mode
        self._lock_timeout = lock_timeout
        self._metrics = metrics if metrics is not None else NullMetrics()

        self._results: dict[str, FetchResult] = {}

        # global 模式只用 _lock；per_key 模式的 _lock 只保護 _key_locks 的建立
        self._lock = asyncio.Lock()
        self._key_locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: str) -> bool:
        return key in self._results

    def get(self, key: str) -> FetchResult | None:
        """Peek at a cached result without fetching."""
        return self._results.get(key)

    async def get_or_fetch(self, key: str, fetcher: Fetcher) -> FetchResult:
        """Return the cached result for ``key``, fetching it through ``fetcher`` on a miss.

        A failed fetch is not stored and its error propagates; the next
        request for the same key tries the fetcher again.
        """
        if self.lock_mode == "per_key":
            lock = await self._key_lock(key)
        else:
            lock = self._lock

        await self._acquire(lock, key)
        try:
            return await self._lookup_or_fetch(key, fetcher)
        finally:
            lock.release()

    async def _key_lock(self, key: str) -> asyncio.Lock:
        async with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._key_locks[key] = lock
            return lock

    async def _acquire(self, lock: asyncio.Lock, key: str) -> None:
        if self._lock_timeout is None:
            await lock.acquire()
            return
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError:
            raise CacheContentionError(key, self._lock_timeout) from None

    async def _lookup_or_fetch(self, key: str, fetcher: Fetcher) -> FetchResult:
        result = self._results.get(key)
        if result is not None:
            logger.debug("Cache hit: %s", key)
            self._metrics.cache_hits.inc()
            return result

        logger.debug("Cache miss: %s", key)
        self._metrics.cache_misses.inc()
        self._metrics.fetch_calls.inc()

        start = time.monotonic()
        try:
            result = await fetcher.fetch(key)
        finally:
            self._metrics.fetch_duration.observe(time.monotonic() - start)

        self._results[key] = result
        self._metrics.cache_size.set(len(self._results))
        return result


class CachedFetcher:
    """Fetcher decorator that routes every fetch through a ResultCache.

    Usage:
        fetcher = CachedFetcher(StaticFetcher(pages), ResultCache())
        result = await fetcher.fetch(key)
    """

    def __init__(self, inner: Fetcher, cache: ResultCache):
        self.inner = inner
        self.cache = cache

    async def fetch(self, key: str) -> FetchResult:
        return await self.cache.get_or_fetch(key, self.inner)
