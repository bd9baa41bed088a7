import asyncio

import pytest

from linkcrawl.cache import CachedFetcher, ResultCache
from linkcrawl.datasets import GO_TOUR_PAGES
from linkcrawl.exceptions import FetchTransportError
from linkcrawl.fetcher import FetchResult, StaticFetcher

A = "http://example.com/a"
B = "http://example.com/b"
C = "http://example.com/c"


@pytest.fixture
def abc_pages():
    """A → [B, C], B → [A], C → []"""
    return {
        A: FetchResult("page a", (B, C)),
        B: FetchResult("page b", (A,)),
        C: FetchResult("page c", ()),
    }


@pytest.fixture
def go_pages():
    return dict(GO_TOUR_PAGES)


@pytest.fixture
def abc_fetcher(abc_pages):
    return StaticFetcher(abc_pages)


@pytest.fixture
def cached(abc_fetcher):
    return CachedFetcher(abc_fetcher, ResultCache())


class FlakyFetcher:
    """Fails the first ``failures`` calls per key, then delegates."""

    def __init__(self, inner, failures: int = 1):
        self.inner = inner
        self.failures = failures
        self.attempts: dict[str, int] = {}

    async def fetch(self, key):
        self.attempts[key] = self.attempts.get(key, 0) + 1
        if self.attempts[key] <= self.failures:
            raise FetchTransportError(key, ConnectionError("connection reset"))
        return await self.inner.fetch(key)


class ConcurrencyTracker:
    """Fetcher that records how many fetches ran at the same time."""

    def __init__(self, pages, delay: float = 0.02):
        self.pages = pages
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, key):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self.pages[key]
        finally:
            self.in_flight -= 1

