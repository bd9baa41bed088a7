"""
Depth-bounded concurrent link crawler with an at-most-once fetch cache.
"""
from linkcrawl.cache import CachedFetcher, ResultCache
from linkcrawl.coordinator import CompletionCoordinator
from linkcrawl.crawler import Crawler, CrawlStats, TaskState, collect, crawl
from linkcrawl.exceptions import (
    CacheContentionError,
    CrawlError,
    FetchError,
    FetchNotFoundError,
    FetchTransportError,
    StreamClosedError,
)
from linkcrawl.fetcher import Fetcher, FetchResult, HttpFetcher, StaticFetcher
from linkcrawl.stream import OutputStream
from linkcrawl.visited import VisitedTracker

__version__ = "1.0.0"
__all__ = [
    "CachedFetcher",
    "CacheContentionError",
    "CompletionCoordinator",
    "CrawlError",
    "Crawler",
    "CrawlStats",
    "Fetcher",
    "FetchError",
    "FetchNotFoundError",
    "FetchResult",
    "FetchTransportError",
    "HttpFetcher",
    "OutputStream",
    "ResultCache",
    "StaticFetcher",
    "StreamClosedError",
    "TaskState",
    "VisitedTracker",
    "collect",
    "crawl",
]
