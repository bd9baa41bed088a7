"""Exceptions raised by the crawler, the cache and the output stream."""


class CrawlError(Exception):
    """Base class for linkcrawl errors."""


class FetchError(CrawlError):
    """Raised when a key cannot be fetched. Never fatal to a crawl run."""

    def __init__(self, key: str, reason: str = "fetch failed"):
        self.key = key
        self.reason = reason
        super().__init__(f"{reason}: {key}")


class FetchNotFoundError(FetchError):
    """Raised when the fetcher has no content or links for a key."""

    def __init__(self, key: str):
        super().__init__(key, "Not found")


class FetchTransportError(FetchError):
    """Raised when the underlying data source is unavailable."""

    def __init__(self, key: str, original: Exception | None = None):
        self.original = original
        reason = f"Transport failure ({original})" if original else "Transport failure"
        super().__init__(key, reason)


class CacheContentionError(FetchError):
    """Raised when a cache lock cannot be acquired within the configured bound."""

    def __init__(self, key: str, timeout: float):
        self.timeout = timeout
        super().__init__(key, f"Cache lock not acquired within {timeout}s")


class StreamClosedError(CrawlError):
    """Raised on writes to, or reads past, a closed output stream."""
