from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Labels: mode (static/http), lock_mode (global/per_key)
LABEL_NAMES = ["mode", "lock_mode"]


class _NullCounter:
    def inc(self, amount=1):
        pass


class _NullGauge:
    def inc(self, amount=1):
        pass

    def dec(self, amount=1):
        pass

    def set(self, value):
        pass


class _NullHistogram:
    def observe(self, amount):
        pass


class NullMetrics:
    """No-op metrics (default for library use and testing)"""

    def __init__(self):
        self.fetch_calls = _NullCounter()
        self.fetch_failures = _NullCounter()
        self.fetch_duration = _NullHistogram()
        self.cache_hits = _NullCounter()
        self.cache_misses = _NullCounter()
        self.cache_size = _NullGauge()
        self.active_tasks = _NullGauge()
        self.keys_emitted = _NullCounter()


class Metrics:
    """Prometheus metrics wrapper

    Series are registered on ``registry``; pass a fresh ``CollectorRegistry``
    when more than one instance lives in the same process.
    """

    def __init__(
        self,
        mode: str,
        lock_mode: str,
        registry: CollectorRegistry = REGISTRY,
    ):
        labels = {"mode": mode, "lock_mode": lock_mode}

        self.fetch_calls = Counter(
            "linkcrawl_fetch_calls_total",
            "Underlying fetches issued through the cache",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.fetch_failures = Counter(
            "linkcrawl_fetch_failures_total",
            "Crawl tasks that ended with a fetch error",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.fetch_duration = Histogram(
            "linkcrawl_fetch_duration_seconds",
            "Underlying fetch duration",
            LABEL_NAMES,
            buckets=[0.001, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
            registry=registry,
        ).labels(**labels)
        self.cache_hits = Counter(
            "linkcrawl_cache_hits_total",
            "Result cache hits",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.cache_misses = Counter(
            "linkcrawl_cache_misses_total",
            "Result cache misses",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.cache_size = Gauge(
            "linkcrawl_cache_size",
            "Number of cached fetch results",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.active_tasks = Gauge(
            "linkcrawl_active_tasks",
            "Crawl tasks registered but not yet finished",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)
        self.keys_emitted = Counter(
            "linkcrawl_keys_emitted_total",
            "Keys written to the output stream",
            LABEL_NAMES,
            registry=registry,
        ).labels(**labels)


def start_metrics_server(port: int, registry: CollectorRegistry = REGISTRY):
    start_http_server(port, registry=registry)
