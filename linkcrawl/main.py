"""
linkcrawl CLI

執行方式：
    uv run linkcrawl --depth 4
    uv run linkcrawl https://go.dev/ --live --depth 2 --per-key-locks
"""

import asyncio
import logging
import signal
from typing import Annotated

import typer
from prometheus_client import CollectorRegistry

from linkcrawl.cache import CachedFetcher, ResultCache
from linkcrawl.config import Config
from linkcrawl.crawler import Crawler, CrawlStats, close_stream_on_failure
from linkcrawl.datasets import GO_TOUR_PAGES, GO_TOUR_ROOT, load_dataset
from linkcrawl.fetcher import FetchResult, HttpFetcher, StaticFetcher
from linkcrawl.metrics import Metrics, NullMetrics, start_metrics_server
from linkcrawl.stream import OutputStream
from linkcrawl.visited import VisitedTracker

app = typer.Typer(help="Depth-bounded concurrent link crawler")

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def print_config(config: Config) -> None:
    print(f"=== Crawler Config ({config.mode.upper()}) ===")
    print(f"Root: {config.root_url}")
    print(f"MaxDepth: {config.max_depth}")
    if not config.live:
        print(f"Dataset: {config.dataset_file or 'go tour (built-in)'}, Delay: {config.simulation_delay_ms}ms")
    print(f"Cache: lock_mode={config.lock_mode}, lock_timeout={config.lock_timeout}")
    print(f"Options: dedup_traversal={config.dedup_traversal}, bloom={config.use_bloom_filter}")
    print("=" * 35 + "\n")


async def run(
    config: Config,
    pages: dict[str, FetchResult] | None = None,
    metrics: Metrics | NullMetrics | None = None,
) -> tuple[CrawlStats, int]:
    """Crawl per ``config``, printing each visited key. Returns (stats, cache size)."""
    metrics = metrics if metrics is not None else NullMetrics()

    if config.live:
        source = HttpFetcher(timeout=config.request_timeout)
    else:
        source = StaticFetcher(
            pages if pages is not None else GO_TOUR_PAGES,
            delay_ms=config.simulation_delay_ms,
        )

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    handled: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows, or not running in the main thread
            break
        handled.append(sig)

    visited = None
    if config.dedup_traversal:
        visited = VisitedTracker(
            use_bloom_filter=config.use_bloom_filter,
            bloom_capacity=config.bloom_capacity,
            bloom_error_rate=config.bloom_error_rate,
        )

    try:
        async with source as inner:
            cache = ResultCache(config.lock_mode, config.lock_timeout, metrics=metrics)
            stream = OutputStream(config.stream_maxsize)
            crawler = Crawler(
                CachedFetcher(inner, cache),
                stream,
                metrics=metrics,
                cancel_event=cancel_event,
                visited=visited,
            )

            task = asyncio.create_task(crawler.run(config.root_url, config.max_depth))
            close_stream_on_failure(task, stream)
            async for url in stream:
                print(f"Visited URL: {url}")
            stats = await task
    finally:
        for sig in handled:
            loop.remove_signal_handler(sig)

    if cancel_event.is_set():
        logger.warning("Crawl interrupted, %d tasks skipped their fetch", stats.cancelled)
    return stats, len(cache)


@app.command()
def main(
    root: Annotated[str, typer.Argument(help="Root URL to start from")] = GO_TOUR_ROOT,
    depth: Annotated[int, typer.Option(help="Maximum crawl depth")] = 4,
    dataset: Annotated[
        str | None, typer.Option(help="JSON dataset file (default: built-in go tour)")
    ] = None,
    live: Annotated[bool, typer.Option(help="Fetch over HTTP instead of a dataset")] = False,
    timeout: Annotated[float, typer.Option(help="HTTP request timeout in seconds")] = 10.0,
    delay_ms: Annotated[int, typer.Option(help="Simulated fetch delay in milliseconds")] = 0,
    per_key_locks: Annotated[
        bool, typer.Option(help="One cache lock per key instead of a global lock")
    ] = False,
    lock_timeout: Annotated[
        float | None, typer.Option(help="Seconds to wait for a cache lock")
    ] = None,
    dedup_traversal: Annotated[
        bool, typer.Option(help="Expand each key at most once per run")
    ] = False,
    bloom: Annotated[
        bool, typer.Option(help="Use Bloom Filter for traversal dedup")
    ] = False,
    stream_size: Annotated[
        int, typer.Option(help="Output stream buffer size (0 = unbounded)")
    ] = 0,
    metrics_port: Annotated[
        int | None, typer.Option(help="Expose Prometheus metrics on this port")
    ] = None,
    log_level: Annotated[str, typer.Option(help="Logging level")] = "WARNING",
):
    try:
        config = Config(
            root_url=root,
            max_depth=depth,
            dataset_file=dataset,
            live=live,
            request_timeout=timeout,
            simulation_delay_ms=delay_ms,
            lock_mode="per_key" if per_key_locks else "global",
            lock_timeout=lock_timeout,
            dedup_traversal=dedup_traversal,
            use_bloom_filter=bloom,
            stream_maxsize=stream_size,
            metrics_port=metrics_port,
            log_level=log_level,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    pages = None
    if config.dataset_file:
        try:
            pages = load_dataset(config.dataset_file)
        except (FileNotFoundError, ValueError) as e:
            raise typer.BadParameter(str(e), param_hint="--dataset") from e

    setup_logging(config.log_level)
    print_config(config)

    metrics: Metrics | NullMetrics = NullMetrics()
    if config.metrics_port is not None:
        # 每次執行一個獨立 registry，同一個 process 可以重複呼叫 main
        registry = CollectorRegistry()
        metrics = Metrics(mode=config.mode, lock_mode=config.lock_mode, registry=registry)
        start_metrics_server(config.metrics_port, registry=registry)

    stats, cache_size = asyncio.run(run(config, pages, metrics))

    print("\n=== Done ===")
    print(f"Visited: {stats.emitted} keys in {stats.elapsed:.2f}s ({stats.tasks} tasks)")
    print(
        f"Failed: {stats.fetch_failed}, Pruned: {stats.pruned}, "
        f"Skipped: {stats.skipped}, Cancelled: {stats.cancelled}"
    )
    print(f"Cache: {cache_size} entries")


if __name__ == "__main__":
    app()
