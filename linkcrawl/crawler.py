"""
Crawler Module - 遞迴併發爬取

每個 (key, depth) 是一個獨立的 asyncio task：
1. depth <= 0 → pruned，不 fetch
2. fetch（通常經過 CachedFetcher）
3. 成功 → key 寫入 OutputStream，每個連結以 depth - 1 開一個子 task
4. 不論結果如何（包含還沒開始就被取消），task 的 done callback 通知 CompletionCoordinator

所有 task 都在同一個 TaskGroup 裡，run() 等到整棵 task 樹結束才返回。
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from linkcrawl.coordinator import CompletionCoordinator
from linkcrawl.exceptions import FetchError
from linkcrawl.metrics import NullMetrics
from linkcrawl.stream import OutputStream

if TYPE_CHECKING:
    from linkcrawl.fetcher import Fetcher
    from linkcrawl.metrics import Metrics
    from linkcrawl.visited import VisitedTracker

logger = logging.getLogger(__name__)


class TaskState(enum.Enum):
    PRUNED = "pruned"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    FETCH_FAILED = "fetch-failed"
    SPAWNED = "spawned-children"


@dataclass
class CrawlStats:
    emitted: int = 0
    fetch_failed: int = 0
    pruned: int = 0
    cancelled: int = 0
    skipped: int = 0
    tasks: int = 0
    elapsed: float = 0.0

    def record(self, state: TaskState) -> None:
        if state is TaskState.SPAWNED:
            self.emitted += 1
        elif state is TaskState.FETCH_FAILED:
            self.fetch_failed += 1
        elif state is TaskState.PRUNED:
            self.pruned += 1
        elif state is TaskState.CANCELLED:
            self.cancelled += 1
        elif state is TaskState.SKIPPED:
            self.skipped += 1


def _check_depth(max_depth: int) -> None:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise ValueError(f"max_depth must be an int, got {max_depth!r}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


class Crawler:
    """Depth-bounded concurrent crawl from a single root. One run per instance."""

    def __init__(
        self,
        fetcher: Fetcher,
        stream: OutputStream,
        *,
        metrics: Metrics | NullMetrics | None = None,
        cancel_event: asyncio.Event | None = None,
        visited: VisitedTracker | None = None,
        on_error: Callable[[str, FetchError], None] | None = None,
    ):
        self.fetcher = fetcher
        self.stream = stream
        self.stats = CrawlStats()

        self._metrics = metrics if metrics is not None else NullMetrics()
        self._cancel_event = cancel_event
        self._visited = visited
        self._on_error = on_error

        self._coordinator: CompletionCoordinator | None = None
        self._group: asyncio.TaskGroup | None = None

    async def run(self, root: str, max_depth: int) -> CrawlStats:
        _check_depth(max_depth)
        if self._coordinator is not None:
            raise RuntimeError("Crawler.run() can only be called once")

        self._coordinator = CompletionCoordinator(self.stream, metrics=self._metrics)
        logger.info("Crawl started: %s (max_depth=%d)", root, max_depth)
        start = time.monotonic()

        async with asyncio.TaskGroup() as group:
            self._group = group
            self._start(root, max_depth)

        self.stats.tasks = self._coordinator.total_tasks
        self.stats.elapsed = time.monotonic() - start
        logger.info(
            "Crawl finished: %s (%d emitted, %d failed, %d tasks in %.2fs)",
            root,
            self.stats.emitted,
            self.stats.fetch_failed,
            self.stats.tasks,
            self.stats.elapsed,
        )
        return self.stats

    async def _visit(self, key: str, depth: int) -> None:
        state = await self._step(key, depth)
        self.stats.record(state)

    async def _step(self, key: str, depth: int) -> TaskState:
        if depth <= 0:
            return TaskState.PRUNED

        if self._cancel_event is not None and self._cancel_event.is_set():
            logger.debug("Cancelled before fetch: %s", key)
            return TaskState.CANCELLED

        if self._visited is not None and not self._visited.mark(key):
            logger.debug("Skipping (visited) %s", key)
            return TaskState.SKIPPED

        try:
            result = await self.fetcher.fetch(key)
        except FetchError as e:
            logger.warning("Fetch failed for %s: %s", key, e)
            self._metrics.fetch_failures.inc()
            if self._on_error is not None:
                self._on_error(key, e)
            return TaskState.FETCH_FAILED

        logger.info("Found: %s %.80r", key, result.content)
        await self.stream.put(key)
        self._metrics.keys_emitted.inc()

        for link in result.links:
            self._spawn(link, depth - 1)
        return TaskState.SPAWNED

    def _spawn(self, key: str, depth: int) -> None:
        # 先 register 再建立 task，子 task 的 done() 不可能早於 register
        self._coordinator.register()
        self._start(key, depth)

    def _start(self, key: str, depth: int) -> None:
        coro = self._visit(key, depth)
        try:
            task = self._group.create_task(coro)
        except RuntimeError:
            # TaskGroup 正在關閉（其他 task 拋出例外）
            coro.close()
            self._coordinator.done()
            raise
        # 被取消（包含還沒開始執行）、拋錯、正常結束都會呼叫
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._coordinator.done()


def close_stream_on_failure(task: asyncio.Task, stream: OutputStream) -> None:
    """Close ``stream`` if ``task`` fails before its coordinator can close it."""

    def _callback(task: asyncio.Task) -> None:
        if stream.closed:
            return
        if task.cancelled() or task.exception() is not None:
            logger.debug("Crawl task failed, closing stream")
            stream.close()

    task.add_done_callback(_callback)


async def crawl(
    root: str,
    max_depth: int,
    fetcher: Fetcher,
    stream: OutputStream,
    **options,
) -> CrawlStats:
    """Crawl from ``root`` to ``max_depth``, writing each visited key to ``stream``.

    Returns once every task has finished; the stream is closed by then. The
    caller must drain the stream concurrently when it is bounded.
    Keyword options are passed to ``Crawler``.
    """
    return await Crawler(fetcher, stream, **options).run(root, max_depth)


async def collect(
    root: str,
    max_depth: int,
    fetcher: Fetcher,
    *,
    maxsize: int = 0,
    **options,
) -> list[str]:
    """Run a crawl and return the visited keys in stream order."""
    _check_depth(max_depth)
    stream = OutputStream(maxsize)
    crawler = Crawler(fetcher, stream, **options)

    task = asyncio.create_task(crawler.run(root, max_depth))
    close_stream_on_failure(task, stream)
    keys = [key async for key in stream]
    await task
    return keys
