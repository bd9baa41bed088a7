"""
Fetcher Module - 抓取能力抽象

提供：
1. FetchResult - 單一 key 的內容與外連結
2. Fetcher - fetch(key) 的 Protocol
3. StaticFetcher - 固定資料集（測試與示範用）
4. HttpFetcher - 真實 HTTP 請求（aiohttp + BeautifulSoup）
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import aiohttp

from linkcrawl.exceptions import FetchNotFoundError, FetchTransportError
from linkcrawl.parser import extract_links

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "linkcrawl/1.0"


@dataclass(frozen=True)
class FetchResult:
    content: str
    links: tuple[str, ...] = ()


class Fetcher(Protocol):
    """Anything that can fetch a key.

    ``fetch`` returns the key's content and outbound links, or raises
    ``FetchNotFoundError`` / ``FetchTransportError``. No ordering, concurrency
    or idempotence guarantees are assumed.
    """

    async def fetch(self, key: str) -> FetchResult: ...


class StaticFetcher:
    """Fetcher backed by a fixed in-memory dataset.

    Every call is counted in ``calls`` so callers can check how often a key
    actually reached the data source.

    Usage:
        fetcher = StaticFetcher(GO_TOUR_PAGES, delay_ms=5)
        result = await fetcher.fetch("http://golang.org/")
    """

    def __init__(self, pages: Mapping[str, FetchResult], delay_ms: int = 0):
        self._pages = dict(pages)
        self._delay_ms = delay_ms
        self.calls: Counter[str] = Counter()

    async def __aenter__(self) -> StaticFetcher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def fetch(self, key: str) -> FetchResult:
        self.calls[key] += 1
        logger.debug("Static fetch: %s", key)

        # 模擬延遲，讓併發的 task 有機會交錯
        if self._delay_ms:
            await asyncio.sleep(self._delay_ms / 1000)

        try:
            return self._pages[key]
        except KeyError:
            raise FetchNotFoundError(key) from None


class HttpFetcher:
    """HTTP fetcher，管理 session 生命週期。

    Usage:
        async with HttpFetcher(timeout=10.0) as fetcher:
            result = await fetcher.fetch(url)
    """

    def __init__(self, timeout: float = 10.0, user_agent: str = DEFAULT_USER_AGENT):
        self._timeout = timeout
        self._user_agent = user_agent
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpFetcher:
        connector = aiohttp.TCPConnector(limit=0, limit_per_host=0)
        self._session = aiohttp.ClientSession(
            connector=connector, headers={"User-Agent": self._user_agent}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> FetchResult:
        """Fetch URL，回傳 FetchResult；只有 HTML 會解析連結。"""
        if not self._session:
            raise RuntimeError("HttpFetcher must be used as async context manager")

        try:
            async with self._session.get(
                url, timeout=aiohttp.ClientTimeout(total=self._timeout)
            ) as resp:
                if resp.status in (404, 410):
                    raise FetchNotFoundError(url)
                resp.raise_for_status()
                body = await resp.text(errors="replace")
                content_type = resp.content_type
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchTransportError(url, e) from e

        links: list[str] = []
        if "html" in content_type:
            links = extract_links(body, url)
        return FetchResult(content=body, links=tuple(links))
