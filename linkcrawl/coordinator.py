from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from linkcrawl.metrics import NullMetrics

if TYPE_CHECKING:
    from linkcrawl.metrics import Metrics
    from linkcrawl.stream import OutputStream

logger = logging.getLogger(__name__)


class CompletionCoordinator:
    """Counts outstanding crawl tasks and closes the stream when none remain.

    The count starts at 1 for the root task. A parent calls ``register``
    before scheduling each child; every task calls ``done`` exactly once when
    it reaches a terminal state. ``done`` is synchronous: the decrement, the
    zero check and the close happen in one step, so exactly one caller
    observes zero and closes.
    """

    def __init__(
        self,
        stream: OutputStream,
        *,
        metrics: Metrics | NullMetrics | None = None,
    ):
        self._stream = stream
        self._metrics = metrics if metrics is not None else NullMetrics()
        self._outstanding = 1
        self._finished = False
        self.total_tasks = 1
        self._metrics.active_tasks.inc()

    @property
    def outstanding(self) -> int:
        return self._outstanding

    @property
    def finished(self) -> bool:
        return self._finished

    def register(self) -> None:
        if self._finished:
            raise RuntimeError("register() after the crawl finished")
        self._outstanding += 1
        self.total_tasks += 1
        self._metrics.active_tasks.inc()

    def done(self) -> None:
        if self._outstanding <= 0:
            raise RuntimeError("done() called more times than tasks registered")
        self._outstanding -= 1
        self._metrics.active_tasks.dec()
        if self._outstanding == 0:
            self._finished = True
            logger.debug("All %d crawl tasks finished, closing stream", self.total_tasks)
            self._stream.close()
