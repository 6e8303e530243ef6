"""Community moderation: score threshold policy and background hide-checks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_HIDE_THRESHOLD = -5


@dataclass(frozen=True)
class ModerationPolicy:
    """Converts a point's aggregate vote score into a visibility decision."""

    hide_threshold: int = DEFAULT_HIDE_THRESHOLD

    def should_hide(self, score: int) -> bool:
        return score <= self.hide_threshold


class ModerationWorker:
    """Bounded pool of asyncio workers running hide-checks off the request path.

    ``submit`` never blocks. A point already waiting in the queue is not
    queued again, so bursts of votes on one point take a single slot. When
    the queue is full with other points the check is dropped and logged.
    Failures inside ``handler`` are logged and never reach the voter.
    """

    def __init__(
        self,
        handler: Callable[[int], Awaitable[object]],
        workers: int = 4,
        queue_size: int = 1000,
    ):
        self._handler = handler
        self._worker_count = workers
        self._queue: asyncio.Queue[int] = asyncio.Queue(maxsize=queue_size)
        self._tasks: list[asyncio.Task] = []
        self._queued: set[int] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Number of hide-checks waiting for a worker."""
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the worker tasks."""
        if self._running:
            return

        self._running = True
        self._tasks = [
            asyncio.create_task(self._work_loop(i), name=f"moderation-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info(f"Started moderation worker pool ({self._worker_count} workers)")

    def submit(self, point_id: int) -> bool:
        """Queue a hide-check for ``point_id``. Returns False if it was dropped."""
        if point_id in self._queued:
            return True
        try:
            self._queue.put_nowait(point_id)
        except asyncio.QueueFull:
            logger.warning(f"Moderation queue full, dropping hide-check for point {point_id}")
            return False
        self._queued.add(point_id)
        return True

    async def join(self) -> None:
        """Wait until every queued hide-check has been processed."""
        await self._queue.join()

    async def _work_loop(self, index: int) -> None:
        """Process hide-checks until cancelled."""
        while True:
            point_id = await self._queue.get()
            # Votes arriving while this check runs must queue a fresh one
            self._queued.discard(point_id)
            try:
                await self._handler(point_id)
            except Exception:
                logger.exception(f"Hide-check for point {point_id} failed (worker {index})")
            finally:
                self._queue.task_done()

    async def stop(self) -> None:
        """Cancel the worker tasks and wait for them to exit."""
        if not self._running:
            return

        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Stopped moderation worker pool")
