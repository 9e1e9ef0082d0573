import asyncio
import logging
from collections import deque
from typing import Any, Deque, Iterable, Optional

from background_scheduler.domain.job import Job, as_job, job_name
from background_scheduler.queues.protocol import TaskQueue

logger = logging.getLogger(__name__)


class InMemoryTaskQueue(TaskQueue):
    """
    FIFO queue of one-shot jobs.

    Every entry is delivered to exactly one `dequeue` call. `enqueue` must be called
    from the thread running the event loop.
    """

    def __init__(self, jobs: Optional[Iterable[Any]] = None):
        self._jobs: Deque[Job] = deque()
        self._semaphore = asyncio.Semaphore(0)
        for job in jobs or []:
            if job is not None:
                self.enqueue(job)

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def pending_count(self) -> int:
        return len(self._jobs)

    def enqueue(self, job: Any) -> None:
        """
        Append a one-shot job to the queue.

        Raises:
            TypeError: If the job is neither a job nor a callable.
        """
        job = as_job(job)
        self._jobs.append(job)
        self._semaphore.release()
        logger.debug("Enqueued job '%s' (%d pending)", job_name(job), len(self._jobs))

    async def dequeue(self, cancellation: Optional[asyncio.Event] = None) -> Optional[Job]:
        """
        Wait until a job is available and remove it from the queue.

        Args:
            cancellation (Optional[asyncio.Event]): Event stopping the wait when set.

        Returns:
            Optional[Job]: The head of the queue, or None if cancellation was requested first.
        """
        if cancellation is None:
            await self._semaphore.acquire()
        else:
            if cancellation.is_set():
                return None
            acquire = asyncio.ensure_future(self._semaphore.acquire())
            cancelled = asyncio.ensure_future(cancellation.wait())
            try:
                await asyncio.wait({acquire, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                cancelled.cancel()
                if not acquire.done():
                    acquire.cancel()
            if acquire.cancelled() or not acquire.done():
                return None

        return self._jobs.popleft() if self._jobs else None
