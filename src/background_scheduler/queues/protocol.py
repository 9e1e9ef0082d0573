import asyncio
from typing import Any, Optional, Protocol

from background_scheduler.domain.job import Job


class TaskQueue(Protocol):
    def enqueue(self, job: Any) -> None:
        """Append a one-shot job to the queue."""
        ...

    async def dequeue(self, cancellation: Optional[asyncio.Event] = None) -> Optional[Job]:
        """Wait for the next job. Return None if cancellation was requested first."""
        ...
