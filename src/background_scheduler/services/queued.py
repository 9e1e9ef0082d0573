import asyncio
import logging
import time
from typing import Optional

from background_scheduler.domain.context import CancellationSignal, QueuedJobExecutionContext
from background_scheduler.domain.job import Job, job_name
from background_scheduler.exception_handling import JobExceptionHandler, report_unhandled_exception
from background_scheduler.queues.protocol import TaskQueue
from background_scheduler.scopes import ScopeFactory
from background_scheduler.services.base import HostedService, is_externally_cancelled

logger = logging.getLogger(__name__)


class TaskQueueHostedService(HostedService):
    """
    Consumes a task queue, executing one job at a time.

    Run several instances over the same queue to execute queued jobs concurrently.
    """

    def __init__(
        self,
        queue: TaskQueue,
        scope_factory: Optional[ScopeFactory] = None,
        exception_handler: Optional[JobExceptionHandler] = None,
        name: Optional[str] = None,
    ):
        super().__init__(scope_factory, exception_handler)
        self.queue: TaskQueue = queue
        self._name = name

    @property
    def name(self) -> str:
        return self._name or super().name

    async def _execute(self, stopping: asyncio.Event) -> None:
        while not stopping.is_set():
            job = await self.queue.dequeue(stopping)
            if job is None:
                continue

            with self.scope_factory.create_scope() as scope:
                await self.execute_queued_job(job, scope, stopping)

    async def execute_queued_job(self, job: Job, scope, stopping: Optional[asyncio.Event] = None) -> None:
        context = QueuedJobExecutionContext(scope=scope, cancellation=CancellationSignal(stopping))

        name = job_name(job)
        logger.debug("Executing queued job \"%s\"", name)
        started = time.perf_counter()
        exception: Optional[BaseException] = None
        try:
            await job.run(context)
        except asyncio.CancelledError:
            if is_externally_cancelled():
                raise
        except Exception as e:
            exception = e
        elapsed = (time.perf_counter() - started) * 1000
        logger.debug("Executed queued job \"%s\" in %.2fms", name, elapsed)

        report_unhandled_exception(exception, job, self.exception_handler, scope, logger)
