import asyncio
import logging
from typing import Any, List, Optional

from background_scheduler.config import SchedulerSettings, get_settings
from background_scheduler.domain.task import ScheduledTask
from background_scheduler.exception_handling import JobExceptionHandler, NullJobExceptionHandler
from background_scheduler.queues.in_memory import InMemoryTaskQueue
from background_scheduler.queues.protocol import TaskQueue
from background_scheduler.schedulers.in_memory import InMemoryTaskScheduler
from background_scheduler.schedulers.protocol import TaskScheduler
from background_scheduler.scopes import ScopeFactory, ServiceRegistry
from background_scheduler.services.queued import TaskQueueHostedService
from background_scheduler.services.scheduled import TaskScheduleHostedService
from background_scheduler.triggers.protocol import Trigger

logger = logging.getLogger(__name__)


class BackgroundJobHost:
    """
    Entry point for the hosting application.

    Owns a task scheduler polled by one scheduled loop, and a task queue consumed
    by `queue_consumers` queue loops.
    """

    def __init__(
        self,
        settings: Optional[SchedulerSettings] = None,
        scope_factory: Optional[ScopeFactory] = None,
        exception_handler: Optional[JobExceptionHandler] = None,
        scheduler: Optional[TaskScheduler] = None,
        queue: Optional[TaskQueue] = None,
    ):
        self.settings: SchedulerSettings = settings or get_settings()
        self.scope_factory: ScopeFactory = scope_factory if scope_factory is not None else ServiceRegistry()
        self.exception_handler: JobExceptionHandler = (
            exception_handler if exception_handler is not None else NullJobExceptionHandler()
        )
        self.scheduler: TaskScheduler = scheduler if scheduler is not None else InMemoryTaskScheduler()
        self.queue: TaskQueue = queue if queue is not None else InMemoryTaskQueue()

        self.schedule_service = TaskScheduleHostedService(
            self.scheduler,
            self.scope_factory,
            self.exception_handler,
            poll_interval=self.settings.poll_interval,
        )
        self.queue_services: List[TaskQueueHostedService] = [
            TaskQueueHostedService(self.queue, self.scope_factory, self.exception_handler,
                                   name=f"TaskQueueHostedService-{index}")
            for index in range(self.settings.queue_consumers)
        ]

    @property
    def services(self) -> List[Any]:
        return [self.schedule_service, *self.queue_services]

    @property
    def is_running(self) -> bool:
        return any(service.is_running for service in self.services)

    def schedule_recurring(self, job: Any, trigger: Optional[Trigger] = None) -> ScheduledTask:
        """
        Register a recurring job executed every time its trigger fires.
        """
        return self.scheduler.schedule(job, trigger)

    def enqueue_one_shot(self, job: Any) -> None:
        """
        Register a job executed once by the next available queue consumer.
        """
        self.queue.enqueue(job)

    async def start(self) -> None:
        for service in self.services:
            await service.start()

    async def stop(self) -> None:
        await asyncio.gather(*(service.stop(self.settings.shutdown_timeout) for service in self.services))

    async def __aenter__(self) -> "BackgroundJobHost":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
