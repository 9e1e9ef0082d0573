import asyncio
import logging
import time
from datetime import datetime
from typing import Any, List, Optional

from background_scheduler.domain.context import CancellationSignal, ScheduledJobExecutionContext
from background_scheduler.domain.task import ScheduledTask
from background_scheduler.exception_handling import JobExceptionHandler, report_unhandled_exception
from background_scheduler.schedulers.protocol import TaskScheduler
from background_scheduler.scopes import ScopeFactory
from background_scheduler.services.base import HostedService, is_externally_cancelled
from background_scheduler.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: float = 60.0


class TaskScheduleHostedService(HostedService):
    """
    Polls a task scheduler and executes the tasks that are due.

    All the tasks due in one tick run concurrently and share one dependency scope.
    The next tick starts `poll_interval` seconds after the whole batch completed.
    """

    def __init__(
        self,
        scheduler: TaskScheduler,
        scope_factory: Optional[ScopeFactory] = None,
        exception_handler: Optional[JobExceptionHandler] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        super().__init__(scope_factory, exception_handler)
        if poll_interval < 0:
            raise ValueError("Poll interval must be greater than or equal to zero")
        self.scheduler: TaskScheduler = scheduler
        self.poll_interval: float = poll_interval

    async def _execute(self, stopping: asyncio.Event) -> None:
        while not stopping.is_set():
            try:
                await self.execute_due_tasks(stopping=stopping)
            except Exception:
                logger.exception("Unexpected error while executing the due tasks")

            try:
                await asyncio.wait_for(stopping.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def execute_due_tasks(self, now: Optional[datetime] = None,
                                stopping: Optional[asyncio.Event] = None) -> List[ScheduledTask]:
        """
        Run one tick: execute every task due at the given time and wait for all of them.
        A failing trigger is logged; the tasks that are due still run.

        Returns:
            List[ScheduledTask]: The tasks executed during the tick.
        """
        execution_time = ensure_utc(now) if now is not None else utcnow()
        tasks: List[ScheduledTask] = []
        try:
            for task in self.scheduler.get_tasks_due(execution_time):
                tasks.append(task)
        except Exception:
            logger.exception("Error computing the tasks due for execution")

        if not tasks:
            return tasks

        with self.scope_factory.create_scope() as scope:
            await asyncio.gather(*(
                self._execute_scheduled_task(task, execution_time, scope, stopping) for task in tasks
            ))
        return tasks

    async def _execute_scheduled_task(self, task: ScheduledTask, execution_time: datetime, scope: Any,
                                      stopping: Optional[asyncio.Event]) -> None:
        context = ScheduledJobExecutionContext(
            scope=scope,
            cancellation=CancellationSignal(stopping),
            execution_count=task.increment_and_get_execution_count(),
            execution_time=execution_time,
            scheduled_fire_time=task.actual_scheduled_fire_time or execution_time,
            previous_execution_time=task.last_known_execution_time,
            next_fire_time=task.next_possible_fire_time,
        )
        task.last_known_execution_time = execution_time

        logger.debug("Executing task \"%s\"", task.name)
        started = time.perf_counter()
        exception: Optional[BaseException] = None
        try:
            await task.job.run(context)
        except asyncio.CancelledError:
            if is_externally_cancelled():
                raise
        except Exception as e:
            exception = e
        elapsed = (time.perf_counter() - started) * 1000
        logger.debug("Executed task \"%s\" in %.2fms", task.name, elapsed)

        report_unhandled_exception(exception, task.job, self.exception_handler, scope, logger)
