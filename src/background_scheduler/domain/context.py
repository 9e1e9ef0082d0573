import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from background_scheduler.errors import JobExecutionError


class CancellationSignal:
    """
    Cancellation signal for a single job invocation.

    The signal is requested either when the host stops (the parent event is set)
    or when `cancel` is called for this invocation only.
    """

    def __init__(self, parent: Optional[asyncio.Event] = None):
        self._parent = parent
        self._event = asyncio.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set() or (self._parent is not None and self._parent.is_set())

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancellation_requested(self) -> None:
        if self.is_cancellation_requested:
            raise asyncio.CancelledError()

    async def wait(self) -> None:
        """
        Wait until cancellation is requested.
        """
        if self.is_cancellation_requested:
            return
        if self._parent is None:
            await self._event.wait()
            return

        waiters = [asyncio.ensure_future(self._event.wait()), asyncio.ensure_future(self._parent.wait())]
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()


class JobExecutionContext(BaseModel):
    """
    Context passed to a job invocation.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    scope: Any = Field(..., description="Dependency scope used to resolve the job's services")
    cancellation: CancellationSignal = Field(default_factory=CancellationSignal,
                                             description="Cancellation signal derived from the host stop event")

    @property
    def is_cancellation_requested(self) -> bool:
        return self.cancellation.is_cancellation_requested

    def cancel(self) -> None:
        self.cancellation.cancel()


class QueuedJobExecutionContext(JobExecutionContext):
    """
    Context passed to a one-shot job dequeued from a task queue.
    """


class ScheduledJobExecutionContext(JobExecutionContext):
    """
    Context passed to a recurring job, including the timing of the current execution.
    """
    execution_count: int = Field(..., description="Number of times the task has been executed, this one included")
    execution_time: datetime = Field(..., description="Time at which the execution actually started")
    scheduled_fire_time: datetime = Field(..., description="Fire time this execution was triggered for")
    previous_execution_time: Optional[datetime] = Field(None, description="Start time of the previous execution")
    next_fire_time: Optional[datetime] = Field(None, description="Predicted next fire time, if any")

    @property
    def drift(self) -> timedelta:
        return self.execution_time - self.scheduled_fire_time


class UnhandledJobExceptionContext(BaseModel):
    """
    Describes an exception raised by a job that was not handled by the job body.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    exception: JobExecutionError = Field(..., description="The failure, wrapped with the job identity")
    scope: Any = Field(None, description="Dependency scope the job was executed with")

    _handled: bool = PrivateAttr(default=False)

    @property
    def job_name(self) -> str:
        return self.exception.job_name

    @property
    def original(self) -> BaseException:
        return self.exception.original

    @property
    def is_handled(self) -> bool:
        return self._handled

    def set_handled(self) -> None:
        self._handled = True
