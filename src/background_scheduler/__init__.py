"""
Background Job Scheduling Engine

This module lets a host application run deferred work in the background.

Core Concepts:

Recurring job:
    A job registered together with a Trigger. The task scheduler keeps one
    ScheduledTask record per recurring job and a polling loop executes the
    records that are due, all the due ones concurrently.

One-shot job:
    A job appended to the task queue. One of the queue consumer loops executes
    it exactly once, in FIFO order.

Trigger:
    Computes the next fire time of a recurring job, either at a fixed interval
    or following one or more cron expressions.

Execution context:
    Created for each invocation; carries the dependency scope, a cancellation
    signal derived from the host shutdown and, for recurring jobs, the timing
    of the execution.

Failures are isolated per job: an exception raised by a job is offered to the
job itself, then to the process-wide exception handler, then logged.
"""

from .config import SchedulerSettings, get_settings
from .domain import (
    FunctionJob,
    Job,
    QueuedJobExecutionContext,
    ScheduledJobExecutionContext,
    ScheduledTask,
    ServiceMethodJob,
    UnhandledJobExceptionContext,
)
from .errors import InvalidTriggerError, JobExecutionError, SchedulerError
from .exception_handling import JobExceptionHandler, NullJobExceptionHandler
from .host import BackgroundJobHost
from .queues import InMemoryTaskQueue, TaskQueue
from .schedulers import InMemoryTaskScheduler, TaskScheduler
from .scopes import ScopeFactory, ServiceRegistry
from .services import TaskQueueHostedService, TaskScheduleHostedService
from .triggers import REPEAT_INDEFINITELY, CronTrigger, FixedIntervalTrigger, NullTrigger, Trigger

__all__ = [
    "BackgroundJobHost",
    "SchedulerSettings",
    "get_settings",
    "Job",
    "FunctionJob",
    "ServiceMethodJob",
    "ScheduledTask",
    "QueuedJobExecutionContext",
    "ScheduledJobExecutionContext",
    "UnhandledJobExceptionContext",
    "SchedulerError",
    "InvalidTriggerError",
    "JobExecutionError",
    "JobExceptionHandler",
    "NullJobExceptionHandler",
    "TaskQueue",
    "InMemoryTaskQueue",
    "TaskScheduler",
    "InMemoryTaskScheduler",
    "ScopeFactory",
    "ServiceRegistry",
    "TaskScheduleHostedService",
    "TaskQueueHostedService",
    "Trigger",
    "FixedIntervalTrigger",
    "CronTrigger",
    "NullTrigger",
    "REPEAT_INDEFINITELY",
]
