from .task import ScheduledTask
from .job import Job, FunctionJob, ServiceMethodJob, as_job, job_name
from .context import (
    CancellationSignal,
    JobExecutionContext,
    QueuedJobExecutionContext,
    ScheduledJobExecutionContext,
    UnhandledJobExceptionContext,
)

__all__ = [
    "ScheduledTask",
    "Job",
    "FunctionJob",
    "ServiceMethodJob",
    "as_job",
    "job_name",
    "CancellationSignal",
    "JobExecutionContext",
    "QueuedJobExecutionContext",
    "ScheduledJobExecutionContext",
    "UnhandledJobExceptionContext",
]
