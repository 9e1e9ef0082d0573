from typing import Optional


class SchedulerError(Exception):
    """
    Base class for all errors raised by the scheduling engine.
    """


class InvalidTriggerError(SchedulerError, ValueError):
    """
    Raised when a trigger is configured with invalid values, such as a malformed
    cron expression or a negative repeat interval.
    """


class JobExecutionError(SchedulerError):
    """
    Wraps an exception raised by a job body together with the identity of the job.

    Attributes:
        job_name (str): The name of the job that failed.
        original (BaseException): The exception raised by the job.
    """

    def __init__(self, job_name: str, original: BaseException, message: Optional[str] = None):
        super().__init__(message or f"Job '{job_name}' failed: {original!r}")
        self.job_name = job_name
        self.original = original
        self.__cause__ = original
