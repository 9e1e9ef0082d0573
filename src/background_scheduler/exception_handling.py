import logging
from typing import Any, Optional, Protocol, runtime_checkable

from background_scheduler.domain.context import UnhandledJobExceptionContext
from background_scheduler.domain.job import job_name
from background_scheduler.errors import JobExecutionError

logger = logging.getLogger(__name__)


@runtime_checkable
class JobExceptionHandler(Protocol):
    """
    Protocol for objects notified of exceptions raised by jobs.

    Jobs implementing this protocol are offered their own exceptions before the
    process-wide handler.
    """

    def on_unhandled_exception(self, context: UnhandledJobExceptionContext) -> None:
        """
        Handle an exception raised by a job. Call `context.set_handled()` to stop
        the exception from being reported further.
        """
        ...


class NullJobExceptionHandler(JobExceptionHandler):
    """
    Process-wide handler that leaves every exception unhandled.
    """

    def on_unhandled_exception(self, context: UnhandledJobExceptionContext) -> None:
        pass


def _notify(handler: JobExceptionHandler, context: UnhandledJobExceptionContext) -> None:
    try:
        handler.on_unhandled_exception(context)
    except Exception:
        logger.exception("Exception handler %r failed while handling an error of job '%s'",
                         handler, context.job_name)


def report_unhandled_exception(
    exception: Optional[BaseException],
    job: Any,
    exception_handler: Optional[JobExceptionHandler],
    scope: Any = None,
    log: Optional[logging.Logger] = None,
) -> Optional[UnhandledJobExceptionContext]:
    """
    Report an exception raised by a job.

    The exception is offered to the job itself when it implements
    `JobExceptionHandler`, then to the process-wide handler. When neither marks it
    as handled it is logged.

    Args:
        exception (Optional[BaseException]): The exception raised by the job, None if it succeeded.
        job (Any): The job that raised the exception.
        exception_handler (Optional[JobExceptionHandler]): The process-wide exception handler.
        scope (Any): The dependency scope the job was executed with.
        log (Optional[logging.Logger]): Logger used for unhandled exceptions.

    Returns:
        Optional[UnhandledJobExceptionContext]: The context passed to the handlers, None if there was
            nothing to report.
    """
    if exception is None:
        return None

    if not isinstance(exception, JobExecutionError):
        exception = JobExecutionError(job_name(job), exception)
    context = UnhandledJobExceptionContext(exception=exception, scope=scope)

    if isinstance(job, JobExceptionHandler):
        _notify(job, context)
    if context.is_handled:
        return context

    if exception_handler is not None:
        _notify(exception_handler, context)
    if context.is_handled:
        return context

    (log or logger).error("An unhandled exception has occurred while executing job '%s'", context.job_name,
                          exc_info=(type(context.original), context.original, context.original.__traceback__))
    return context
