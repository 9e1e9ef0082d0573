import asyncio
import functools
import inspect
from typing import Any, Callable, Hashable, Optional, Protocol, runtime_checkable

from .context import JobExecutionContext


@runtime_checkable
class Job(Protocol):
    """
    Protocol for a unit of background work, either queued or scheduled.

    Scheduled jobs may expose a `trigger` attribute used when no trigger is given
    at registration time.
    """

    async def run(self, context: JobExecutionContext) -> None:
        """
        Execute the job.

        Args:
            context (JobExecutionContext): The context of the current invocation.
        """
        ...


def job_name(job: Any) -> str:
    """
    Return a human readable name for a job or callable.
    """
    name = getattr(job, "name", None)
    if isinstance(name, str) and name:
        return name
    if isinstance(job, functools.partial):
        return job_name(job.func)
    qualname = getattr(job, "__qualname__", None)
    if qualname:
        return qualname
    return type(job).__name__


def _accepts_context(func: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False

    for parameter in signature.parameters.values():
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            return True
    return False


async def _call(func: Callable[..., Any], *args: Any) -> None:
    if inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(getattr(func, "__call__", None)):
        await func(*args)
        return

    # Synchronous callables run in the default thread pool so they do not block the event loop
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        await result


class FunctionJob(Job):
    """
    Adapts a plain function to the job protocol.

    The function may be synchronous or asynchronous and may take the execution
    context as its single argument or no argument at all.
    """

    def __init__(self, func: Callable[..., Any], name: Optional[str] = None, trigger: Any = None):
        if not callable(func):
            raise TypeError(f"Expected a callable, got {type(func).__name__}")
        self.func = func
        self.name = name or job_name(func)
        self.trigger = trigger
        self._pass_context = _accepts_context(func)

    async def run(self, context: JobExecutionContext) -> None:
        if self._pass_context:
            await _call(self.func, context)
        else:
            await _call(self.func)

    def __repr__(self) -> str:
        return f"FunctionJob({self.name!r})"


class ServiceMethodJob(Job):
    """
    Calls a named method of a service resolved from the invocation's dependency scope.
    """

    def __init__(self, service_key: Hashable, method_name: str, name: Optional[str] = None, trigger: Any = None):
        if not method_name:
            raise ValueError("A method name is required")
        if isinstance(service_key, type) and not callable(getattr(service_key, method_name, None)):
            raise ValueError(f"'{service_key.__name__}' has no method named '{method_name}'")
        self.service_key = service_key
        self.method_name = method_name
        self.name = name or f"{job_name(service_key)}.{method_name}"
        self.trigger = trigger

    async def run(self, context: JobExecutionContext) -> None:
        service = context.scope.resolve(self.service_key)
        method = getattr(service, self.method_name)
        if _accepts_context(method):
            await _call(method, context)
        else:
            await _call(method)

    def __repr__(self) -> str:
        return f"ServiceMethodJob({self.name!r})"


def as_job(job: Any, trigger: Any = None) -> Job:
    """
    Return the given job, wrapping plain callables in a `FunctionJob`.

    Raises:
        TypeError: If the value is neither a job nor a callable.
    """
    if isinstance(job, Job):
        return job
    if callable(job):
        return FunctionJob(job, trigger=trigger)
    raise TypeError(f"Expected a job or a callable, got {type(job).__name__}")
