import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from background_scheduler.exception_handling import JobExceptionHandler, NullJobExceptionHandler
from background_scheduler.scopes import ScopeFactory, ServiceRegistry

logger = logging.getLogger(__name__)


def is_externally_cancelled() -> bool:
    """
    Whether the current asyncio task has a pending cancellation request, as opposed to
    a job raising `asyncio.CancelledError` by itself.
    """
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class HostedService(ABC):
    """
    Base class for a long-running background loop.

    `start` runs `_execute` in its own asyncio task; `stop` asks the loop to exit
    through the stop event and waits for it.
    """

    def __init__(
        self,
        scope_factory: Optional[ScopeFactory] = None,
        exception_handler: Optional[JobExceptionHandler] = None,
    ):
        self.scope_factory: ScopeFactory = scope_factory if scope_factory is not None else ServiceRegistry()
        self.exception_handler: JobExceptionHandler = (
            exception_handler if exception_handler is not None else NullJobExceptionHandler()
        )
        self.stopping: Optional[asyncio.Event] = None
        self.loop_task: Optional[asyncio.Task] = None

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_running(self) -> bool:
        return self.loop_task is not None and not self.loop_task.done()

    @abstractmethod
    async def _execute(self, stopping: asyncio.Event) -> None:
        """
        Run the loop until the stop event is set.
        """
        pass

    async def _run(self, stopping: asyncio.Event) -> None:
        try:
            await self._execute(stopping)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s stopped because of an unexpected error", self.name)

    async def start(self) -> None:
        """
        Start the background loop. Calling it on a running service does nothing.
        """
        if self.is_running:
            return
        self.stopping = asyncio.Event()
        self.loop_task = asyncio.create_task(self._run(self.stopping), name=self.name)
        logger.info("%s started.", self.name)

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the background loop.

        Args:
            timeout (Optional[float]): Seconds to wait for the loop, and the jobs it is
                running, to finish. The loop task is cancelled once it elapses.
        """
        if self.loop_task is None:
            return

        self.stopping.set()
        try:
            await asyncio.wait_for(asyncio.shield(self.loop_task), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s did not stop within %s seconds, cancelling running jobs", self.name, timeout)
            self.loop_task.cancel()
            try:
                await self.loop_task
            except asyncio.CancelledError:
                pass
        finally:
            self.loop_task = None
        logger.info("%s stopped.", self.name)

    async def __aenter__(self) -> "HostedService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
