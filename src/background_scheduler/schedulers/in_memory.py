import logging
import threading
from datetime import datetime
from typing import Any, Iterable, Iterator, List, Optional

from background_scheduler.domain.job import as_job, job_name
from background_scheduler.domain.task import ScheduledTask
from background_scheduler.triggers.null import NullTrigger
from background_scheduler.triggers.protocol import Trigger
from background_scheduler.schedulers.protocol import TaskScheduler
from background_scheduler.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class InMemoryTaskScheduler(TaskScheduler):
    """
    In-memory pool of scheduled tasks.

    The task list is guarded by a single lock, so `schedule` may be called from any
    thread, including while `get_tasks_due` is being iterated.
    """

    def __init__(self, jobs: Optional[Iterable[Any]] = None):
        self._tasks: List[ScheduledTask] = []
        self._lock = threading.Lock()
        for job in jobs or []:
            if job is not None:
                self.schedule(job)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    @property
    def tasks(self) -> List[ScheduledTask]:
        with self._lock:
            return list(self._tasks)

    def schedule(self, job: Any, trigger: Optional[Trigger] = None) -> ScheduledTask:
        """
        Register a recurring job.

        Args:
            job (Any): A job exposing `run(context)`, or a plain callable.
            trigger (Optional[Trigger]): The trigger of the job. Defaults to the job's own
                `trigger` attribute, and to a trigger that never fires when there is none.

        Returns:
            ScheduledTask: The record tracking the job executions.

        Raises:
            TypeError: If the job is neither a job nor a callable.
        """
        job = as_job(job, trigger)
        if trigger is None:
            trigger = getattr(job, "trigger", None)
        if trigger is None:
            logger.warning("Job '%s' was scheduled without a trigger and will never be executed", job_name(job))
            trigger = NullTrigger()
        if not isinstance(trigger, Trigger):
            raise TypeError(f"Expected a trigger, got {type(trigger).__name__}")

        task = ScheduledTask(name=job_name(job), job=job, trigger=trigger)
        with self._lock:
            self._tasks.append(task)
        logger.debug("Scheduled task '%s' (%s) with trigger %s", task.name, task.id, trigger)
        return task

    def unschedule(self, task: ScheduledTask) -> bool:
        with self._lock:
            for index, candidate in enumerate(self._tasks):
                if candidate is task:
                    del self._tasks[index]
                    return True
        return False

    def get_tasks_due(self, now: Optional[datetime] = None) -> Iterator[ScheduledTask]:
        """
        Lazily yield the tasks due at the given time.

        Every yielded task gets its `actual_scheduled_fire_time` set to the fire time it
        is due for, and its next fire time computed ahead of the execution. Tasks whose
        trigger is exhausted are removed from the pool when the trigger asks for it.
        A task is yielded at most once for a given `now`.

        Trigger errors are not swallowed: a failing trigger is a configuration error.
        The other tasks are still yielded, then the first trigger error is raised once
        the iteration is complete.
        """
        now = ensure_utc(now) if now is not None else utcnow()
        with self._lock:
            snapshot = list(self._tasks)

        errors: List[Exception] = []
        for task in snapshot:
            try:
                due = self._advance(task, now)
            except Exception as e:
                logger.debug("Trigger of task '%s' (%s) failed: %r", task.name, task.id, e)
                errors.append(e)
                continue
            if due:
                yield task

        if errors:
            raise errors[0]

    def _advance(self, task: ScheduledTask, now: datetime) -> bool:
        trigger = task.trigger
        if task.next_possible_fire_time is None:
            seed = task.last_known_execution_time or now
            next_fire_time = trigger.get_next_fire_time(seed, task.total_execution_count)
            if next_fire_time is None:
                if trigger.should_remove_after_exhaustion:
                    logger.debug("Removing exhausted task '%s' (%s)", task.name, task.id)
                    self.unschedule(task)
                return False
            task.next_possible_fire_time = next_fire_time

        if task.next_possible_fire_time > now or task.last_due_time == now:
            return False

        # The current firing has not incremented the count yet
        next_fire_time = trigger.get_next_fire_time(now, task.total_execution_count + 1)
        task.actual_scheduled_fire_time = task.next_possible_fire_time
        task.next_possible_fire_time = next_fire_time
        task.last_due_time = now
        return True
