from datetime import datetime
from typing import Any, Iterator, Optional, Protocol

from background_scheduler.domain.task import ScheduledTask
from background_scheduler.triggers.protocol import Trigger


class TaskScheduler(Protocol):
    def schedule(self, job: Any, trigger: Optional[Trigger] = None) -> ScheduledTask:
        """Register a recurring job and return its scheduled task record."""
        ...

    def get_tasks_due(self, now: Optional[datetime] = None) -> Iterator[ScheduledTask]:
        """Lazily yield the tasks due at the given time, advancing their next fire times."""
        ...
