from datetime import datetime
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Trigger(Protocol):
    """
    Protocol for computing when a recurring job fires next.
    """

    @property
    def should_remove_after_exhaustion(self) -> bool:
        """Whether the scheduler should drop the task once no further fire time exists."""
        ...

    def get_next_fire_time(self, now: datetime, execution_count: int) -> Optional[datetime]:
        """
        Compute the next fire time after the given time.

        Args:
            now (datetime): The UTC time to compute the next fire time from.
            execution_count (int): The number of times the task has already been executed.

        Returns:
            Optional[datetime]: The next UTC fire time, or None if the trigger will not fire again.
        """
        ...
