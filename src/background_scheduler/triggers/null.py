from datetime import datetime
from typing import Optional

from background_scheduler.triggers.protocol import Trigger


class NullTrigger(Trigger):
    """
    Trigger that never fires. Tasks scheduled with it are removed on their first evaluation.
    """

    @property
    def should_remove_after_exhaustion(self) -> bool:
        return True

    def get_next_fire_time(self, now: datetime, execution_count: int) -> Optional[datetime]:
        return None

    def __repr__(self) -> str:
        return "NullTrigger()"
