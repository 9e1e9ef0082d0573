from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import Field, PrivateAttr, field_validator

from background_scheduler.triggers.base import TimeWindow

REPEAT_INDEFINITELY: int = -1


class FixedIntervalTrigger(TimeWindow):
    """
    Fires every `repeat_interval`, optionally a bounded number of times.
    """
    repeat_interval: timedelta = Field(..., description="Time between two consecutive fire times")
    repeat_count: int = Field(REPEAT_INDEFINITELY, description="Maximum number of executions, -1 for no limit")

    _exhausted: bool = PrivateAttr(default=False)

    def __init__(self, repeat_interval: timedelta, **data: Any):
        super().__init__(repeat_interval=repeat_interval, **data)

    @classmethod
    def minutely(cls) -> "FixedIntervalTrigger":
        return cls(timedelta(minutes=1))

    @classmethod
    def hourly(cls) -> "FixedIntervalTrigger":
        return cls(timedelta(hours=1))

    @classmethod
    def daily(cls) -> "FixedIntervalTrigger":
        return cls(timedelta(days=1))

    @classmethod
    def weekly(cls) -> "FixedIntervalTrigger":
        return cls(timedelta(days=7))

    @field_validator("repeat_interval")
    def check_interval(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("Repeat interval must be greater than or equal to zero")
        return v

    @field_validator("repeat_count")
    def check_repeat_count(cls, v: int) -> int:
        if v < 0 and v != REPEAT_INDEFINITELY:
            raise ValueError("Repeat count must be >= 0, use REPEAT_INDEFINITELY for infinite")
        return v

    @property
    def should_remove_after_exhaustion(self) -> bool:
        return self._exhausted

    @property
    def is_bounded(self) -> bool:
        return self.repeat_count != REPEAT_INDEFINITELY

    def get_next_fire_time(self, now: datetime, execution_count: int) -> Optional[datetime]:
        if self.is_bounded and execution_count >= self.repeat_count:
            self._exhausted = True
            return None

        base = self._clamp(now)
        if base is None:
            return None

        try:
            return base + self.repeat_interval
        except OverflowError:
            return None

    def __str__(self) -> str:
        if self.is_bounded:
            return f"every {self.repeat_interval} ({self.repeat_count} times)"
        return f"every {self.repeat_interval}"
