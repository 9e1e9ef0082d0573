import heapq
from datetime import datetime
from typing import Any, Iterator, List, Optional

from croniter import CroniterBadDateError, croniter
from pydantic import Field, field_validator

from background_scheduler.triggers.base import TimeWindow

EXPRESSION_SEPARATOR: str = ";"


class CronTrigger(TimeWindow):
    """
    Fires according to one or more 5-field cron expressions separated by ';'.

    When several expressions are given the trigger fires at the union of their
    schedules, e.g. "0 9 * * 1-5; 0 12 * * 0,6" fires at 9:00 on weekdays and
    at 12:00 on weekends.
    """
    expression: str = Field(..., description="One or more ';'-separated cron expressions")

    def __init__(self, expression: str, **data: Any):
        super().__init__(expression=expression, **data)

    @classmethod
    def minutely(cls) -> "CronTrigger":
        return cls("* * * * *")

    @classmethod
    def hourly(cls) -> "CronTrigger":
        return cls("0 * * * *")

    @classmethod
    def daily(cls) -> "CronTrigger":
        return cls("0 0 * * *")

    @classmethod
    def weekly(cls) -> "CronTrigger":
        """Every Sunday at midnight."""
        return cls("0 0 * * 0")

    @classmethod
    def monthly(cls) -> "CronTrigger":
        return cls("0 0 1 * *")

    @field_validator("expression")
    def check_expression(cls, v: str) -> str:
        expressions = [part.strip() for part in v.split(EXPRESSION_SEPARATOR) if part.strip()]
        if not expressions:
            raise ValueError("At least one cron expression is required")

        for expression in expressions:
            cron_items = expression.split()
            if len(cron_items) == 6:
                raise ValueError(f"Unsupported cron expression with seconds: '{expression}'")
            elif len(cron_items) != 5:
                raise ValueError(f"Invalid cron expression: '{expression}'")
            if not croniter.is_valid(expression):
                raise ValueError(f"Invalid cron expression: '{expression}'")

        return f"{EXPRESSION_SEPARATOR} ".join(expressions)

    @property
    def expressions(self) -> List[str]:
        return [part.strip() for part in self.expression.split(EXPRESSION_SEPARATOR)]

    @property
    def should_remove_after_exhaustion(self) -> bool:
        return False

    def _occurrences(self, expression: str, after: datetime) -> Iterator[datetime]:
        cron = croniter(expression, after)
        while True:
            try:
                occurrence = cron.get_next(datetime)
            except CroniterBadDateError:
                # Valid syntax that never matches a date, e.g. February 30th
                return
            if self.end_time and occurrence > self.end_time:
                return
            yield occurrence

    def get_next_fire_time(self, now: datetime, execution_count: int) -> Optional[datetime]:
        base = self._clamp(now)
        if base is None:
            return None

        # heapq.merge is stable, equal occurrences come from the first declared expression
        merged = heapq.merge(*(self._occurrences(expression, base) for expression in self.expressions))
        return next(merged, None)

    def __str__(self) -> str:
        return self.expression
