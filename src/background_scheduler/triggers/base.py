from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from background_scheduler.errors import InvalidTriggerError
from background_scheduler.utils import ensure_optional_utc, ensure_utc


class TimeWindow(BaseModel):
    """
    Optional inclusive UTC validity window shared by the time-based triggers.
    """
    start_time: Optional[datetime] = Field(None, description="Earliest time the trigger may be evaluated from")
    end_time: Optional[datetime] = Field(None, description="Latest time the trigger may fire at")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidTriggerError(f"Invalid {type(self).__name__} configuration: {e}") from e

    @field_validator("start_time", "end_time")
    def check_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_optional_utc(v)

    @model_validator(mode="after")
    def check_window(self) -> "TimeWindow":
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be earlier than start_time")
        return self

    def _clamp(self, now: datetime) -> Optional[datetime]:
        """
        Clamp the given time to the window. Returns None when it falls after the end of the window.
        """
        now = ensure_utc(now)
        if self.start_time and self.start_time > now:
            now = self.start_time
        if self.end_time and self.end_time < now:
            return None
        return now
