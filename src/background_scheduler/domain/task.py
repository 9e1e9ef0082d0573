import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from background_scheduler.utils import utcnow


class ScheduledTask(BaseModel):
    """
    Bookkeeping record pairing a recurring job with its trigger and execution history.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: f"tsk_{uuid.uuid4().hex[:8]}", description="Unique task identifier")
    name: str = Field(..., description="Task name, used when logging and reporting failures")
    job: Any = Field(..., description="The job executed every time the trigger fires")
    trigger: Any = Field(..., description="The trigger computing the fire times of the job")
    created_at: datetime = Field(default_factory=utcnow, description="Task registration timestamp with UTC timezone")
    total_execution_count: int = Field(default=0, description="Number of times the job has been started")
    last_known_execution_time: Optional[datetime] = Field(None, description="Start time of the last execution")
    next_possible_fire_time: Optional[datetime] = Field(None, description="Cached next fire time, None if not computed")
    actual_scheduled_fire_time: Optional[datetime] = Field(None, description="Fire time the current execution was triggered for")
    last_due_time: Optional[datetime] = Field(None, description="Tick time the task was last returned as due")

    def increment_and_get_execution_count(self) -> int:
        self.total_execution_count += 1
        return self.total_execution_count

