from .base import HostedService
from .scheduled import TaskScheduleHostedService
from .queued import TaskQueueHostedService

__all__ = ["HostedService", "TaskScheduleHostedService", "TaskQueueHostedService"]
