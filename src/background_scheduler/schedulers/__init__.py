from .protocol import TaskScheduler
from .in_memory import InMemoryTaskScheduler

__all__ = ["TaskScheduler", "InMemoryTaskScheduler"]
