from .protocol import TaskQueue
from .in_memory import InMemoryTaskQueue

__all__ = ["TaskQueue", "InMemoryTaskQueue"]
