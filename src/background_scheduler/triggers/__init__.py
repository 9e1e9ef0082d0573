from .protocol import Trigger
from .fixed_interval import FixedIntervalTrigger, REPEAT_INDEFINITELY
from .cron import CronTrigger
from .null import NullTrigger

__all__ = ["Trigger", "FixedIntervalTrigger", "REPEAT_INDEFINITELY", "CronTrigger", "NullTrigger"]
