from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchedulerSettings(BaseSettings):
    """Configuration of the background job host."""

    model_config = SettingsConfigDict(
        env_prefix="BACKGROUND_SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    poll_interval: float = Field(default=60.0, ge=0, description="Seconds between two scheduler ticks")
    queue_consumers: int = Field(default=1, ge=1, description="Number of loops consuming the task queue")
    shutdown_timeout: Optional[float] = Field(
        default=None,
        ge=0,
        description="Seconds to wait for running jobs on shutdown before cancelling them, None to wait forever",
    )


@lru_cache
def get_settings() -> SchedulerSettings:
    """Get cached settings instance."""
    return SchedulerSettings()
