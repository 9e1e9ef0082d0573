import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC. Naive datetimes are assumed to already be UTC.
    """
    if value.tzinfo is None:
        logger.warning("Datetime %s does not include a timezone. Defaulting to UTC+0 for consistent representation.",
                       value.isoformat())
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ensure_optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(value)
