# app/core/activity.py
"""Server-side idle tracking for bearer tokens (AccessToken.updated_at)."""
from datetime import datetime
from typing import Optional

from app.core.config import settings
from app.db.base import utcnow
from app.db.models.access_token import AccessToken

# Requests to this path only report idle time and must not reset it
ACTIVITY_STATUS_PATH = "/user/activity-status"


def timeout_seconds() -> int:
    return settings.INACTIVITY_TIMEOUT_MINUTES * 60


def seconds_since_activity(record: AccessToken, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    last = record.last_activity
    # A last-activity stamp in the future counts as "just now"
    if last > now:
        return 0
    return int((now - last).total_seconds())


def seconds_remaining(record: AccessToken, now: Optional[datetime] = None) -> int:
    return max(0, timeout_seconds() - seconds_since_activity(record, now))


def is_idle_expired(record: AccessToken, now: Optional[datetime] = None) -> bool:
    return seconds_since_activity(record, now) >= timeout_seconds()


def counts_as_activity(path: str) -> bool:
    return not path.rstrip("/").endswith(ACTIVITY_STATUS_PATH)


def touch(record: AccessToken, now: Optional[datetime] = None) -> None:
    record.updated_at = now or utcnow()
