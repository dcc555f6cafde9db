# app/db/base.py
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time without tzinfo, the form DateTime columns hold."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
