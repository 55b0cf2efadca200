"""Single source of wall-clock time for the service."""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from soonish.core.config import settings


def local_now() -> datetime:
    """Return the current instant as a naive datetime in the configured calendar."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def get_now() -> datetime:
    """FastAPI dependency resolving the reference instant for a request."""
    return local_now()
