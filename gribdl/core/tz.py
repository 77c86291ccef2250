"""Timezone utilities: single source of truth for the UTC convention.

RULE: every run timestamp in this project is a timezone-aware UTC datetime.
Model runs are published on UTC boundaries, so local time never enters
the arithmetic.

Instead of ``datetime.now()`` (naive, system-local), import from here:
  from gribdl.core.tz import utc_now, as_utc
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current moment as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Interpret a naive datetime as UTC, convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
