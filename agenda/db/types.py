"""
Column types that behave the same on PostgreSQL and SQLite.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, TypeDecorator


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC instant; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp stored in UTC.

    SQLite drops tzinfo on the way in and returns naive values, so both
    directions are normalised here; PostgreSQL gets a native timestamptz.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        value = as_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        return as_utc(value)
