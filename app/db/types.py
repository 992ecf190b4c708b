# app/db/types.py

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import types


class UTCDateTime(types.TypeDecorator):
    """
    Timezone-aware datetime stored as UTC.

    Postgres keeps the offset natively; SQLite drops it, so values are
    normalized to UTC on the way in and tagged as UTC on the way out.
    """

    impl = sa.DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored; attach a timezone first")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
