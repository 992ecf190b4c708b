# app/core/business.py
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Union

from app.core.errors import InvalidTimeFormatError


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Appointments in these states no longer hold their slot
NON_BLOCKING_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})
BLOCKING_STATUSES = frozenset(set(AppointmentStatus) - NON_BLOCKING_STATUSES)


def parse_instant(value: Union[str, datetime], field: str) -> datetime:
    """
    Parse an RFC 3339 timestamp carrying an explicit offset and return it in UTC.
    Naive timestamps are rejected: there is no server-side zone to assume.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidTimeFormatError(field)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimeFormatError(field) from None
    else:
        raise InvalidTimeFormatError(field)

    if dt.tzinfo is None or dt.utcoffset() is None:
        raise InvalidTimeFormatError(field)
    return dt.astimezone(timezone.utc)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open: [10:00, 11:00) and [11:00, 12:00) touch but do not overlap
    return a_start < b_end and a_end > b_start
