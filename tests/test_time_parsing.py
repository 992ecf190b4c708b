#!/usr/bin/env python3
"""
Timestamp parsing and interval overlap.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.business import (
    BLOCKING_STATUSES,
    NON_BLOCKING_STATUSES,
    AppointmentStatus,
    intervals_overlap,
    parse_instant,
)
from app.core.errors import InvalidTimeFormatError

UTC = timezone.utc


class TestParseInstant:
    """RFC 3339 instants with an explicit offset, normalized to UTC"""

    @pytest.mark.parametrize("text, expected", [
        ("2024-01-01T10:00:00Z", datetime(2024, 1, 1, 10, tzinfo=UTC)),
        ("2024-01-01T10:00:00+00:00", datetime(2024, 1, 1, 10, tzinfo=UTC)),
        ("2024-01-01T12:30:00+02:00", datetime(2024, 1, 1, 10, 30, tzinfo=UTC)),
        ("2023-12-31T21:00:00-05:00", datetime(2024, 1, 1, 2, tzinfo=UTC)),
        ("2024-01-01T10:00:00.250Z", datetime(2024, 1, 1, 10, 0, 0, 250000, tzinfo=UTC)),
        ("  2024-01-01T10:00:00Z  ", datetime(2024, 1, 1, 10, tzinfo=UTC)),
    ])
    def test_valid_instants(self, text, expected):
        parsed = parse_instant(text, "start_time")

        assert parsed == expected
        assert parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "tomorrow",
        "2024-13-01T10:00:00Z",
        "2024-01-01T10:00:00",   # no offset
        "2024-01-01",
        "10:00",
    ])
    def test_invalid_instants(self, text):
        with pytest.raises(InvalidTimeFormatError) as exc_info:
            parse_instant(text, "end_time")
        assert exc_info.value.field == "end_time"

    def test_non_string_rejected(self):
        with pytest.raises(InvalidTimeFormatError):
            parse_instant(1704103200, "start_time")

    def test_aware_datetime_converted(self):
        plus_two = timezone(timedelta(hours=2))
        parsed = parse_instant(datetime(2024, 1, 1, 12, tzinfo=plus_two), "start_time")
        assert parsed == datetime(2024, 1, 1, 10, tzinfo=UTC)
        assert parsed.tzinfo == UTC

    def test_naive_datetime_rejected(self):
        with pytest.raises(InvalidTimeFormatError):
            parse_instant(datetime(2024, 1, 1, 10), "start_time")


class TestIntervalsOverlap:
    """Half-open [start, end) intervals"""

    T = [datetime(2024, 1, 1, h, tzinfo=UTC) for h in range(24)]

    def test_partial_overlap(self):
        assert intervals_overlap(self.T[10], self.T[12], self.T[11], self.T[13])
        assert intervals_overlap(self.T[11], self.T[13], self.T[10], self.T[12])

    def test_containment(self):
        assert intervals_overlap(self.T[9], self.T[14], self.T[10], self.T[11])

    def test_identical(self):
        assert intervals_overlap(self.T[10], self.T[11], self.T[10], self.T[11])

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(self.T[10], self.T[11], self.T[11], self.T[12])
        assert not intervals_overlap(self.T[11], self.T[12], self.T[10], self.T[11])

    def test_disjoint(self):
        assert not intervals_overlap(self.T[8], self.T[9], self.T[10], self.T[11])


def test_status_partition():
    assert BLOCKING_STATUSES == {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
    assert NON_BLOCKING_STATUSES == {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    assert not BLOCKING_STATUSES & NON_BLOCKING_STATUSES
