#!/usr/bin/env python3
"""
Error taxonomy: every kind maps to a status, storage errors stay opaque.
"""

import pytest

from app.core.errors import (
    OPAQUE_KINDS,
    STATUS_BY_KIND,
    BookingError,
    CommitFailedError,
    ConflictError,
    ErrorAggregator,
    ErrorKind,
    ErrorPattern,
    ErrorSeverity,
    InvalidTimeFormatError,
    StorageError,
)


def _all_error_classes(cls=BookingError):
    for sub in cls.__subclasses__():
        yield sub
        yield from _all_error_classes(sub)


def test_every_kind_has_a_status():
    assert set(STATUS_BY_KIND) == set(ErrorKind)


def test_every_kind_has_an_error_class():
    assert {c.kind for c in _all_error_classes()} == set(ErrorKind)


def test_storage_kinds_are_server_errors():
    for kind in OPAQUE_KINDS:
        assert STATUS_BY_KIND[kind] == 500


def test_opaque_errors_hide_message_and_details():
    error = StorageError("connection refused on 10.0.0.5", details={"dsn": "secret"})

    body = error.to_dict()

    assert body["kind"] == "storage"
    assert "10.0.0.5" not in body["message"]
    assert "details" not in body


def test_conflict_lists_sorted_ids():
    error = ConflictError([7, 3, 5])

    assert error.status_code == 409
    assert error.to_dict()["details"] == {"conflicting_ids": [3, 5, 7]}


def test_time_format_error_names_field():
    error = InvalidTimeFormatError("end_time")

    assert error.status_code == 400
    assert error.to_dict()["details"] == {"field": "end_time"}


class TestErrorAggregator:
    """Deduplicated logging of storage failures"""

    def test_repeated_errors_share_a_fingerprint(self):
        aggregator = ErrorAggregator()

        first = aggregator.log_error(StorageError("scan failed"), {"operation": "scan"})
        second = aggregator.log_error(StorageError("scan failed"), {"operation": "scan"})

        assert first == second
        summary = aggregator.get_error_summary()
        assert summary["total_unique_errors"] == 1
        assert summary["total_error_count"] == 2

    @pytest.mark.parametrize("count, expected", [(1, True), (2, False), (10, True)])
    def test_medium_severity_is_throttled(self, count, expected):
        aggregator = ErrorAggregator(log_threshold=10)
        pattern = ErrorPattern("StorageError", "boom", {})
        pattern.count = count

        assert aggregator.should_log(pattern, ErrorSeverity.MEDIUM) is expected

    def test_commit_failures_always_logged(self):
        aggregator = ErrorAggregator()
        for _ in range(3):
            aggregator.log_error(CommitFailedError())
        pattern = next(iter(aggregator.patterns.values()))

        assert aggregator.should_log(pattern, ErrorSeverity.HIGH)
