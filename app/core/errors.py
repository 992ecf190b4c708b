"""
Error taxonomy for the booking core plus deduplicated error logging.

Every failure the services raise is a ``BookingError`` subclass tagged with an
``ErrorKind``. The HTTP layer maps kinds to status codes through
``STATUS_BY_KIND`` and never inspects messages.
"""
import hashlib
import time
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import structlog

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    """Tag carried by every domain error."""
    # input errors: raised before storage is touched
    SELF_BOOKING = "self_booking"
    INVALID_TIME_FORMAT = "invalid_time_format"
    INVALID_INTERVAL = "invalid_interval"
    INVALID_REQUEST = "invalid_request"
    # referential errors
    PARTICIPANT_NOT_FOUND = "participant_not_found"
    USER_NOT_FOUND = "user_not_found"
    NOT_FOUND = "not_found"
    # conflicts
    CONFLICT = "conflict"
    DUPLICATE_EMAIL = "duplicate_email"
    # storage errors
    CREATE_FAILED = "create_failed"
    COMMIT_FAILED = "commit_failed"
    STORAGE = "storage"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.SELF_BOOKING: 400,
    ErrorKind.INVALID_TIME_FORMAT: 400,
    ErrorKind.INVALID_INTERVAL: 400,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.PARTICIPANT_NOT_FOUND: 404,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DUPLICATE_EMAIL: 409,
    ErrorKind.CREATE_FAILED: 500,
    ErrorKind.COMMIT_FAILED: 500,
    ErrorKind.STORAGE: 500,
}

# Kinds whose details must not reach the client
OPAQUE_KINDS = frozenset({ErrorKind.CREATE_FAILED, ErrorKind.COMMIT_FAILED, ErrorKind.STORAGE})

_missing = set(ErrorKind) - set(STATUS_BY_KIND)
if _missing:
    raise RuntimeError(f"STATUS_BY_KIND is missing kinds: {sorted(k.value for k in _missing)}")


class BookingError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.STORAGE
    default_message = "internal error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        if self.kind in OPAQUE_KINDS:
            return {"kind": self.kind.value, "message": "An internal error occurred. Please try again later."}
        body: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class SelfBookingError(BookingError):
    kind = ErrorKind.SELF_BOOKING
    default_message = "user cannot book an appointment with themselves"


class InvalidTimeFormatError(BookingError):
    kind = ErrorKind.INVALID_TIME_FORMAT

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"invalid time format for '{field}', use RFC 3339 with an offset (e.g. 2024-01-01T10:00:00Z)",
            {"field": field},
        )


class InvalidIntervalError(BookingError):
    kind = ErrorKind.INVALID_INTERVAL
    default_message = "end time must be after start time"


class InvalidRequestError(BookingError):
    kind = ErrorKind.INVALID_REQUEST
    default_message = "malformed request"


class ParticipantNotFoundError(BookingError):
    kind = ErrorKind.PARTICIPANT_NOT_FOUND
    default_message = "organizer or participant not found"


class UserNotFoundError(BookingError):
    kind = ErrorKind.USER_NOT_FOUND
    default_message = "user not found"


class NotFoundError(BookingError):
    kind = ErrorKind.NOT_FOUND
    default_message = "appointment not found"


class ConflictError(BookingError):
    kind = ErrorKind.CONFLICT
    default_message = "time slot conflicts with an existing appointment for one of the participants"

    def __init__(self, conflicting_ids: Iterable[int]):
        self.conflicting_ids = sorted(conflicting_ids)
        super().__init__(details={"conflicting_ids": self.conflicting_ids})


class DuplicateEmailError(BookingError):
    kind = ErrorKind.DUPLICATE_EMAIL
    default_message = "email already exists"


class StorageError(BookingError):
    kind = ErrorKind.STORAGE
    default_message = "storage operation failed"


class CreateFailedError(BookingError):
    kind = ErrorKind.CREATE_FAILED
    default_message = "failed to create appointment"


class CommitFailedError(BookingError):
    kind = ErrorKind.COMMIT_FAILED
    default_message = "failed to commit appointment"


class ErrorSeverity(Enum):
    """Error severity levels for log throttling."""
    LOW = "low"           # expected failures: validation, not found, conflicts
    MEDIUM = "medium"     # timeouts, recoverable storage errors
    HIGH = "high"         # failed commits, data integrity
    CRITICAL = "critical"


class ErrorPattern:
    """Track error patterns to reduce duplicate logging."""

    def __init__(self, error_type: str, message: str, context: Dict[str, Any]):
        self.error_type = error_type
        self.message = message[:100]
        self.operation = context.get('operation', '')
        self.fingerprint = self._generate_fingerprint()
        self.first_seen = time.time()
        self.last_seen = self.first_seen
        self.count = 1

    def _generate_fingerprint(self) -> str:
        content = f"{self.error_type}:{self.message}:{self.operation}"
        return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()[:8]

    def update(self):
        self.last_seen = time.time()
        self.count += 1


class ErrorAggregator:
    """Aggregate and deduplicate storage errors before logging them."""

    def __init__(self, log_threshold: int = 10):
        self.log_threshold = log_threshold
        self.patterns: Dict[str, ErrorPattern] = {}

    def _determine_severity(self, error: BaseException) -> ErrorSeverity:
        if isinstance(error, CommitFailedError):
            return ErrorSeverity.HIGH
        if isinstance(error, BookingError) and error.kind not in OPAQUE_KINDS:
            return ErrorSeverity.LOW
        return ErrorSeverity.MEDIUM

    def should_log(self, pattern: ErrorPattern, severity: ErrorSeverity) -> bool:
        if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            return True
        if pattern.count == 1:
            return True
        if severity == ErrorSeverity.MEDIUM and pattern.count % self.log_threshold == 0:
            return True
        if severity == ErrorSeverity.LOW and pattern.count % (self.log_threshold * 5) == 0:
            return True
        return False

    def log_error(self, error: BaseException, context: Optional[Dict[str, Any]] = None,
                  severity: Optional[ErrorSeverity] = None) -> str:
        """Log error with deduplication; returns the pattern fingerprint."""
        context = context or {}
        if severity is None:
            severity = self._determine_severity(error)

        error_type = type(error).__name__
        cause = error.__cause__ or error
        message = str(cause)

        pattern = ErrorPattern(error_type, message, context)
        fingerprint = pattern.fingerprint
        if fingerprint in self.patterns:
            self.patterns[fingerprint].update()
            pattern = self.patterns[fingerprint]
        else:
            self.patterns[fingerprint] = pattern

        if self.should_log(pattern, severity):
            logger.error(
                "aggregated_error",
                error_hash=fingerprint,
                error_type=error_type,
                cause_type=type(cause).__name__,
                error=message,
                count=pattern.count,
                severity=severity.value,
                **context
            )

        return fingerprint

    def get_error_summary(self) -> Dict[str, Any]:
        top = sorted(self.patterns.values(), key=lambda p: p.count, reverse=True)[:5]
        return {
            "total_unique_errors": len(self.patterns),
            "total_error_count": sum(p.count for p in self.patterns.values()),
            "top_errors": [
                {"fingerprint": p.fingerprint, "type": p.error_type, "message": p.message, "count": p.count}
                for p in top
            ],
        }


# Global error aggregator instance
error_aggregator = ErrorAggregator()

def log_error(error: BaseException, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> str:
    """Convenience function to log errors through the global aggregator."""
    return error_aggregator.log_error(error, context, severity)
