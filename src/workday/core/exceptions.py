from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``data`` optionally carries a record the client may still want to display
    (e.g. the attendance that was already marked today).
    """

    def __init__(self, message: str, *, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when the addressed record does not exist."""


class DuplicateRecordError(ValidationError):
    """Raised when a uniqueness constraint (e.g. one record per user per day) is hit."""


class AlreadyMarkedError(DuplicateRecordError):
    """Attendance already exists for today; ``data`` holds the existing record."""


class DuplicateReportError(DuplicateRecordError):
    """A daily report was already submitted today."""


class AlreadyCheckedOutError(ValidationError):
    """Check-out was already recorded for today."""


class NoAttendanceError(ValidationError):
    """A daily report needs today's attendance first."""


class InvalidAssigneeError(ValidationError):
    """Tasks can only be assigned to existing employees."""


class EditWindowClosedError(DomainError):
    """The record can no longer be edited (its day has passed)."""


class StorageError(DomainError):
    """Unexpected persistence failure."""
