"""Typed failures raised by the interval store and the edit workflow."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for every failure the command layer reports to the user."""


class InvalidFilterArgument(TrackerError, ValueError):
    """Raised when filter tokens are neither a keyword nor a YYYY-MM-DD date."""


class AlreadyTrackingError(TrackerError):
    """Raised when starting an interval while another one is still open."""


class NotFoundError(TrackerError, LookupError):
    """Raised when an interval id does not match a stored interval."""


class InvalidIntervalError(TrackerError, ValueError):
    """Raised when an interval cannot be written: duplicate id or no begin time."""


class EmptyStoreError(TrackerError):
    """Raised when an operation needs at least one stored interval."""


class CorruptStoreError(TrackerError):
    """Raised when the persisted store file cannot be read back."""


class EditorError(TrackerError):
    """Raised when the external editor cannot be launched or exits non-zero."""


class EditParseError(TrackerError, ValueError):
    """Raised for a malformed line in an edit document."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.detail = message
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class MissingDateError(EditParseError):
    pass


class DateParseError(EditParseError):
    pass


class DurationParseError(EditParseError):
    pass
