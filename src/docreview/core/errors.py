"""Error taxonomy for the review-completion workflow.

Every failure a store or the toggle controller can raise is a
``ReviewError`` subclass tagged with an ``ErrorType``.  The tag is what
the HTTP adapter puts on the wire and what ``HttpAssignmentStore`` uses to
rebuild the same exception on the client side.

Example:
    >>> try:
    ...     await controller.toggle("a1")
    ... except ReviewError as exc:
    ...     if is_retryable(classify_error(exc)):
    ...         schedule_retry()
"""

import sqlite3
from enum import Enum
from typing import Dict, Optional, Type

import httpx


class ErrorType(Enum):
    """Classification of errors for callers and the wire format."""
    NOT_FOUND = "not_found"            # Unknown assignment id
    INVALID_STATUS = "invalid_status"  # Status outside pending/completed
    IN_PROGRESS = "in_progress"        # Toggle already running for the id
    STALE = "stale"                    # Version mismatch on compare-and-set
    EXISTS = "exists"                  # Duplicate id on create
    TRANSPORT = "transport"            # Store unreachable or misbehaving
    UNKNOWN = "unknown"


class ReviewError(Exception):
    """Base class for review workflow errors."""

    error_type: ErrorType = ErrorType.UNKNOWN


class AssignmentNotFound(ReviewError):
    error_type = ErrorType.NOT_FOUND

    def __init__(self, assignment_id: str, message: Optional[str] = None):
        super().__init__(message or f"Review assignment not found: {assignment_id}")
        self.assignment_id = assignment_id


class InvalidStatus(ReviewError, ValueError):
    error_type = ErrorType.INVALID_STATUS


class AlreadyInProgress(ReviewError):
    error_type = ErrorType.IN_PROGRESS

    def __init__(self, assignment_id: str, message: Optional[str] = None):
        super().__init__(message or f"A status change is already in progress for {assignment_id}")
        self.assignment_id = assignment_id


class StaleAssignment(ReviewError):
    error_type = ErrorType.STALE


class AssignmentExists(ReviewError):
    error_type = ErrorType.EXISTS


class TransportError(ReviewError):
    error_type = ErrorType.TRANSPORT


ERROR_CLASSES: Dict[ErrorType, Type[ReviewError]] = {
    ErrorType.NOT_FOUND: AssignmentNotFound,
    ErrorType.INVALID_STATUS: InvalidStatus,
    ErrorType.IN_PROGRESS: AlreadyInProgress,
    ErrorType.STALE: StaleAssignment,
    ErrorType.EXISTS: AssignmentExists,
    ErrorType.TRANSPORT: TransportError,
}


def classify_error(error: Exception) -> ErrorType:
    """
    Classify an exception for display and retry decisions.

    Args:
        error: Exception raised by a store or the controller

    Returns:
        ErrorType enum value
    """
    if isinstance(error, ReviewError):
        return error.error_type

    # Raw backend failures that escaped a store
    if isinstance(error, (httpx.TransportError, httpx.HTTPStatusError, sqlite3.Error)):
        return ErrorType.TRANSPORT

    return ErrorType.UNKNOWN


def is_retryable(error_type: ErrorType) -> bool:
    """
    Whether a caller may sensibly retry the same request later.

    Nothing in this package retries on its own; this only guides callers.
    """
    return error_type in (ErrorType.IN_PROGRESS, ErrorType.STALE, ErrorType.TRANSPORT)


def error_from_payload(code: str, detail: str, assignment_id: str = "") -> ReviewError:
    """Rebuild an exception from the ``{"error", "detail"}`` wire payload."""
    try:
        error_type = ErrorType(code)
    except ValueError:
        return TransportError(f"Unexpected error from review store ({code}): {detail}")

    cls = ERROR_CLASSES.get(error_type, TransportError)
    if cls in (AssignmentNotFound, AlreadyInProgress):
        return cls(assignment_id, detail)
    return cls(detail)
