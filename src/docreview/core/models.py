"""Core domain models for review assignments."""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidStatus


class ReviewStatus(str, Enum):
    """The two states a review assignment can be in."""
    PENDING = "pending"
    COMPLETED = "completed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current UTC time, bumped past ``previous`` if the clock has not moved."""
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def parse_status(value: Union[ReviewStatus, str]) -> ReviewStatus:
    """Validate a status value coming from a caller or the wire."""
    if isinstance(value, ReviewStatus):
        return value
    try:
        return ReviewStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ReviewStatus)
        raise InvalidStatus(f"Invalid review status {value!r}; expected one of: {allowed}") from None


class ReviewAssignment(BaseModel):
    """A single reviewer's assignment on a document.

    Instances are immutable snapshots.  The store owns the authoritative
    record and hands out a fresh snapshot after every change.
    """

    model_config = ConfigDict(frozen=True)

    assignment_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Internal unique ID")
    assignee_id: str = Field(..., description="User responsible for the review")
    status: ReviewStatus = ReviewStatus.PENDING
    updated_at: datetime = Field(default_factory=utcnow, description="Last status transition")
    version: int = Field(0, ge=0, description="Incremented on every status write")

    # Assignment metadata, fixed at creation
    document_id: Optional[str] = None
    assigned_by: Optional[str] = None
    assigned_at: datetime = Field(default_factory=utcnow)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = Field(None, description="When the review was last marked completed")

    @field_validator("updated_at", "assigned_at", "due_date", "completed_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are taken to be UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_completed(self) -> bool:
        return self.status == ReviewStatus.COMPLETED

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Pending with a due date in the past."""
        if self.due_date is None or self.is_completed:
            return False
        return self.due_date < (now or utcnow())

    def with_status(self, status: ReviewStatus) -> "ReviewAssignment":
        """Snapshot of this record after a status write.

        Writing ``completed`` stamps ``completed_at``; moving back to
        ``pending`` clears it.
        """
        updated_at = next_timestamp(self.updated_at)
        return self.model_copy(
            update={
                "status": status,
                "updated_at": updated_at,
                "version": self.version + 1,
                "completed_at": updated_at if status == ReviewStatus.COMPLETED else None,
            }
        )
