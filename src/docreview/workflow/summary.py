"""Read-side helpers over lists of review assignments."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, computed_field

from ..core.models import ReviewAssignment, ReviewStatus, utcnow


class CompletionStatus(BaseModel):
    """Review progress for one document."""

    completed: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    percentage: int = Field(0, ge=0, le=100)

    @computed_field
    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @computed_field
    @property
    def all_completed(self) -> bool:
        """True only when there is at least one review and every one is done."""
        return self.total > 0 and self.completed == self.total


def completion_status(assignments: Iterable[ReviewAssignment]) -> CompletionStatus:
    """Count completed reviews.  The percentage rounds halves up."""
    items = list(assignments)
    total = len(items)
    completed = sum(1 for a in items if a.status == ReviewStatus.COMPLETED)
    percentage = (completed * 200 + total) // (2 * total) if total else 0
    return CompletionStatus(completed=completed, total=total, percentage=percentage)


def overdue_assignments(
    assignments: Iterable[ReviewAssignment],
    now: Optional[datetime] = None,
) -> List[ReviewAssignment]:
    """Pending assignments whose due date has passed, earliest first."""
    now = now or utcnow()
    late = [a for a in assignments if a.is_overdue(now)]
    return sorted(late, key=lambda a: a.due_date)


def assignment_for_user(
    assignments: Iterable[ReviewAssignment],
    user_id: str,
) -> Optional[ReviewAssignment]:
    """The assignment a given user holds, if any."""
    for assignment in assignments:
        if assignment.assignee_id == user_id:
            return assignment
    return None
