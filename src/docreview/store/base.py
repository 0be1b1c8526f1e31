"""Base classes and interfaces for review assignment stores."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from ..core.models import ReviewAssignment, ReviewStatus


StatusLike = Union[ReviewStatus, str]


class AssignmentStore(ABC):
    """Abstract base class for all assignment stores.

    A store is the single source of truth for assignment records and the
    only writer of ``status``, ``updated_at`` and ``version``.  Every
    mutation is atomic: a read never observes a half-applied change.
    """

    def __init__(self) -> None:
        self.backend_name = self.__class__.__name__.replace("AssignmentStore", "").lower()

    @abstractmethod
    async def get(self, assignment_id: str) -> ReviewAssignment:
        """
        Fetch one assignment.

        Raises:
            AssignmentNotFound: If no record has this id
        """
        raise NotImplementedError

    @abstractmethod
    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        """
        Replace the status of an assignment and refresh ``updated_at``.

        Args:
            assignment_id: Assignment to update
            new_status: ``pending`` or ``completed``
            expected_version: If given, only write when the stored version
                still matches

        Returns:
            The updated assignment

        Raises:
            InvalidStatus: If ``new_status`` is not a review status
            AssignmentNotFound: If no record has this id
            StaleAssignment: If ``expected_version`` no longer matches
        """
        raise NotImplementedError

    @abstractmethod
    async def add(self, assignment: ReviewAssignment) -> ReviewAssignment:
        """
        Store a newly created assignment.

        Raises:
            AssignmentExists: If the id is already taken
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, assignment_id: str) -> None:
        """
        Remove an assignment.

        Raises:
            AssignmentNotFound: If no record has this id
        """
        raise NotImplementedError

    @abstractmethod
    async def list_assignments(
        self,
        document_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[StatusLike] = None,
    ) -> List[ReviewAssignment]:
        """
        List assignments matching every given filter.

        Results are ordered by due date (undated last), then by creation time.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} backend={self.backend_name}>"


def _listing_key(assignment: ReviewAssignment) -> Tuple[bool, datetime, datetime]:
    due = assignment.due_date or assignment.assigned_at
    return (assignment.due_date is None, due, assignment.assigned_at)


def sort_for_listing(assignments: Iterable[ReviewAssignment]) -> List[ReviewAssignment]:
    return sorted(assignments, key=_listing_key)
