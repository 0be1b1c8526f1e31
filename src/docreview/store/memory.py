"""In-process assignment store."""

import asyncio
from typing import Dict, List, Optional

from ..core.errors import AssignmentExists, AssignmentNotFound, StaleAssignment
from ..core.models import ReviewAssignment, parse_status
from ..utils.logging import get_logger
from .base import AssignmentStore, StatusLike, sort_for_listing

logger = get_logger(__name__)


class InMemoryAssignmentStore(AssignmentStore):
    """Dictionary-backed store for tests, demos and single-process use."""

    def __init__(self) -> None:
        super().__init__()
        self._records: Dict[str, ReviewAssignment] = {}
        self._lock = asyncio.Lock()

    async def get(self, assignment_id: str) -> ReviewAssignment:
        async with self._lock:
            return self._require(assignment_id)

    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        status = parse_status(new_status)
        async with self._lock:
            current = self._require(assignment_id)
            if expected_version is not None and current.version != expected_version:
                raise StaleAssignment(
                    f"Assignment {assignment_id} is at version {current.version}, "
                    f"expected {expected_version}"
                )
            updated = current.with_status(status)
            self._records[assignment_id] = updated

        logger.info(
            f"Assignment {assignment_id} set to {status.value}",
            extra={"context": {"assignment_id": assignment_id, "version": updated.version}},
        )
        return updated

    async def add(self, assignment: ReviewAssignment) -> ReviewAssignment:
        async with self._lock:
            if assignment.assignment_id in self._records:
                raise AssignmentExists(f"Assignment {assignment.assignment_id} already exists")
            self._records[assignment.assignment_id] = assignment
        logger.info(f"Added assignment {assignment.assignment_id} for {assignment.assignee_id}")
        return assignment

    async def delete(self, assignment_id: str) -> None:
        async with self._lock:
            self._require(assignment_id)
            del self._records[assignment_id]
        logger.info(f"Deleted assignment {assignment_id}")

    async def list_assignments(
        self,
        document_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[StatusLike] = None,
    ) -> List[ReviewAssignment]:
        wanted = parse_status(status) if status is not None else None
        async with self._lock:
            records = list(self._records.values())
        return sort_for_listing(
            a for a in records
            if (document_id is None or a.document_id == document_id)
            and (assignee_id is None or a.assignee_id == assignee_id)
            and (wanted is None or a.status == wanted)
        )

    async def close(self) -> None:
        # Records outlive close() so a restarted app can keep serving them
        return None

    def _require(self, assignment_id: str) -> ReviewAssignment:
        try:
            return self._records[assignment_id]
        except KeyError:
            raise AssignmentNotFound(assignment_id) from None
