"""Single-flight toggling of review completion status."""

import asyncio
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Set

from ..core.errors import AlreadyInProgress, classify_error
from ..core.models import ReviewAssignment, ReviewStatus
from ..store.base import AssignmentStore
from ..utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[ReviewAssignment], None]


class ToggleState(Enum):
    """Controller's view of one assignment."""
    IDLE = "idle"            # No status write outstanding
    TOGGLING = "toggling"    # Write issued, waiting for the store


def flip_status(status: ReviewStatus) -> ReviewStatus:
    """The status a toggle moves to: pending <-> completed."""
    if status == ReviewStatus.PENDING:
        return ReviewStatus.COMPLETED
    return ReviewStatus.PENDING


class ReviewToggleController:
    """
    Turn "mark my review done / not done" clicks into store writes.

    At most one toggle per assignment is outstanding at a time.  A second
    toggle for the same assignment while the first is still waiting on the
    store is rejected with ``AlreadyInProgress`` before it does any I/O;
    toggles on different assignments run independently.  Cancelling a
    toggle does not abandon a write already issued: the assignment stays
    in flight until the store has answered.

    The in-flight registry is plain state on the controller, so one
    controller must be used from a single event loop.

    Example:
        >>> controller = ReviewToggleController(store)
        >>> updated = await controller.toggle("a1")
        >>> updated.status
        <ReviewStatus.COMPLETED: 'completed'>
    """

    def __init__(self, store: AssignmentStore):
        """
        Initialize controller.

        Args:
            store: Store that owns the assignment records
        """
        self.store = store
        self._in_flight: Set[str] = set()
        self._listeners: List[Listener] = []

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    def is_in_flight(self, assignment_id: str) -> bool:
        return assignment_id in self._in_flight

    def state(self, assignment_id: str) -> ToggleState:
        return ToggleState.TOGGLING if assignment_id in self._in_flight else ToggleState.IDLE

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked with each successfully toggled record."""
        self._listeners.append(listener)

    async def toggle(
        self,
        assignment_id: str,
        snapshot: Optional[ReviewAssignment] = None,
    ) -> ReviewAssignment:
        """
        Flip an assignment between pending and completed.

        Args:
            assignment_id: Assignment to flip
            snapshot: Caller's copy of the record.  Only used to pick the
                target status; the write is conditional on its version, so
                a stale copy fails with ``StaleAssignment`` instead of
                writing the wrong value.

        Returns:
            The updated assignment as committed by the store

        Raises:
            AlreadyInProgress: A toggle for this assignment is outstanding
            AssignmentNotFound: Unknown assignment id
            StaleAssignment: The record changed since it was read
            TransportError: The store could not be reached
        """
        if snapshot is not None and snapshot.assignment_id != assignment_id:
            raise ValueError(
                f"Snapshot is for {snapshot.assignment_id}, not {assignment_id}"
            )

        # Check and mark happen before the first await
        if assignment_id in self._in_flight:
            logger.info(f"Rejected toggle for {assignment_id}: already in progress")
            raise AlreadyInProgress(assignment_id)
        self._in_flight.add(assignment_id)

        try:
            current = snapshot if snapshot is not None else await self.store.get(assignment_id)
            target = flip_status(current.status)
            write = asyncio.ensure_future(
                self.store.set_status(assignment_id, target, expected_version=current.version)
            )
            try:
                updated = await asyncio.shield(write)
            except asyncio.CancelledError:
                # An issued write runs to completion; keep the guard until it settles
                await asyncio.wait([write])
                if not write.cancelled() and write.exception() is not None:
                    logger.warning(f"Cancelled toggle for {assignment_id} failed: {write.exception()}")
                else:
                    logger.info(f"Toggle for {assignment_id} cancelled after its write landed")
                raise
        except Exception as e:
            logger.warning(
                f"Toggle failed for {assignment_id}: {e}",
                extra={"context": {"assignment_id": assignment_id, "error_type": classify_error(e).value}},
            )
            raise
        finally:
            self._in_flight.discard(assignment_id)

        logger.info(
            f"Toggled {assignment_id}: {current.status.value} -> {updated.status.value}",
            extra={"context": {"assignment_id": assignment_id, "version": updated.version}},
        )
        self._notify(updated)
        return updated

    def _notify(self, updated: ReviewAssignment) -> None:
        for listener in self._listeners:
            try:
                listener(updated)
            except Exception:
                logger.exception(f"Status listener failed for {updated.assignment_id}")
