"""API routes for review assignments.

The handlers are thin: each one forwards to the store or to the toggle
controller held on ``app.state`` and lets ``ReviewError`` propagate to
the exception handler registered in ``app.py``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from ..core.models import ReviewAssignment, ReviewStatus
from ..store.base import AssignmentStore
from ..workflow.summary import CompletionStatus, completion_status, overdue_assignments
from ..workflow.toggle import ReviewToggleController


router = APIRouter()


class AssignmentCreate(BaseModel):
    """New assignment parameters.  New assignments always start pending."""

    assignee_id: str
    assignment_id: Optional[str] = None
    document_id: Optional[str] = None
    assigned_by: Optional[str] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    """Body for a direct status write.

    ``status`` is a plain string so unknown values reach the store and are
    reported as ``invalid_status``.
    """

    status: str
    expected_version: Optional[int] = None


def _store(request: Request) -> AssignmentStore:
    return request.app.state.store


def _controller(request: Request) -> ReviewToggleController:
    return request.app.state.controller


@router.get("/health")
async def health(request: Request) -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "store": _store(request).backend_name}


@router.post("/api/reviews", status_code=201, response_model=ReviewAssignment)
async def create_assignment(body: AssignmentCreate, request: Request) -> ReviewAssignment:
    fields = body.model_dump(exclude_none=True)
    assignment = ReviewAssignment(**fields)
    return await _store(request).add(assignment)


@router.get("/api/reviews", response_model=List[ReviewAssignment])
async def list_assignments(
    request: Request,
    document_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[ReviewAssignment]:
    """Assignments for a document and/or a user, optionally by status."""
    return await _store(request).list_assignments(
        document_id=document_id,
        assignee_id=assignee_id,
        status=status,
    )


@router.get("/api/reviews/overdue", response_model=List[ReviewAssignment])
async def list_overdue(request: Request) -> List[ReviewAssignment]:
    pending = await _store(request).list_assignments(status=ReviewStatus.PENDING)
    return overdue_assignments(pending)


@router.get("/api/reviews/{assignment_id}", response_model=ReviewAssignment)
async def get_assignment(assignment_id: str, request: Request) -> ReviewAssignment:
    return await _store(request).get(assignment_id)


@router.put("/api/reviews/{assignment_id}", response_model=ReviewAssignment)
async def set_status(assignment_id: str, body: StatusUpdate, request: Request) -> ReviewAssignment:
    """Write a status directly.  This is the store interface used by remote stores."""
    return await _store(request).set_status(
        assignment_id,
        body.status,
        expected_version=body.expected_version,
    )


@router.post("/api/reviews/{assignment_id}/toggle", response_model=ReviewAssignment)
async def toggle_assignment(assignment_id: str, request: Request) -> ReviewAssignment:
    """Flip pending/completed.  Answers 409 while a flip for the id is running."""
    return await _controller(request).toggle(assignment_id)


@router.delete("/api/reviews/{assignment_id}", status_code=204)
async def delete_assignment(assignment_id: str, request: Request) -> Response:
    await _store(request).delete(assignment_id)
    return Response(status_code=204)


@router.get("/api/documents/{document_id}/reviews/summary", response_model=CompletionStatus)
async def document_summary(document_id: str, request: Request) -> CompletionStatus:
    """Review progress across every assignee of a document."""
    assignments = await _store(request).list_assignments(document_id=document_id)
    return completion_status(assignments)
