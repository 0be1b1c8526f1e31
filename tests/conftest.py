"""Shared fixtures for the review workflow tests."""

import asyncio
from typing import Optional

import pytest

from docreview.core.errors import TransportError
from docreview.core.models import ReviewAssignment
from docreview.store.base import StatusLike
from docreview.store.memory import InMemoryAssignmentStore
from docreview.store.sqlite import SqliteAssignmentStore


class GatedStore(InMemoryAssignmentStore):
    """Memory store whose status writes block until the test opens the gate."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.write_started = asyncio.Event()
        self.set_status_calls = 0

    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        self.set_status_calls += 1
        self.write_started.set()
        await self.gate.wait()
        return await super().set_status(assignment_id, new_status, expected_version)


class UnavailableStore(InMemoryAssignmentStore):
    """Memory store whose status writes fail as if the database were down."""

    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        raise TransportError("database unavailable")


@pytest.fixture
def memory_store():
    return InMemoryAssignmentStore()


@pytest.fixture
def gated_store():
    return GatedStore()


@pytest.fixture
def unavailable_store():
    return UnavailableStore()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store backend that keeps records locally."""
    if request.param == "memory":
        yield InMemoryAssignmentStore()
        return
    sqlite_store = SqliteAssignmentStore(tmp_path / "reviews.db")
    yield sqlite_store
    sqlite_store.conn.close()
