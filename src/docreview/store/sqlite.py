"""Durable assignment store using SQLite."""

import asyncio
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Tuple, TypeVar

from ..core.errors import AssignmentExists, AssignmentNotFound, StaleAssignment, TransportError
from ..core.models import ReviewAssignment, ReviewStatus, parse_status
from ..utils.logging import get_logger
from .base import AssignmentStore, StatusLike, sort_for_listing

logger = get_logger(__name__)

T = TypeVar("T")

_COLUMNS = (
    "assignment_id, assignee_id, status, updated_at, version, "
    "document_id, assigned_by, assigned_at, due_date, notes, completed_at"
)


class SqliteAssignmentStore(AssignmentStore):
    """
    SQLite-backed store safe for several processes sharing one file.

    Every write runs inside ``BEGIN IMMEDIATE`` so the read that checks
    existence and version and the ``UPDATE`` that follows cannot be
    interleaved with another writer.  Blocking sqlite calls run in a worker
    thread, one at a time.
    """

    def __init__(self, db_path: Path) -> None:
        super().__init__()
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Transactions are managed explicitly
        self.conn = sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        self.conn.execute("PRAGMA journal_mode = WAL")
        self.conn.execute("PRAGMA synchronous = NORMAL")
        self.conn.execute("PRAGMA busy_timeout = 5000")
        self._init_schema()
        self._lock = asyncio.Lock()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS review_assignments (
                assignment_id TEXT PRIMARY KEY,
                assignee_id TEXT NOT NULL,
                status TEXT NOT NULL CHECK (status IN ('pending', 'completed')),
                updated_at TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 0,
                document_id TEXT,
                assigned_by TEXT,
                assigned_at TEXT NOT NULL,
                due_date TEXT,
                notes TEXT,
                completed_at TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_assignments_document ON review_assignments(document_id, assignee_id);
            CREATE INDEX IF NOT EXISTS idx_assignments_due ON review_assignments(due_date);
            CREATE INDEX IF NOT EXISTS idx_assignments_status ON review_assignments(status);
            """
        )
        # Databases created before completed_at was tracked
        columns = {row[1] for row in self.conn.execute("PRAGMA table_info(review_assignments)")}
        if "completed_at" not in columns:
            self.conn.execute("ALTER TABLE review_assignments ADD COLUMN completed_at TEXT")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield self.conn
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        else:
            self.conn.execute("COMMIT")

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        async with self._lock:
            work = asyncio.ensure_future(asyncio.to_thread(func, *args))
            try:
                return await asyncio.shield(work)
            except asyncio.CancelledError:
                # The worker thread cannot be stopped; keep the connection locked until it returns
                await asyncio.wait([work])
                if not work.cancelled() and work.exception() is not None:
                    logger.warning(f"SQLite call failed after cancellation: {work.exception()}")
                raise
            except sqlite3.Error as e:
                logger.error(f"SQLite store failure: {e}")
                raise TransportError(f"SQLite store failure: {e}") from e

    @staticmethod
    def _row_to_assignment(row: Tuple[Any, ...]) -> ReviewAssignment:
        return ReviewAssignment(
            assignment_id=row[0],
            assignee_id=row[1],
            status=ReviewStatus(row[2]),
            updated_at=datetime.fromisoformat(row[3]),
            version=row[4],
            document_id=row[5],
            assigned_by=row[6],
            assigned_at=datetime.fromisoformat(row[7]),
            due_date=datetime.fromisoformat(row[8]) if row[8] else None,
            notes=row[9],
            completed_at=datetime.fromisoformat(row[10]) if row[10] else None,
        )

    def _fetch(self, assignment_id: str) -> ReviewAssignment:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM review_assignments WHERE assignment_id = ?",
            (assignment_id,),
        )
        row = cur.fetchone()
        if not row:
            raise AssignmentNotFound(assignment_id)
        return self._row_to_assignment(row)

    def _set_status_sync(
        self, assignment_id: str, status: ReviewStatus, expected_version: Optional[int]
    ) -> ReviewAssignment:
        with self._transaction() as conn:
            current = self._fetch(assignment_id)
            if expected_version is not None and current.version != expected_version:
                raise StaleAssignment(
                    f"Assignment {assignment_id} is at version {current.version}, "
                    f"expected {expected_version}"
                )
            updated = current.with_status(status)
            cur = conn.execute(
                """UPDATE review_assignments SET status = ?, updated_at = ?, version = ?, completed_at = ?
                   WHERE assignment_id = ? AND version = ?""",
                (
                    updated.status.value,
                    updated.updated_at.isoformat(),
                    updated.version,
                    updated.completed_at.isoformat() if updated.completed_at else None,
                    assignment_id,
                    current.version,
                ),
            )
            # Another writer got in between the read and the update
            if cur.rowcount != 1:
                raise StaleAssignment(f"Assignment {assignment_id} changed during the update")
        return updated

    def _add_sync(self, assignment: ReviewAssignment) -> ReviewAssignment:
        with self._transaction() as conn:
            cur = conn.execute(
                "SELECT 1 FROM review_assignments WHERE assignment_id = ?",
                (assignment.assignment_id,),
            )
            if cur.fetchone():
                raise AssignmentExists(f"Assignment {assignment.assignment_id} already exists")
            conn.execute(
                f"INSERT INTO review_assignments ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    assignment.assignment_id,
                    assignment.assignee_id,
                    assignment.status.value,
                    assignment.updated_at.isoformat(),
                    assignment.version,
                    assignment.document_id,
                    assignment.assigned_by,
                    assignment.assigned_at.isoformat(),
                    assignment.due_date.isoformat() if assignment.due_date else None,
                    assignment.notes,
                    assignment.completed_at.isoformat() if assignment.completed_at else None,
                ),
            )
        return assignment

    def _delete_sync(self, assignment_id: str) -> None:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM review_assignments WHERE assignment_id = ?", (assignment_id,))
            if cur.rowcount == 0:
                raise AssignmentNotFound(assignment_id)

    def _list_sync(
        self,
        document_id: Optional[str],
        assignee_id: Optional[str],
        status: Optional[ReviewStatus],
    ) -> List[ReviewAssignment]:
        clauses: List[str] = []
        params: List[Any] = []
        if document_id is not None:
            clauses.append("document_id = ?")
            params.append(document_id)
        if assignee_id is not None:
            clauses.append("assignee_id = ?")
            params.append(assignee_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        cur = self.conn.execute(f"SELECT {_COLUMNS} FROM review_assignments{where}", params)
        return sort_for_listing(self._row_to_assignment(row) for row in cur.fetchall())

    async def get(self, assignment_id: str) -> ReviewAssignment:
        return await self._run(self._fetch, assignment_id)

    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        status = parse_status(new_status)
        updated = await self._run(self._set_status_sync, assignment_id, status, expected_version)
        logger.info(
            f"Assignment {assignment_id} set to {status.value}",
            extra={"context": {"assignment_id": assignment_id, "version": updated.version}},
        )
        return updated

    async def add(self, assignment: ReviewAssignment) -> ReviewAssignment:
        stored = await self._run(self._add_sync, assignment)
        logger.info(f"Added assignment {assignment.assignment_id} for {assignment.assignee_id}")
        return stored

    async def delete(self, assignment_id: str) -> None:
        await self._run(self._delete_sync, assignment_id)
        logger.info(f"Deleted assignment {assignment_id}")

    async def list_assignments(
        self,
        document_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[StatusLike] = None,
    ) -> List[ReviewAssignment]:
        wanted = parse_status(status) if status is not None else None
        return await self._run(self._list_sync, document_id, assignee_id, wanted)

    async def close(self) -> None:
        async with self._lock:
            self.conn.close()
