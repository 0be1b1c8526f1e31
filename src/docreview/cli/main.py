"""CLI application using Typer for document review assignments."""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from ..config.settings import settings
from ..core.errors import ReviewError, classify_error, is_retryable
from ..core.models import ReviewAssignment, ReviewStatus
from ..store.base import AssignmentStore
from ..store.factory import STORE_MAP, create_store
from ..utils.logging import get_logger
from ..web.app import start_server as _start_web_server
from ..workflow.summary import completion_status, overdue_assignments
from ..workflow.toggle import ReviewToggleController

T = TypeVar("T")

app = typer.Typer(
    name="docreview",
    help="Document review assignments - mark reviews complete or pending",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# Options shared by every command, filled in by the callback
_state: Dict[str, Any] = {"backend": None}


@app.callback()
def main(
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        "-b",
        help=f"Store backend: memory, sqlite or http (default: {settings.store_backend})",
    ),
) -> None:
    """Manage review assignments from the command line."""
    if backend is not None and backend.lower() not in STORE_MAP:
        raise typer.BadParameter(
            f"unknown backend {backend!r}; choose from {', '.join(STORE_MAP)}",
            param_hint="--backend",
        )
    _state["backend"] = backend


def _execute(action: Callable[[AssignmentStore], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh store, turning review errors into exit code 1."""

    async def _run() -> T:
        store = create_store(_state["backend"])
        try:
            return await action(store)
        finally:
            await store.close()

    try:
        return asyncio.run(_run())
    except ReviewError as exc:
        error_type = classify_error(exc)
        logger.debug(f"Command failed ({error_type.value}): {exc}")
        hint = " - try again later" if is_retryable(error_type) else ""
        console.print(f"[red]Error ({error_type.value}): {exc}{hint}[/red]")
        raise typer.Exit(1)


def _format_time(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _status_markup(status: ReviewStatus) -> str:
    if status == ReviewStatus.COMPLETED:
        return "[green]completed[/green]"
    return "[yellow]pending[/yellow]"


def _print_assignments(assignments: List[ReviewAssignment], title: str) -> None:
    if not assignments:
        console.print("[yellow]No review assignments found[/yellow]")
        return
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Assignee")
    table.add_column("Document")
    table.add_column("Status")
    table.add_column("Due")
    table.add_column("Updated")
    for a in assignments:
        table.add_row(
            a.assignment_id,
            a.assignee_id,
            a.document_id or "-",
            _status_markup(a.status),
            _format_time(a.due_date),
            _format_time(a.updated_at),
        )
    console.print(table)


def _print_assignment(assignment: ReviewAssignment) -> None:
    console.print(f"[bold]Assignment[/bold] {assignment.assignment_id}")
    console.print(f"  Assignee:    {assignment.assignee_id}")
    console.print(f"  Document:    {assignment.document_id or '-'}")
    console.print(f"  Assigned by: {assignment.assigned_by or '-'}")
    console.print(f"  Status:      {_status_markup(assignment.status)}")
    if assignment.completed_at:
        console.print(f"  Completed:   {_format_time(assignment.completed_at)}")
    console.print(f"  Due:         {_format_time(assignment.due_date)}")
    console.print(f"  Updated:     {_format_time(assignment.updated_at)} (version {assignment.version})")
    if assignment.notes:
        console.print(f"  Notes:       {assignment.notes}")


@app.command()
def assign(
    assignee: str = typer.Option(..., "--assignee", "-a", help="User who performs the review"),
    document: Optional[str] = typer.Option(None, "--document", "-d", help="Document under review"),
    assigned_by: Optional[str] = typer.Option(None, "--by", help="User creating the assignment"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes for the reviewer"),
    assignment_id: Optional[str] = typer.Option(None, "--id", help="Explicit assignment id"),
):
    """Create a pending review assignment."""
    fields: Dict[str, Any] = {
        "assignee_id": assignee,
        "document_id": document,
        "assigned_by": assigned_by,
        "notes": notes,
    }
    if due:
        try:
            fields["due_date"] = datetime.fromisoformat(due)
        except ValueError:
            console.print(f"[red]Error: invalid due date {due!r} (expected YYYY-MM-DD)[/red]")
            raise typer.Exit(1)
    if assignment_id:
        fields["assignment_id"] = assignment_id
    assignment = ReviewAssignment(**fields)

    created = _execute(lambda store: store.add(assignment))
    console.print(f"[green]Created assignment {created.assignment_id}[/green]")


@app.command()
def show(assignment_id: str = typer.Argument(..., help="Assignment id")):
    """Show one review assignment."""
    assignment = _execute(lambda store: store.get(assignment_id))
    _print_assignment(assignment)


@app.command()
def toggle(assignment_id: str = typer.Argument(..., help="Assignment id")):
    """Flip an assignment between pending and completed."""

    async def _toggle(store: AssignmentStore) -> ReviewAssignment:
        return await ReviewToggleController(store).toggle(assignment_id)

    updated = _execute(_toggle)
    console.print(f"Review {updated.assignment_id} is now {_status_markup(updated.status)}")


@app.command("list")
def list_assignments(
    document: Optional[str] = typer.Option(None, "--document", "-d", help="Only this document"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Only this reviewer"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="pending or completed"),
):
    """List review assignments, ordered by due date."""
    assignments = _execute(
        lambda store: store.list_assignments(document_id=document, assignee_id=assignee, status=status)
    )
    _print_assignments(assignments, "Review assignments")


@app.command()
def summary(document_id: str = typer.Argument(..., help="Document id")):
    """Show review progress for a document."""
    assignments = _execute(lambda store: store.list_assignments(document_id=document_id))
    progress = completion_status(assignments)
    if progress.total == 0:
        console.print(f"[yellow]No reviews assigned for {document_id}[/yellow]")
        return
    console.print(
        f"{progress.completed} of {progress.total} reviews completed ({progress.percentage}%)"
    )
    if progress.all_completed:
        console.print("[green]All reviews completed![/green]")
    else:
        plural = "s" if progress.remaining != 1 else ""
        console.print(f"[yellow]Waiting for {progress.remaining} review{plural}[/yellow]")
    _print_assignments(assignments, f"Reviews for {document_id}")


@app.command()
def overdue():
    """List pending assignments past their due date."""
    pending = _execute(lambda store: store.list_assignments(status=ReviewStatus.PENDING))
    _print_assignments(overdue_assignments(pending), "Overdue reviews")


@app.command()
def remove(assignment_id: str = typer.Argument(..., help="Assignment id")):
    """Delete a review assignment."""
    _execute(lambda store: store.delete(assignment_id))
    console.print(f"[green]Deleted assignment {assignment_id}[/green]")


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Hostname to bind the web server to."),
    port: int = typer.Option(settings.port, "--port", help="Port for the web server."),
    reload: bool = typer.Option(False, "--reload/--no-reload", help="Enable auto-reload (development only)."),
) -> None:
    """Start the review API server."""
    console.print(f"[bold blue]Starting web server[/bold blue] at http://{host}:{port}")
    _start_web_server(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
