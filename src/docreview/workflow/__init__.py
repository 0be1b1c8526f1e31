"""Review-completion workflow.

This package holds the toggle controller that lets an assignee mark a
review complete or pending, plus small read-side helpers that summarise
progress across a document's reviewers.
"""

from .toggle import ReviewToggleController, ToggleState, flip_status  # noqa: F401
from .summary import (  # noqa: F401
    CompletionStatus,
    completion_status,
    overdue_assignments,
    assignment_for_user,
)
