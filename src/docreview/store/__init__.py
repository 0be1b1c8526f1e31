"""Review assignment stores.

A store owns the authoritative ``ReviewAssignment`` records and is the
only component that writes them.  Three backends share one interface:

- ``InMemoryAssignmentStore`` for tests and single-process use
- ``SqliteAssignmentStore`` for a durable local file
- ``HttpAssignmentStore`` for talking to another docreview API

Use ``create_store()`` to build whichever backend settings select.
"""

from .base import AssignmentStore
from .memory import InMemoryAssignmentStore
from .sqlite import SqliteAssignmentStore
from .http import HttpAssignmentStore
from .factory import create_store, STORE_MAP

__all__ = [
    "AssignmentStore",
    "InMemoryAssignmentStore",
    "SqliteAssignmentStore",
    "HttpAssignmentStore",
    "create_store",
    "STORE_MAP",
]
