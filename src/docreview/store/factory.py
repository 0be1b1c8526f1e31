"""Build the configured assignment store."""

from typing import Callable, Dict, Optional

from ..config.settings import settings
from ..utils.logging import get_logger
from .base import AssignmentStore
from .http import HttpAssignmentStore
from .memory import InMemoryAssignmentStore
from .sqlite import SqliteAssignmentStore

logger = get_logger(__name__)


STORE_MAP: Dict[str, Callable[[], AssignmentStore]] = {
    "memory": InMemoryAssignmentStore,
    "sqlite": lambda: SqliteAssignmentStore(settings.database_path),
    "http": lambda: HttpAssignmentStore(settings.api_base_url, timeout=settings.api_timeout),
}


def create_store(backend: Optional[str] = None) -> AssignmentStore:
    """Instantiate the store named by ``backend`` or ``settings.store_backend``."""
    name = (backend or settings.store_backend).lower()
    if name not in STORE_MAP:
        raise ValueError(f"Unknown store backend {name!r}; choose from {', '.join(STORE_MAP)}")
    store = STORE_MAP[name]()
    logger.debug(f"Created {store!r}")
    return store
