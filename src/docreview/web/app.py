"""FastAPI application for the review-completion workflow.

This module builds the FastAPI application, wires a store and a toggle
controller onto ``app.state``, maps ``ReviewError`` to JSON error
responses and provides a convenience function to launch the server via
Uvicorn.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from .routes import router
from ..config.settings import settings
from ..core.errors import ErrorType, ReviewError
from ..store.base import AssignmentStore
from ..store.factory import create_store
from ..utils.logging import get_logger
from ..workflow.toggle import ReviewToggleController

logger = get_logger(__name__)


HTTP_STATUS: Dict[ErrorType, int] = {
    ErrorType.NOT_FOUND: 404,
    ErrorType.INVALID_STATUS: 422,
    ErrorType.IN_PROGRESS: 409,
    ErrorType.STALE: 409,
    ErrorType.EXISTS: 409,
    ErrorType.TRANSPORT: 503,
    ErrorType.UNKNOWN: 500,
}


async def review_error_handler(request: Request, exc: ReviewError) -> JSONResponse:
    """Render a ``ReviewError`` as ``{"error": code, "detail": message}``."""
    status_code = HTTP_STATUS.get(exc.error_type, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.error_type.value, "detail": str(exc)},
    )


def create_app(store: Optional[AssignmentStore] = None) -> FastAPI:
    """Build the API around ``store`` (default: the configured backend)."""
    if store is None:
        store = create_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.store.close()

    app = FastAPI(
        title="Document Review API",
        description="Review assignments and completion toggling",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.controller = ReviewToggleController(store)
    app.add_exception_handler(ReviewError, review_error_handler)
    app.include_router(router)
    return app


def start_server(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Start the Uvicorn web server.

    Parameters
    ----------
    host: str
        Host to bind the server to. Defaults to ``settings.host``.
    port: int
        Port to listen on. Defaults to ``settings.port``.
    reload: bool
        Whether to enable auto-reload. Useful during development.
    """
    uvicorn.run(
        "docreview.web.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    start_server()
