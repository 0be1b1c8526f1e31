"""Assignment store backed by a remote docreview API."""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config.settings import settings
from ..core.errors import ReviewError, TransportError, error_from_payload
from ..core.models import ReviewAssignment, parse_status
from ..utils.logging import get_logger
from .base import AssignmentStore, StatusLike

logger = get_logger(__name__)


class HttpAssignmentStore(AssignmentStore):
    """HTTP client for the ``/api/reviews`` endpoints.

    Errors returned by the server as ``{"error": ..., "detail": ...}`` are
    raised as the matching ``ReviewError``.  Connection failures, timeouts
    and any other unexpected response raise ``TransportError``.  Nothing is
    retried here; that decision belongs to the caller.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.api_timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            headers={"User-Agent": "docreview/0.1.0"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        assignment_id: str = "",
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Review store unreachable: {method} {path}: {e}")
            raise TransportError(f"Review store unreachable: {e}") from e

        if response.is_success:
            return response
        raise self._error_for(response, assignment_id)

    @staticmethod
    def _error_for(response: httpx.Response, assignment_id: str) -> ReviewError:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and "error" in payload:
            return error_from_payload(
                str(payload["error"]),
                str(payload.get("detail", "")),
                assignment_id=assignment_id,
            )
        return TransportError(f"Unexpected response from review store: HTTP {response.status_code}")

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Unexpected response from review store: HTTP {response.status_code} body is not JSON"
            ) from e

    @staticmethod
    def _to_assignment(payload: Any) -> ReviewAssignment:
        try:
            return ReviewAssignment.model_validate(payload)
        except ValidationError as e:
            raise TransportError(f"Unexpected response from review store: {e.error_count()} invalid field(s)") from e

    def _parse_assignment(self, response: httpx.Response) -> ReviewAssignment:
        return self._to_assignment(self._json(response))

    async def get(self, assignment_id: str) -> ReviewAssignment:
        response = await self._request("GET", f"/api/reviews/{assignment_id}", assignment_id)
        return self._parse_assignment(response)

    async def set_status(
        self,
        assignment_id: str,
        new_status: StatusLike,
        expected_version: Optional[int] = None,
    ) -> ReviewAssignment:
        status = parse_status(new_status)
        body: Dict[str, Any] = {"status": status.value}
        if expected_version is not None:
            body["expected_version"] = expected_version
        response = await self._request("PUT", f"/api/reviews/{assignment_id}", assignment_id, json=body)
        return self._parse_assignment(response)

    async def add(self, assignment: ReviewAssignment) -> ReviewAssignment:
        response = await self._request(
            "POST",
            "/api/reviews",
            assignment.assignment_id,
            json=assignment.model_dump(mode="json"),
        )
        return self._parse_assignment(response)

    async def delete(self, assignment_id: str) -> None:
        await self._request("DELETE", f"/api/reviews/{assignment_id}", assignment_id)

    async def list_assignments(
        self,
        document_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[StatusLike] = None,
    ) -> List[ReviewAssignment]:
        params: Dict[str, str] = {}
        if document_id is not None:
            params["document_id"] = document_id
        if assignee_id is not None:
            params["assignee_id"] = assignee_id
        if status is not None:
            params["status"] = parse_status(status).value
        response = await self._request("GET", "/api/reviews", params=params)
        payload = self._json(response)
        if not isinstance(payload, list):
            raise TransportError("Unexpected response from review store: expected a list of assignments")
        return [self._to_assignment(item) for item in payload]

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
