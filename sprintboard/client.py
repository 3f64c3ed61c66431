"""Small HTTP client for driving a sprint board against the API."""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from .core import errors
from .core.config import settings
from .schemas.issue import IssueOut
from .schemas.sprint import SprintOut
from .services.board import SprintBoard
from .services.ordering import IssueSlot, MoveInstruction

# Error envelope ``code`` -> exception class. ``not_found`` covers
# cross-organization access too, the server does not tell them apart.
ERROR_CODES: dict[str, type[errors.TrackerError]] = {
    cls.code: cls
    for cls in (
        errors.Unauthorized,
        errors.NoOrganizationSelected,
        errors.AccessDenied,
        errors.NotFound,
        errors.InvalidSprintTransition,
        errors.BoardReadOnly,
        errors.ValidationError,
        errors.Conflict,
        errors.PersistenceFailure,
    )
}


class SprintBoardClient:
    def __init__(
        self,
        base_url: str = "",
        *,
        token: str,
        org_id: str,
        http: httpx.Client | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self._headers = {
            "Authorization": f"Bearer {token}",
            settings.ORG_HEADER: org_id,
        }

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "SprintBoardClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._http.request(method, path, headers=self._headers, **kwargs)
        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise errors.TrackerError(f"Unexpected non-JSON response from {path}") from exc
        try:
            body = response.json()
        except ValueError:
            body = {}
        error_cls = ERROR_CODES.get(body.get("code"), errors.TrackerError)
        raise error_cls(body.get("message") or response.reason_phrase, details=body.get("details"))

    def get_sprint(self, project_id: int, sprint_id: int) -> SprintOut:
        for record in self._request("GET", f"/api/v1/projects/{project_id}/sprints"):
            if record["id"] == sprint_id:
                return SprintOut.model_validate(record)
        raise errors.NotFound("Sprint not found")

    def get_sprint_issues(self, sprint_id: int) -> list[IssueOut]:
        records = self._request("GET", f"/api/v1/sprints/{sprint_id}/issues")
        return [IssueOut.model_validate(record) for record in records]

    def reorder(self, slots: Iterable[IssueSlot]) -> int:
        payload = {"issues": [{"id": slot.id, "status": slot.status, "order": slot.order} for slot in slots]}
        return self._request("POST", "/api/v1/issues/reorder", json=payload)["updated"]

    def move(self, sprint_id: int, move: MoveInstruction) -> list[IssueOut]:
        payload = {
            "source_status": move.source_status,
            "source_index": move.source_index,
            "destination_status": move.destination_status,
            "destination_index": move.destination_index,
        }
        records = self._request("POST", f"/api/v1/sprints/{sprint_id}/board/move", json=payload)
        return [IssueOut.model_validate(record) for record in records]

    def board(self, sprint: SprintOut) -> SprintBoard:
        """A loaded :class:`SprintBoard` wired to this client."""

        board = SprintBoard(
            sprint.status,
            fetch=lambda: self.get_sprint_issues(sprint.id),
            persist=self.reorder,
        )
        board.refresh()
        return board


__all__ = ["ERROR_CODES", "SprintBoardClient"]
