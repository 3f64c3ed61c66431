"""Client-side view of one sprint board.

:class:`SprintBoard` keeps the issues a user is looking at, applies moves
optimistically and talks to the server through two callables:

* ``fetch()`` returns the authoritative issue list for the sprint,
* ``persist(slots)`` writes a batch of ``(id, status, order)`` changes.

When ``persist`` fails for any reason the view is replaced with a fresh
``fetch()`` rather than undone locally, and the error is re-raised for the
caller to show. If that re-fetch fails too, its error is raised with the
persist error as its cause.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from ..core.errors import BoardReadOnly
from ..core.statuses import ISSUE_STATUS_CHOICES, SPRINT_STATUS_ACTIVE, SPRINT_STATUS_COMPLETED, SPRINT_STATUS_PLANNED
from ..schemas.issue import IssueOut
from .ordering import IssueSlot, MoveInstruction, apply_move, changed_slots

logger = logging.getLogger(__name__)

FetchIssues = Callable[[], Sequence[IssueOut]]
PersistOrder = Callable[[list[IssueSlot]], Any]


class SprintBoard:
    def __init__(self, sprint_status: str, fetch: FetchIssues, persist: PersistOrder) -> None:
        self.sprint_status = sprint_status
        self._fetch = fetch
        self._persist = persist
        self.issues: list[IssueOut] = []
        self.in_flight = False

    @property
    def drag_enabled(self) -> bool:
        return self.sprint_status == SPRINT_STATUS_ACTIVE and not self.in_flight

    def refresh(self) -> list[IssueOut]:
        """Replace the view with the server's current list."""

        self.issues = list(self._fetch())
        return self.issues

    def columns(self) -> dict[str, list[IssueOut]]:
        lanes: dict[str, list[IssueOut]] = {status: [] for status in ISSUE_STATUS_CHOICES}
        for issue in self.issues:
            lanes.setdefault(issue.status, []).append(issue)
        for lane in lanes.values():
            lane.sort(key=lambda issue: issue.order)
        return lanes

    def replace_issue(self, updated: IssueOut) -> None:
        self.issues = [updated if issue.id == updated.id else issue for issue in self.issues]

    def _check_editable(self) -> None:
        if self.sprint_status == SPRINT_STATUS_PLANNED:
            raise BoardReadOnly("Start the sprint to update board")
        if self.sprint_status == SPRINT_STATUS_COMPLETED:
            raise BoardReadOnly("Cannot update board after sprint end")
        if self.in_flight:
            raise BoardReadOnly("A reorder is already being saved")

    def move(self, move: MoveInstruction) -> bool:
        """Apply ``move`` locally, then persist it.

        Returns ``False`` for a no-op move (nothing is sent).
        """

        self._check_editable()
        if move.is_noop:
            return False

        before = [IssueSlot.from_issue(issue) for issue in self.issues]
        after = apply_move(before, move)
        by_id = {issue.id: issue for issue in self.issues}
        self.issues = [
            by_id[slot.id].model_copy(update={"status": slot.status, "order": slot.order}) for slot in after
        ]

        self.in_flight = True
        try:
            self._persist(changed_slots(before, after))
        except Exception as exc:
            logger.warning("board.reorder.failed", extra={"extra_data": {"error": str(exc)}})
            try:
                self.refresh()
            except Exception as refresh_exc:
                raise refresh_exc from exc
            raise
        finally:
            self.in_flight = False
        return True


__all__ = ["SprintBoard"]
