"""Sprint board ordering.

A sprint board is a set of columns, one per issue status. Each issue carries
an ``order`` that ranks it inside its own column only; the same number can
appear in two different columns. Moving a card is described by a
:class:`MoveInstruction` (the normalized form of a drag-and-drop result) and
:func:`apply_move` turns the current board plus an instruction into the new
board with dense ``0..N-1`` orders in every touched column.

Nothing here talks to the database. Callers persist the result through
:func:`sprintboard.crud.issues.apply_issue_order`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Sequence

from ..core.errors import ValidationError
from ..core.statuses import ISSUE_STATUS_CHOICES, status_rank


@dataclass(frozen=True)
class IssueSlot:
    """Where a single issue sits on the board."""

    id: int
    status: str
    order: int

    @classmethod
    def from_issue(cls, issue: Any) -> "IssueSlot":
        return cls(id=issue.id, status=issue.status, order=issue.order)


@dataclass(frozen=True)
class MoveInstruction:
    source_status: str
    source_index: int
    destination_status: str
    destination_index: int

    @property
    def is_noop(self) -> bool:
        return self.source_status == self.destination_status and self.source_index == self.destination_index

    @property
    def same_column(self) -> bool:
        return self.source_status == self.destination_status

    @classmethod
    def from_drag_result(cls, result: Mapping[str, Any]) -> "MoveInstruction | None":
        """Normalize a drag-and-drop ``{source, destination}`` result.

        Returns ``None`` when the card was dropped outside any column.
        """

        source = result.get("source") or {}
        destination = result.get("destination")
        if not destination:
            return None
        return cls(
            source_status=str(source.get("droppableId")),
            source_index=int(source.get("index", 0)),
            destination_status=str(destination.get("droppableId")),
            destination_index=int(destination.get("index", 0)),
        )


def _check_status(status: str) -> None:
    if status not in ISSUE_STATUS_CHOICES:
        raise ValidationError(f"Unknown issue status: {status}")


def sort_for_display(slots: Iterable[IssueSlot]) -> list[IssueSlot]:
    return sorted(slots, key=lambda slot: (status_rank(slot.status), slot.order))


def build_columns(slots: Sequence[IssueSlot]) -> dict[str, list[IssueSlot]]:
    """Group slots by status, each column ranked by ``order``.

    Ties on ``order`` keep the incoming sequence, which is the order the
    board was rendered in.
    """

    columns: dict[str, list[tuple[int, int, IssueSlot]]] = {}
    for position, slot in enumerate(slots):
        columns.setdefault(slot.status, []).append((slot.order, position, slot))
    return {status: [slot for _, _, slot in sorted(entries)] for status, entries in columns.items()}


def _renumber(column: list[IssueSlot], status: str) -> list[IssueSlot]:
    return [replace(slot, status=status, order=index) for index, slot in enumerate(column)]


def apply_move(slots: Sequence[IssueSlot], move: MoveInstruction) -> list[IssueSlot]:
    """Return the whole board after ``move``, sorted for display.

    Only the source and destination columns are renumbered; every other
    slot is carried over untouched. A no-op move returns the input as a new
    list without touching any slot.
    """

    _check_status(move.source_status)
    _check_status(move.destination_status)
    if move.is_noop:
        return list(slots)

    columns = build_columns(slots)
    source = list(columns.get(move.source_status, []))
    if not 0 <= move.source_index < len(source):
        raise ValidationError(
            f"source_index {move.source_index} is outside column {move.source_status} (size {len(source)})"
        )

    if move.same_column:
        if not 0 <= move.destination_index < len(source):
            raise ValidationError(
                f"destination_index {move.destination_index} is outside column {move.source_status} (size {len(source)})"
            )
        moved = source.pop(move.source_index)
        source.insert(move.destination_index, moved)
        columns[move.source_status] = _renumber(source, move.source_status)
    else:
        destination = list(columns.get(move.destination_status, []))
        if not 0 <= move.destination_index <= len(destination):
            raise ValidationError(
                f"destination_index {move.destination_index} is outside column "
                f"{move.destination_status} (size {len(destination)})"
            )
        moved = source.pop(move.source_index)
        destination.insert(move.destination_index, moved)
        columns[move.source_status] = _renumber(source, move.source_status)
        columns[move.destination_status] = _renumber(destination, move.destination_status)

    return sort_for_display(slot for column in columns.values() for slot in column)


def changed_slots(before: Iterable[IssueSlot], after: Iterable[IssueSlot]) -> list[IssueSlot]:
    """Slots in ``after`` whose status or order differs from ``before``."""

    previous = {slot.id: slot for slot in before}
    return [slot for slot in after if previous.get(slot.id) != slot]


__all__ = [
    "IssueSlot",
    "MoveInstruction",
    "apply_move",
    "build_columns",
    "changed_slots",
    "sort_for_display",
]
