"""Shared status, priority and role constants."""

ISSUE_STATUS_TODO = "TODO"
ISSUE_STATUS_IN_PROGRESS = "IN_PROGRESS"
ISSUE_STATUS_IN_REVIEW = "IN_REVIEW"
ISSUE_STATUS_DONE = "DONE"

# Board column order, left to right.
ISSUE_STATUS_CHOICES = (
    ISSUE_STATUS_TODO,
    ISSUE_STATUS_IN_PROGRESS,
    ISSUE_STATUS_IN_REVIEW,
    ISSUE_STATUS_DONE,
)

ISSUE_PRIORITY_LOW = "LOW"
ISSUE_PRIORITY_MEDIUM = "MEDIUM"
ISSUE_PRIORITY_HIGH = "HIGH"
ISSUE_PRIORITY_URGENT = "URGENT"

ISSUE_PRIORITY_CHOICES = (
    ISSUE_PRIORITY_LOW,
    ISSUE_PRIORITY_MEDIUM,
    ISSUE_PRIORITY_HIGH,
    ISSUE_PRIORITY_URGENT,
)

SPRINT_STATUS_PLANNED = "PLANNED"
SPRINT_STATUS_ACTIVE = "ACTIVE"
SPRINT_STATUS_COMPLETED = "COMPLETED"

SPRINT_STATUS_CHOICES = (
    SPRINT_STATUS_PLANNED,
    SPRINT_STATUS_ACTIVE,
    SPRINT_STATUS_COMPLETED,
)

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

ROLE_CHOICES = (ROLE_ADMIN, ROLE_MEMBER)


def normalize_choice(value: str | None, choices: tuple[str, ...], *, default: str | None = None) -> str | None:
    """Return ``value`` upper-cased if it is one of ``choices``, else ``None``."""

    if value is None or not str(value).strip():
        return default
    candidate = str(value).strip().upper()
    return candidate if candidate in choices else None


def normalize_role(value: str | None) -> str:
    """Map provider role names (``org:admin``, ``Admin``) onto our two roles."""

    cleaned = (value or "").strip().lower()
    if cleaned.startswith("org:"):
        cleaned = cleaned[4:]
    return ROLE_ADMIN if cleaned == ROLE_ADMIN else ROLE_MEMBER


def status_rank(status: str) -> int:
    try:
        return ISSUE_STATUS_CHOICES.index(status)
    except ValueError:
        return len(ISSUE_STATUS_CHOICES)


__all__ = [
    "ISSUE_PRIORITY_CHOICES",
    "ISSUE_PRIORITY_HIGH",
    "ISSUE_PRIORITY_LOW",
    "ISSUE_PRIORITY_MEDIUM",
    "ISSUE_PRIORITY_URGENT",
    "ISSUE_STATUS_CHOICES",
    "ISSUE_STATUS_DONE",
    "ISSUE_STATUS_IN_PROGRESS",
    "ISSUE_STATUS_IN_REVIEW",
    "ISSUE_STATUS_TODO",
    "ROLE_ADMIN",
    "ROLE_CHOICES",
    "ROLE_MEMBER",
    "SPRINT_STATUS_ACTIVE",
    "SPRINT_STATUS_CHOICES",
    "SPRINT_STATUS_COMPLETED",
    "SPRINT_STATUS_PLANNED",
    "normalize_choice",
    "normalize_role",
    "status_rank",
]
