"""CRUD helpers for users mirrored from the identity provider."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.user import User
from .common import utcnow

UNKNOWN_USER_NAME = "Unknown User"


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_external_id(db: Session, external_id: str) -> User | None:
    stmt = select(User).where(User.external_id == external_id)
    return db.execute(stmt).scalars().first()


def ensure_user(db: Session, external_id: str, *, name: str | None = None, email: str | None = None) -> User:
    """Return the local user for ``external_id``, creating it on first sight.

    Existing rows are left untouched, like an upsert with an empty update.
    """

    user = get_user_by_external_id(db, external_id)
    if user:
        return user
    now = utcnow()
    user = User(
        external_id=external_id,
        name=(name or "").strip() or UNKNOWN_USER_NAME,
        email=(email or "").strip(),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def list_users_by_external_ids(db: Session, external_ids: Iterable[str]) -> list[User]:
    ids = list(external_ids)
    if not ids:
        return []
    stmt = select(User).where(User.external_id.in_(ids)).order_by(User.name)
    return list(db.execute(stmt).scalars().all())
