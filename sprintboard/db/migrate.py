"""Small idempotent schema upgrades for existing SQLite databases."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

# Additive only: new columns and indexes. Fresh databases get the full schema
# from ``Base.metadata.create_all``.


def _column_names(engine: Engine, table: str) -> set[str]:
    inspector = inspect(engine)
    if not inspector.has_table(table):
        return set()
    return {column["name"] for column in inspector.get_columns(table)}


def _add_column(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(f'"{col}"' for col in cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an older schema up-to-date with the expectations of the code."""

    issue_needed: dict[str, str] = {
        "description": "TEXT",
        "assignee_id": "INTEGER",
        "updated_at": "TEXT",
    }
    icols = _column_names(engine, "issues")
    if icols:
        for name, dtype in issue_needed.items():
            if name not in icols:
                _add_column(engine, "issues", f"{name} {dtype}")
        _create_index_if_not_exists(engine, "issues", "ix_issues_sprint_column", ["sprint_id", "status", "order"])
        _create_index_if_not_exists(engine, "issues", "ix_issues_project_column", ["project_id", "status", "order"])

    pcols = _column_names(engine, "projects")
    if pcols:
        if "description" not in pcols:
            _add_column(engine, "projects", "description TEXT")
        _create_index_if_not_exists(
            engine, "projects", "ix_projects_organization_key", ["organization_id", "key"], unique=True
        )

    scols = _column_names(engine, "sprints")
    if scols and "updated_at" not in scols:
        _add_column(engine, "sprints", "updated_at TEXT")
