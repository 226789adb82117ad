"""
Statement helpers for writing through reflected tables.

Reflected tables carry no Python-side defaults, so these helpers fill in
string primary keys and timestamp columns the way the declarative models
would, and pick the dialect's native upsert when there is one.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from sqlalchemy import Integer, Table, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from hostel_engine.models.base import new_id
from hostel_engine.utils.date_utils import now_utc


def _generates_own_id(table: Table) -> bool:
    return "id" in table.c and isinstance(table.c.id.type, Integer)


def stamp(
    table: Table,
    values: Dict[str, Any],
    now: Optional[datetime] = None,
    creating: bool = True,
) -> Dict[str, Any]:
    """Return ``values`` restricted to existing columns, with timestamps set."""
    now = now or now_utc()
    row = {key: value for key, value in values.items() if key in table.c}
    if creating and "created_at" in table.c:
        row.setdefault("created_at", now)
    if "updated_at" in table.c:
        row.setdefault("updated_at", now)
    return row


def insert_row(session: Session, table: Table, values: Dict[str, Any]) -> Any:
    """Insert one row and return its primary key."""
    row = stamp(table, values)
    if "id" in table.c and "id" not in row and not _generates_own_id(table):
        row["id"] = new_id()
    result = session.execute(insert(table).values(**row))
    return row.get("id", result.inserted_primary_key[0])


def update_rows(
    session: Session,
    table: Table,
    where: Iterable[Any],
    values: Dict[str, Any],
) -> int:
    """Update matching rows, touching ``updated_at`` when it exists."""
    row = stamp(table, values, creating=False)
    result = session.execute(update(table).where(*where).values(**row))
    return result.rowcount


def upsert_row(
    session: Session,
    table: Table,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> Any:
    """
    Insert a row or update the existing one sharing ``conflict_columns``.

    PostgreSQL and SQLite use ``INSERT .. ON CONFLICT DO UPDATE``; other
    dialects fall back to select-then-write inside the caller's transaction.
    Returns the id of the inserted or updated row.
    """
    row = stamp(table, values)
    if "id" in table.c and "id" not in row and not _generates_own_id(table):
        row["id"] = new_id()

    changed = [c for c in update_columns if c in row]
    if "updated_at" in table.c:
        changed.append("updated_at")

    dialect = session.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        module = postgresql if dialect == "postgresql" else sqlite
        stmt = module.insert(table).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={column: stmt.excluded[column] for column in changed},
        ).returning(table.c.id)
        return session.execute(stmt).scalar_one()

    key = [table.c[column] == row[column] for column in conflict_columns]
    existing = session.execute(select(table.c.id).where(*key)).scalar_one_or_none()
    if existing is None:
        return insert_row(session, table, row)
    session.execute(
        update(table).where(table.c.id == existing).values(**{c: row[c] for c in changed})
    )
    return existing
