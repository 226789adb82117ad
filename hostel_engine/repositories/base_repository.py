"""
Base repository for tables accessed through schema reflection.

Repositories never commit: the calling service owns the transaction.
"""

from typing import Any, Dict, Optional

from sqlalchemy import Table, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Session

from hostel_engine.db.capabilities import SchemaCapabilities
from hostel_engine.db.statements import insert_row, update_rows


class BaseRepository:
    """
    Shared plumbing for repositories bound to one reflected table.

    Subclasses set ``table_name``; the reflected ``Table`` comes from the
    capability snapshot so optional columns are only used when present.
    """

    table_name: str = ""

    def __init__(self, session: Session, capabilities: SchemaCapabilities):
        self.session = session
        self.caps = capabilities

    @property
    def table(self) -> Table:
        return self.caps.table(self.table_name)

    def has_column(self, column: str) -> bool:
        return self.caps.has_column(self.table_name, column)

    def get(self, entity_id: Any) -> Optional[RowMapping]:
        t = self.table
        return self.session.execute(select(t).where(t.c.id == entity_id)).mappings().first()

    def insert(self, values: Dict[str, Any]) -> Any:
        return insert_row(self.session, self.table, values)

    def update_by_id(self, entity_id: Any, values: Dict[str, Any]) -> int:
        t = self.table
        return update_rows(self.session, t, [t.c.id == entity_id], values)
