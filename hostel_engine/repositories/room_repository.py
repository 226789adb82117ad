"""
Room repository: lookups, row locks and derived occupancy writes.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import RowMapping

from hostel_engine.repositories.base_repository import BaseRepository


class RoomRepository(BaseRepository):
    table_name = "rooms"

    def get_in_hostel(self, room_id: Any, hostel_id: Any) -> Optional[RowMapping]:
        t = self.table
        stmt = select(t).where(t.c.id == room_id, t.c.hostel_id == hostel_id)
        return self.session.execute(stmt).mappings().first()

    def lock(self, room_ids: Iterable[Any]) -> Dict[Any, RowMapping]:
        """
        ``SELECT .. FOR UPDATE`` the given rooms in ascending id order.

        Every writer locks rooms in the same order, so two transactions
        touching overlapping rooms cannot deadlock on each other. The result
        is keyed by the stored id, whatever type the caller passed.
        """
        ids = sorted({room_id for room_id in room_ids if room_id is not None}, key=str)
        if not ids:
            return {}
        t = self.table
        stmt = select(t).where(t.c.id.in_(ids)).order_by(t.c.id).with_for_update()
        return {row["id"]: row for row in self.session.execute(stmt).mappings()}

    def set_occupancy(self, room_id: Any, occupants: int, status: str) -> None:
        self.update_by_id(room_id, {"current_occupants": occupants, "status": status})

    def list_for_hostel(self, hostel_id: Any) -> List[RowMapping]:
        t = self.table
        stmt = select(t).where(t.c.hostel_id == hostel_id).order_by(t.c.room_number)
        return list(self.session.execute(stmt).mappings())
