"""
Room reservation repository.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import RowMapping

from hostel_engine.db.statements import update_rows
from hostel_engine.models.base import ReservationStatus
from hostel_engine.repositories.base_repository import BaseRepository

LIVE_STATUSES = (ReservationStatus.ACTIVE.value, ReservationStatus.CONFIRMED.value)


class ReservationRepository(BaseRepository):
    table_name = "room_reservations"

    def find_live(self, user_id: Any, room_id: Any, reserved_for_semester_id: Any) -> Optional[RowMapping]:
        t = self.table
        stmt = select(t).where(
            t.c.user_id == user_id,
            t.c.room_id == room_id,
            t.c.reserved_for_semester_id == reserved_for_semester_id,
            t.c.status.in_(LIVE_STATUSES),
        )
        return self.session.execute(stmt).mappings().first()

    def find_expired_ids(self, now: datetime) -> List[Any]:
        t = self.table
        stmt = select(t.c.id).where(
            t.c.status == ReservationStatus.ACTIVE.value,
            t.c.expires_at.is_not(None),
            t.c.expires_at < now,
        )
        return list(self.session.execute(stmt).scalars())

    def expire(self, reservation_ids: List[Any]) -> int:
        if not reservation_ids:
            return 0
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.id.in_(reservation_ids), t.c.status == ReservationStatus.ACTIVE.value],
            {"status": ReservationStatus.EXPIRED.value},
        )

    def cancel(self, reservation_id: Any) -> int:
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.id == reservation_id, t.c.status.in_(LIVE_STATUSES)],
            {"status": ReservationStatus.CANCELLED.value},
        )
