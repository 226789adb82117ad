"""
Public booking repository: expiry, soft holds and statistics.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, select

from hostel_engine.db.statements import update_rows
from hostel_engine.models.base import HOLDING_BOOKING_STATUSES, PaymentStatus, PublicBookingStatus
from hostel_engine.repositories.base_repository import BaseRepository


class BookingRepository(BaseRepository):
    table_name = "public_hostel_bookings"

    def find_stale_pending_ids(self, cutoff: datetime) -> List[Any]:
        """Pending, unpaid bookings created before ``cutoff``."""
        t = self.table
        conditions = [
            t.c.status == PublicBookingStatus.PENDING.value,
            t.c.created_at < cutoff,
        ]
        if self.has_column("payment_status"):
            conditions.append(t.c.payment_status == PaymentStatus.PENDING.value)
        stmt = select(t.c.id).where(*conditions).order_by(t.c.created_at)
        return list(self.session.execute(stmt).scalars())

    def expire(self, booking_ids: Iterable[Any]) -> int:
        """
        Move still-pending bookings to ``expired``.

        The status guard makes a concurrent or repeated sweep a no-op for
        rows another run already expired or that progressed meanwhile.
        """
        ids = list(booking_ids)
        if not ids:
            return 0
        t = self.table
        conditions = [t.c.id.in_(ids), t.c.status == PublicBookingStatus.PENDING.value]
        if self.has_column("payment_status"):
            conditions.append(t.c.payment_status == PaymentStatus.PENDING.value)
        return update_rows(
            self.session,
            t,
            conditions,
            {"status": PublicBookingStatus.EXPIRED.value},
        )

    def count_held(self, room_ids: Iterable[Any], semester_id: Optional[Any] = None) -> Dict[Any, int]:
        """Bookings soft-holding a place, per room."""
        ids = [room_id for room_id in room_ids if room_id is not None]
        if not ids:
            return {}
        t = self.table
        stmt = (
            select(t.c.room_id, func.count().label("held"))
            .where(
                t.c.room_id.in_(ids),
                t.c.status.in_([status.value for status in HOLDING_BOOKING_STATUSES]),
            )
            .group_by(t.c.room_id)
        )
        if semester_id is not None and self.has_column("semester_id"):
            stmt = stmt.where(t.c.semester_id == semester_id)
        return {row.room_id: int(row.held) for row in self.session.execute(stmt)}

    def count_by_status(self, hostel_id: Optional[Any] = None) -> Dict[str, int]:
        t = self.table
        stmt = select(t.c.status, func.count().label("total")).group_by(t.c.status)
        if hostel_id is not None:
            stmt = stmt.where(t.c.hostel_id == hostel_id)
        return {row.status: int(row.total) for row in self.session.execute(stmt)}
