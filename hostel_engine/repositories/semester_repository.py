"""
Semester repository.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import RowMapping

from hostel_engine.db.statements import update_rows
from hostel_engine.models.base import SemesterStatus
from hostel_engine.repositories.base_repository import BaseRepository

OPEN_STATUSES = (SemesterStatus.UPCOMING.value, SemesterStatus.ACTIVE.value)


class SemesterRepository(BaseRepository):
    table_name = "semesters"

    def get_in_hostel(self, semester_id: Any, hostel_id: Any) -> Optional[RowMapping]:
        t = self.table
        stmt = select(t).where(t.c.id == semester_id, t.c.hostel_id == hostel_id)
        return self.session.execute(stmt).mappings().first()

    def lock(self, semester_id: Any) -> Optional[RowMapping]:
        t = self.table
        stmt = select(t).where(t.c.id == semester_id).with_for_update()
        return self.session.execute(stmt).mappings().first()

    def find_current(self, hostel_id: Any) -> List[RowMapping]:
        """Semesters flagged current, most recently activated first."""
        t = self.table
        order = [t.c.updated_at.desc()] if "activated_at" not in t.c else [
            t.c.activated_at.desc(), t.c.updated_at.desc()
        ]
        stmt = (
            select(t)
            .where(t.c.hostel_id == hostel_id, t.c.is_current.is_(True))
            .order_by(*order)
        )
        return list(self.session.execute(stmt).mappings())

    def list_ended_ids(self, today: date) -> List[Any]:
        """Ids of open semesters whose end date has passed."""
        t = self.table
        stmt = (
            select(t.c.id)
            .where(t.c.end_date < today, t.c.status.in_(OPEN_STATUSES))
            .order_by(t.c.end_date)
        )
        return list(self.session.execute(stmt).scalars())

    def list_starting_between(self, start: date, end: date) -> List[RowMapping]:
        t = self.table
        stmt = (
            select(t)
            .where(
                t.c.status == SemesterStatus.UPCOMING.value,
                t.c.start_date >= start,
                t.c.start_date <= end,
            )
            .order_by(t.c.start_date)
        )
        return list(self.session.execute(stmt).mappings())

    def close(self, semester_id: Any) -> int:
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.id == semester_id, t.c.status.in_(OPEN_STATUSES)],
            {"status": SemesterStatus.COMPLETED.value, "is_current": False},
        )

    def clear_current(self, hostel_id: Any, keep_id: Any) -> int:
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.hostel_id == hostel_id, t.c.id != keep_id, t.c.is_current.is_(True)],
            {"is_current": False},
        )

    def mark_active(self, semester_id: Any, now: datetime) -> int:
        return self.update_by_id(semester_id, {
            "status": SemesterStatus.ACTIVE.value,
            "is_current": True,
            "activated_at": now,
        })

    def mark_reminder_sent(self, semester_id: Any, now: datetime) -> int:
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.id == semester_id, t.c.reminder_sent_at.is_(None)],
            {"reminder_sent_at": now},
        )
