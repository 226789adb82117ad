"""
Room assignment repository, including the registered-occupant count.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.engine import RowMapping

from hostel_engine.core.exceptions import SchemaMismatchError
from hostel_engine.db.statements import update_rows
from hostel_engine.models.base import AssignmentStatus
from hostel_engine.repositories.base_repository import BaseRepository


class AssignmentRepository(BaseRepository):
    table_name = "student_room_assignments"

    @property
    def user_column(self) -> str:
        column = self.caps.assignment_user_column
        if column is None:
            raise SchemaMismatchError(self.table_name, "student_id")
        return column

    def find_active_for_semester(self, user_id: Any, semester_id: Any) -> List[RowMapping]:
        """Active assignments of a student in one semester, oldest first."""
        t = self.table
        stmt = (
            select(t)
            .where(
                t.c[self.user_column] == user_id,
                t.c.semester_id == semester_id,
                t.c.status == AssignmentStatus.ACTIVE.value,
            )
            .order_by(t.c.id)
        )
        return list(self.session.execute(stmt).mappings())

    def find_active_for_user(self, user_id: Any) -> List[RowMapping]:
        t = self.table
        stmt = select(t).where(
            t.c[self.user_column] == user_id,
            t.c.status == AssignmentStatus.ACTIVE.value,
        )
        return list(self.session.execute(stmt).mappings())

    def find_active_in_semester(self, semester_id: Any) -> List[RowMapping]:
        t = self.table
        stmt = select(t).where(
            t.c.semester_id == semester_id,
            t.c.status == AssignmentStatus.ACTIVE.value,
        )
        return list(self.session.execute(stmt).mappings())

    def create(
        self,
        user_id: Any,
        room_id: Any,
        semester_id: Any,
        assigned_by: Optional[Any],
        now: datetime,
    ) -> Any:
        values: Dict[str, Any] = {
            self.user_column: user_id,
            "room_id": room_id,
            "semester_id": semester_id,
            "assigned_by": assigned_by,
            "status": AssignmentStatus.ACTIVE.value,
        }
        date_column = self.caps.assignment_date_column
        if date_column == "assignment_date":
            values[date_column] = now.date()
        elif date_column:
            values[date_column] = now
        return self.insert(values)

    def set_status(self, assignment_ids: Iterable[Any], status: str) -> int:
        ids = list(assignment_ids)
        if not ids:
            return 0
        t = self.table
        return update_rows(self.session, t, [t.c.id.in_(ids)], {"status": status})

    def complete_for_semester(self, semester_id: Any) -> int:
        t = self.table
        return update_rows(
            self.session,
            t,
            [t.c.semester_id == semester_id, t.c.status == AssignmentStatus.ACTIVE.value],
            {"status": AssignmentStatus.COMPLETED.value},
        )

    def count_registered_occupants(
        self,
        room_ids: Iterable[Any],
        exclude_user_id: Optional[Any] = None,
    ) -> Dict[Any, int]:
        """
        Count students legitimately living in each room.

        A student counts when they hold an active assignment to the room,
        an enrollment with a balance for the assignment's semester, and at
        least one payment for that semester or with no semester at all.
        Rooms without counted students are absent from the result.
        """
        ids = [room_id for room_id in room_ids if room_id is not None]
        if not ids:
            return {}

        sra = self.table.alias("sra")
        se = self.caps.table("semester_enrollments").alias("se")
        payments = self.caps.table("payments").alias("p")

        user_col = sra.c[self.user_column]
        payment_user = self.caps.payment_user_column
        if payment_user is None:
            raise SchemaMismatchError("payments", "student_id")

        payment_filter = [payments.c[payment_user] == user_col]
        if self.caps.payment_has_semester:
            payment_filter.append(
                or_(payments.c.semester_id == se.c.semester_id, payments.c.semester_id.is_(None))
            )

        stmt = (
            select(sra.c.room_id, func.count(func.distinct(user_col)).label("occupants"))
            .select_from(
                sra.join(
                    se,
                    and_(
                        se.c.user_id == user_col,
                        or_(se.c.semester_id == sra.c.semester_id, sra.c.semester_id.is_(None)),
                    ),
                )
            )
            .where(
                sra.c.room_id.in_(ids),
                sra.c.status == AssignmentStatus.ACTIVE.value,
                se.c.balance.is_not(None),
                exists(select(1).select_from(payments).where(*payment_filter)),
            )
            .group_by(sra.c.room_id)
        )
        if exclude_user_id is not None:
            stmt = stmt.where(user_col != exclude_user_id)

        return {row.room_id: int(row.occupants) for row in self.session.execute(stmt)}
