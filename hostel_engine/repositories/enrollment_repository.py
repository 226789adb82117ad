"""
Semester enrollment repository.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from hostel_engine.db.statements import update_rows, upsert_row
from hostel_engine.models.base import EnrollmentStatus
from hostel_engine.repositories.base_repository import BaseRepository


class EnrollmentRepository(BaseRepository):
    table_name = "semester_enrollments"

    def upsert(
        self,
        user_id: Any,
        semester_id: Any,
        room_id: Any,
        total_amount: Decimal,
        amount_paid: Decimal,
        balance: Decimal,
        enrollment_date: date,
    ) -> Any:
        """
        Insert the (user, semester) enrollment or overwrite its room and totals.

        The unique key on (user_id, semester_id) makes repeated
        registrations converge on one row carrying the latest values.
        """
        values: Dict[str, Any] = {
            "user_id": user_id,
            "semester_id": semester_id,
            "enrollment_status": EnrollmentStatus.ACTIVE.value,
            "total_amount": total_amount,
            "amount_paid": amount_paid,
            "balance": balance,
            "enrollment_date": enrollment_date,
        }
        changed = ["total_amount", "amount_paid", "balance"]
        if self.caps.enrollment_has_room:
            values["room_id"] = room_id
            changed.insert(0, "room_id")

        return upsert_row(
            self.session,
            self.table,
            values,
            conflict_columns=("user_id", "semester_id"),
            update_columns=changed,
        )

    def complete_for_semester(self, semester_id: Any, now: datetime) -> int:
        """Mark every active enrollment of the semester completed."""
        t = self.table
        values: Dict[str, Any] = {"enrollment_status": EnrollmentStatus.COMPLETED.value}
        if self.caps.enrollment_has_completed_at:
            values["completed_at"] = now
        return update_rows(
            self.session,
            t,
            [t.c.semester_id == semester_id,
             t.c.enrollment_status == EnrollmentStatus.ACTIVE.value],
            values,
        )
