"""
Student room assignment model.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import AssignmentStatus, TimestampModel
from hostel_engine.utils.date_utils import now_utc

__all__ = ["StudentRoomAssignment"]


class StudentRoomAssignment(TimestampModel):
    """
    Link between a student and the room they occupy for a semester.

    Only one ``active`` row may exist per (user, room, semester).
    """

    __tablename__ = "student_room_assignments"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    semester_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
    )
    checkout_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AssignmentStatus.ACTIVE.value,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="ck_assignment_status",
        ),
        Index(
            "uq_active_assignment",
            "user_id",
            "room_id",
            "semester_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_assignment_room_status", "room_id", "status"),
    )
