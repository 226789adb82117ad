"""
Semester and semester enrollment models.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import EnrollmentStatus, SemesterStatus, TimestampModel

__all__ = ["Semester", "SemesterEnrollment"]


class Semester(TimestampModel):
    """
    A bounded enrollment period scoped to one hostel.

    At most one semester per hostel carries ``is_current``; the partial
    unique index enforces it where the backend supports partial indexes.
    """

    __tablename__ = "semesters"

    hostel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SemesterStatus.UPCOMING.value,
        index=True,
    )
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set once the upcoming-semester reminder went out",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('upcoming', 'active', 'completed', 'cancelled', 'ended')",
            name="ck_semesters_status",
        ),
        Index(
            "uq_semesters_current_per_hostel",
            "hostel_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Semester(id={self.id}, name={self.name}, status={self.status})>"


class SemesterEnrollment(TimestampModel):
    """A student's financial and registration record for one semester."""

    __tablename__ = "semester_enrollments"

    semester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
    )
    enrollment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    enrollment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrollmentStatus.ACTIVE.value,
    )
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    amount_paid: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    balance: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "semester_id", name="uq_enrollment_user_semester"),
        CheckConstraint(
            "enrollment_status IN ('active', 'completed', 'dropped', 'transferred')",
            name="ck_enrollment_status",
        ),
    )
