"""
Next-semester room reservation model.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import ReservationStatus, TimestampModel
from hostel_engine.utils.date_utils import now_utc

__all__ = ["RoomReservation"]


class RoomReservation(TimestampModel):
    """
    A student's claim on a room for a future semester.

    Reservations never count toward room occupancy.
    """

    __tablename__ = "room_reservations"

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
    current_semester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="CASCADE"),
        nullable=False,
    )
    reserved_for_semester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.ACTIVE.value,
    )
    reservation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "reserved_for_semester_id", "room_id",
            name="uq_reservation_user_semester_room",
        ),
        CheckConstraint(
            "status IN ('active', 'confirmed', 'cancelled', 'expired')",
            name="ck_reservation_status",
        ),
        Index("ix_reservation_status_expires", "status", "expires_at"),
    )
