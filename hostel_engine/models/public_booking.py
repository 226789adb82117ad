"""
Public (self-service) booking models.

A public booking soft-holds a place in a room until it is reconciled
into a full registration, cancelled, or expired by the sweeper.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import PaymentStatus, PublicBookingStatus, TimestampModel
from hostel_engine.utils.date_utils import now_utc

__all__ = ["PublicHostelBooking", "PublicBookingPayment"]


class PublicHostelBooking(TimestampModel):
    """Booking attempt made from the public website or by staff on behalf of a walk-in."""

    __tablename__ = "public_hostel_bookings"

    hostel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    semester_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    room_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    source: Mapped[str] = mapped_column(String(30), nullable=False, default="online")
    created_by_user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    student_phone: Mapped[str] = mapped_column(String(30), nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    registration_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    course: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="UGX")
    booking_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    amount_due: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PaymentStatus.PENDING.value,
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PublicBookingStatus.PENDING.value,
        index=True,
    )
    verification_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_public_booking_status_created", "status", "created_at"),
    )


class PublicBookingPayment(TimestampModel):
    """Payment sub-ledger entry of a public booking."""

    __tablename__ = "public_booking_payments"

    booking_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("public_hostel_bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=PaymentStatus.COMPLETED.value,
    )
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    recorded_by_user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
    )
