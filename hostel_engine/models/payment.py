"""
Payment ledger model.

Rows are immutable once written: corrections are new entries.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import PaymentMethod, TimestampModel
from hostel_engine.utils.date_utils import now_utc

__all__ = ["Payment"]


class Payment(TimestampModel):
    """Money received from a student, optionally scoped to a semester."""

    __tablename__ = "payments"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    hostel_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    semester_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("semesters.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="UGX")
    payment_method: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=PaymentMethod.CASH.value,
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    recorded_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )
