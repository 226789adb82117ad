"""
Hostel model: the tenant that owns rooms, semesters, staff and students.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import TimestampModel

__all__ = ["Hostel"]


class Hostel(TimestampModel):
    """A tenant of the multi-tenant system."""

    __tablename__ = "hostels"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    booking_fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Fee charged to confirm a next-semester reservation",
    )
    semester_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Hostel(id={self.id}, name={self.name})>"
