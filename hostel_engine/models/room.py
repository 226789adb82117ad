"""
Room model.

Occupancy and status are derived columns: they are written only by the
occupancy reconciliation and never edited directly.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import GenderPolicy, RoomStatus, TimestampModel

__all__ = ["Room"]


class Room(TimestampModel):
    """A physical room belonging to exactly one hostel."""

    __tablename__ = "rooms"

    hostel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    gender_allowed: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=GenderPolicy.BOTH.value,
    )
    current_occupants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=RoomStatus.AVAILABLE.value,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("hostel_id", "room_number", name="uq_hostel_room_number"),
        CheckConstraint("capacity BETWEEN 1 AND 4", name="ck_rooms_capacity"),
        CheckConstraint(
            "gender_allowed IN ('male', 'female', 'both')",
            name="ck_rooms_gender_allowed",
        ),
        Index("ix_room_hostel_status", "hostel_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Room(id={self.id}, room_number={self.room_number}, "
            f"occupants={self.current_occupants}/{self.capacity}, status={self.status})>"
        )
