"""
Database enums mirroring the status columns of the hostel schema.

Values are stored as plain strings, so every enum is a ``str`` subclass
and compares equal to the raw column value.
"""

import enum
from typing import Optional


class UserRole(str, enum.Enum):
    """User role enumeration."""
    USER = "user"
    CUSTODIAN = "custodian"
    HOSTEL_ADMIN = "hostel_admin"
    SUPER_ADMIN = "super_admin"


STAFF_ROLES = (UserRole.CUSTODIAN, UserRole.HOSTEL_ADMIN)


class Gender(str, enum.Enum):
    """Declared student gender."""
    MALE = "male"
    FEMALE = "female"


class GenderPolicy(str, enum.Enum):
    """Which students a room accepts."""
    MALE = "male"
    FEMALE = "female"
    BOTH = "both"


class RoomStatus(str, enum.Enum):
    """Derived room occupancy status."""
    AVAILABLE = "available"
    PARTIALLY_OCCUPIED = "partially_occupied"
    OCCUPIED = "occupied"


class SemesterStatus(str, enum.Enum):
    """
    Semester lifecycle.

    ``ENDED`` is a legacy value kept readable for old rows; it is treated
    as ``COMPLETED`` and never written.
    """
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ENDED = "ended"

    @classmethod
    def normalize(cls, value: Optional[str]) -> Optional["SemesterStatus"]:
        if value is None:
            return None
        status = cls(str(value).lower())
        return cls.COMPLETED if status is cls.ENDED else status

    @classmethod
    def is_open(cls, value: Optional[str]) -> bool:
        return cls.normalize(value) in (cls.UPCOMING, cls.ACTIVE)


class EnrollmentStatus(str, enum.Enum):
    """Semester enrollment status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    TRANSFERRED = "transferred"


class AssignmentStatus(str, enum.Enum):
    """Room assignment status."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ReservationStatus(str, enum.Enum):
    """Next-semester room reservation status."""
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PublicBookingStatus(str, enum.Enum):
    """Public booking lifecycle."""
    PENDING = "pending"
    BOOKED = "booked"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    EXPIRED = "expired"


# Bookings in these states hold a place in the room until reconciled
HOLDING_BOOKING_STATUSES = (
    PublicBookingStatus.PENDING,
    PublicBookingStatus.BOOKED,
    PublicBookingStatus.CHECKED_IN,
)


class PaymentStatus(str, enum.Enum):
    """Public booking payment status."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    """Ways money reaches the hostel."""
    CASH = "cash"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
