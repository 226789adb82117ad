"""
Base models package.

Provides the declarative base, abstract base classes and the status
enums shared by all hostel tables.
"""

from hostel_engine.models.base.base_model import (
    Base,
    BaseModel,
    TimestampModel,
    new_id,
)
from hostel_engine.models.base.enums import (
    AssignmentStatus,
    EnrollmentStatus,
    Gender,
    GenderPolicy,
    HOLDING_BOOKING_STATUSES,
    PaymentMethod,
    PaymentStatus,
    PublicBookingStatus,
    ReservationStatus,
    RoomStatus,
    SemesterStatus,
    STAFF_ROLES,
    UserRole,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "new_id",
    "AssignmentStatus",
    "EnrollmentStatus",
    "Gender",
    "GenderPolicy",
    "HOLDING_BOOKING_STATUSES",
    "PaymentMethod",
    "PaymentStatus",
    "PublicBookingStatus",
    "ReservationStatus",
    "RoomStatus",
    "SemesterStatus",
    "STAFF_ROLES",
    "UserRole",
]
