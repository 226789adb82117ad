"""
Database models package.

Importing this package registers every table on ``Base.metadata``.
"""

from hostel_engine.models.base import Base, BaseModel, TimestampModel
from hostel_engine.models.hostel import Hostel
from hostel_engine.models.user import StudentProfile, User
from hostel_engine.models.room import Room
from hostel_engine.models.semester import Semester, SemesterEnrollment
from hostel_engine.models.assignment import StudentRoomAssignment
from hostel_engine.models.payment import Payment
from hostel_engine.models.reservation import RoomReservation
from hostel_engine.models.public_booking import PublicBookingPayment, PublicHostelBooking
from hostel_engine.models.audit import AuditLog

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "Hostel",
    "User",
    "StudentProfile",
    "Room",
    "Semester",
    "SemesterEnrollment",
    "StudentRoomAssignment",
    "Payment",
    "RoomReservation",
    "PublicHostelBooking",
    "PublicBookingPayment",
    "AuditLog",
]
