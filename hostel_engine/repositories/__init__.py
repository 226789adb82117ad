"""
Repositories over the reflected engine tables.
"""

from hostel_engine.repositories.assignment_repository import AssignmentRepository
from hostel_engine.repositories.base_repository import BaseRepository
from hostel_engine.repositories.booking_repository import BookingRepository
from hostel_engine.repositories.enrollment_repository import EnrollmentRepository
from hostel_engine.repositories.payment_repository import PaymentRepository
from hostel_engine.repositories.profile_repository import ProfileRepository
from hostel_engine.repositories.reservation_repository import ReservationRepository
from hostel_engine.repositories.room_repository import RoomRepository
from hostel_engine.repositories.semester_repository import SemesterRepository
from hostel_engine.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "AssignmentRepository",
    "BookingRepository",
    "EnrollmentRepository",
    "PaymentRepository",
    "ProfileRepository",
    "ReservationRepository",
    "RoomRepository",
    "SemesterRepository",
    "UserRepository",
]
