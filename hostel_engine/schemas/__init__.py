"""
Pydantic schemas exchanged with the engine's callers.
"""

from hostel_engine.schemas.occupancy import RoomAvailability, RoomOccupancy
from hostel_engine.schemas.registration import (
    CallerContext,
    RegistrationResult,
    StudentRegistrationRequest,
)
from hostel_engine.schemas.reservation import ReservationRequest, ReservationResult

__all__ = [
    "CallerContext",
    "StudentRegistrationRequest",
    "RegistrationResult",
    "RoomOccupancy",
    "RoomAvailability",
    "ReservationRequest",
    "ReservationResult",
]
