"""
Room occupancy schemas.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import Field

from hostel_engine.schemas.base import BaseSchema

__all__ = ["RoomOccupancy", "RoomAvailability"]


class RoomOccupancy(BaseSchema):
    """Result of recomputing one room."""

    room_id: str
    capacity: int
    occupancy: int
    status: str


class RoomAvailability(BaseSchema):
    """A room with free places, as listed to staff and the public site."""

    room_id: str
    room_number: str
    capacity: int
    price: Decimal
    gender_allowed: Optional[str] = None
    occupancy: int = Field(..., ge=0)
    held_by_bookings: int = Field(default=0, ge=0)
    available_spaces: int = Field(..., ge=0)
