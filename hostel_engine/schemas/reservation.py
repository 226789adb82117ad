"""
Room reservation schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from hostel_engine.models.base import PaymentMethod
from hostel_engine.schemas.base import BaseSchema

__all__ = ["ReservationRequest", "ReservationResult"]


class ReservationRequest(BaseSchema):
    """A student's request to keep their room for a coming semester."""

    user_id: str
    room_id: str
    reserved_for_semester_id: str
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ReservationResult(BaseSchema):
    reservation_id: str
    status: str
    expires_at: Optional[datetime] = None
    payment_id: Optional[str] = None
