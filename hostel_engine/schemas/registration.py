"""
Registration request, caller context and result schemas.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import Any, Optional

from pydantic import EmailStr, Field, field_validator

from hostel_engine.models.base import UserRole
from hostel_engine.schemas.base import BaseSchema

__all__ = [
    "CallerContext",
    "StudentRegistrationRequest",
    "RegistrationResult",
]


class CallerContext(BaseSchema):
    """
    Identity of whoever invoked the engine.

    Supplied by the authentication layer and trusted as-is.
    """

    acting_user_id: Optional[str] = Field(default=None, description="Acting staff user ID")
    role: str = Field(..., description="Role of the acting user")
    hostel_scope: Optional[str] = Field(
        default=None,
        description="Hostel the caller is bound to (None for super admins)",
    )

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    @classmethod
    def system(cls) -> "CallerContext":
        """Context used by scheduled jobs."""
        return cls(acting_user_id=None, role=UserRole.SUPER_ADMIN.value, hostel_scope=None)


class StudentRegistrationRequest(BaseSchema):
    """
    Data needed to register (or re-register) a student into a room.

    The initial payment is validated by the registration service so that
    a non-positive amount surfaces as an ``InvalidAmountError``.
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., description="Student email (case-insensitive identity)")
    phone: Optional[str] = Field(default=None, max_length=30)
    whatsapp: Optional[str] = Field(default=None, max_length=30)
    gender: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[Date] = None
    access_number: Optional[str] = Field(default=None, max_length=100)
    registration_number: Optional[str] = Field(default=None, max_length=100)
    course: Optional[str] = Field(default=None, max_length=100)
    guardian_name: Optional[str] = Field(default=None, max_length=255)
    guardian_phone: Optional[str] = Field(default=None, max_length=30)
    emergency_contact: Optional[str] = Field(default=None, max_length=100)

    hostel_id: str = Field(..., description="Hostel the student registers into")
    room_id: str = Field(..., description="Target room")
    semester_id: str = Field(..., description="Semester of the enrollment")

    initial_payment_amount: Optional[Decimal] = Field(
        default=None,
        description="Amount paid now; must be greater than zero",
    )
    currency: Optional[str] = Field(default=None, max_length=10)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        value = str(v).strip().lower()
        return value or None

    @field_validator(
        "phone", "whatsapp", "access_number", "registration_number", "course",
        "guardian_name", "guardian_phone", "emergency_contact", "currency",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RegistrationResult(BaseSchema):
    """Identifiers produced by one registration."""

    user_id: str
    enrollment_id: str
    assignment_id: str
    payment_id: str
    is_new_user: bool
    room_status: Optional[str] = None
    room_occupancy: Optional[int] = None
