"""
User identity and student profile models.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from hostel_engine.models.base import TimestampModel, UserRole

__all__ = ["User", "StudentProfile"]


class User(TimestampModel):
    """
    Login identity shared by students and staff.

    Emails are unique regardless of case; the functional index enforces
    it on backends that support expression indexes.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=UserRole.USER.value,
        index=True,
    )
    hostel_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    password_is_temp: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_privileged(self) -> bool:
        return self.role != UserRole.USER.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


Index("uq_users_email_lower", func.lower(User.email), unique=True)


class StudentProfile(TimestampModel):
    """Personal details captured at registration, one row per student."""

    __tablename__ = "student_profiles"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    access_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    registration_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    course: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    whatsapp: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    emergency_contact: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    guardian_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guardian_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
