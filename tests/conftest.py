"""
Shared fixtures: an in-memory SQLite database with the canonical schema,
seed helpers, a fixed clock and a notifier that records what it sends.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest
from sqlalchemy.pool import StaticPool

from hostel_engine.config.settings import Settings
from hostel_engine.db import Database, SchemaCapabilityCache
from hostel_engine.db.init_db import init_db
from hostel_engine.models import (
    Hostel,
    Payment,
    PublicHostelBooking,
    Room,
    RoomReservation,
    Semester,
    SemesterEnrollment,
    StudentRoomAssignment,
    User,
)
from hostel_engine.schemas.registration import CallerContext, StudentRegistrationRequest
from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.base.notification_dispatcher import NotificationDispatcher
from hostel_engine.services.registration.student_registration_service import (
    StudentRegistrationService,
)
from hostel_engine.services.room.occupancy_service import RoomOccupancyService
from hostel_engine.utils.date_utils import UTC

FIXED_NOW = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)
TODAY = FIXED_NOW.date()


class RecordingNotificationDispatcher(NotificationDispatcher):
    """Delivers synchronously into ``sent`` (or fails every delivery)."""

    def __init__(self, fail: bool = False):
        super().__init__(max_workers=1)
        self.fail = fail
        self.sent: List[Tuple[str, str, str]] = []

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise RuntimeError("SMTP server unavailable")
        self.sent.append((to, subject, html_body))

    def notify_async(self, to: str, subject: str, html_body: str):
        return self.notify(to, subject, html_body)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "DATABASE_URL": "sqlite://",
        "PASSWORD_BCRYPT_ROUNDS": 4,
        "IDENTITY_LOOKUP_BACKOFF_SECONDS": 0,
        "LOG_FORMAT": "text",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_database() -> Database:
    return Database.from_url(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class Seeder:
    """Inserts canonical rows through the ORM and returns their ids."""

    def __init__(self, database: Database):
        self.database = database

    def _add(self, obj) -> str:
        with self.database.session() as session:
            session.add(obj)
            session.flush()
            return obj.id

    def hostel(self, name: str = "Makerere Heights", booking_fee: Optional[Decimal] = None) -> str:
        return self._add(Hostel(name=name, booking_fee=booking_fee))

    def room(
        self,
        hostel_id: str,
        room_number: str = "A1",
        capacity: int = 2,
        price: Decimal = Decimal("500000"),
        gender_allowed: str = "both",
    ) -> str:
        return self._add(Room(
            hostel_id=hostel_id,
            room_number=room_number,
            capacity=capacity,
            price=price,
            gender_allowed=gender_allowed,
        ))

    def semester(
        self,
        hostel_id: str,
        name: str = "Semester I",
        start_date: date = date(2026, 1, 15),
        end_date: date = date(2026, 5, 30),
        status: str = "active",
        is_current: bool = True,
        **extra: Any,
    ) -> str:
        return self._add(Semester(
            hostel_id=hostel_id,
            name=name,
            academic_year="2025/2026",
            start_date=start_date,
            end_date=end_date,
            status=status,
            is_current=is_current,
            **extra,
        ))

    def user(
        self,
        email: str,
        role: str = "user",
        hostel_id: Optional[str] = None,
        name: str = "Test User",
    ) -> str:
        return self._add(User(email=email, name=name, password="x", role=role, hostel_id=hostel_id))

    def enrollment(self, user_id: str, semester_id: str, balance: Optional[Decimal] = Decimal("0")) -> str:
        return self._add(SemesterEnrollment(
            user_id=user_id,
            semester_id=semester_id,
            total_amount=Decimal("500000"),
            amount_paid=Decimal("500000"),
            balance=balance,
        ))

    def assignment(self, user_id: str, room_id: str, semester_id: Optional[str], status: str = "active") -> str:
        return self._add(StudentRoomAssignment(
            user_id=user_id,
            room_id=room_id,
            semester_id=semester_id,
            status=status,
        ))

    def payment(self, user_id: str, amount: Decimal = Decimal("100000"), semester_id: Optional[str] = None) -> str:
        return self._add(Payment(user_id=user_id, amount=amount, semester_id=semester_id))

    def booking(
        self,
        hostel_id: str,
        created_at: datetime,
        status: str = "pending",
        payment_status: str = "pending",
        room_id: Optional[str] = None,
        semester_id: Optional[str] = None,
    ) -> str:
        return self._add(PublicHostelBooking(
            hostel_id=hostel_id,
            room_id=room_id,
            semester_id=semester_id,
            student_name="Walk In",
            student_phone="+256700000000",
            status=status,
            payment_status=payment_status,
            created_at=created_at,
            updated_at=created_at,
        ))

    def reservation(
        self,
        user_id: str,
        room_id: str,
        current_semester_id: str,
        reserved_for_semester_id: str,
        expires_at: datetime,
        status: str = "active",
    ) -> str:
        return self._add(RoomReservation(
            user_id=user_id,
            room_id=room_id,
            current_semester_id=current_semester_id,
            reserved_for_semester_id=reserved_for_semester_id,
            status=status,
            expires_at=expires_at,
        ))

    def fetch(self, model, entity_id: str):
        with self.database.session() as session:
            return session.get(model, entity_id)

    def all(self, model, **filters: Any) -> list:
        with self.database.session() as session:
            return list(session.query(model).filter_by(**filters))


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def database():
    db = make_database()
    init_db(db)
    yield db
    db.dispose()


@pytest.fixture
def capability_cache(settings) -> SchemaCapabilityCache:
    return SchemaCapabilityCache(settings.SCHEMA_CAPABILITY_TTL_SECONDS)


@pytest.fixture
def seed(database) -> Seeder:
    return Seeder(database)


@pytest.fixture
def notifier() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def audit(database) -> AuditLogger:
    return AuditLogger(database)


@pytest.fixture
def occupancy(database, settings, capability_cache, clock) -> RoomOccupancyService:
    return RoomOccupancyService(database, settings, capability_cache, clock)


@pytest.fixture
def registration(database, settings, occupancy, audit, notifier, clock) -> StudentRegistrationService:
    return StudentRegistrationService(database, settings, occupancy, audit, notifier, clock=clock)


@pytest.fixture
def hostel_id(seed) -> str:
    return seed.hostel()


@pytest.fixture
def semester_id(seed, hostel_id) -> str:
    return seed.semester(hostel_id)


@pytest.fixture
def admin_caller(seed, hostel_id) -> CallerContext:
    admin_id = seed.user("warden@heights.example.com", role="hostel_admin", hostel_id=hostel_id, name="Warden")
    return CallerContext(acting_user_id=admin_id, role="hostel_admin", hostel_scope=hostel_id)


@pytest.fixture
def make_request(hostel_id, semester_id):
    """Build a registration request for the default hostel and semester."""

    def _make(room_id: str, email: str, gender: Optional[str] = "female", amount: Any = Decimal("200000"), **extra):
        values: Dict[str, Any] = {
            "name": email.split("@")[0].title(),
            "email": email,
            "gender": gender,
            "hostel_id": hostel_id,
            "room_id": room_id,
            "semester_id": semester_id,
            "initial_payment_amount": amount,
        }
        values.update(extra)
        return StudentRegistrationRequest(**values)

    return _make


def minutes_before(minutes: int) -> datetime:
    return FIXED_NOW - timedelta(minutes=minutes)
