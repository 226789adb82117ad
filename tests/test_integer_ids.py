"""
Deployments created from the original SQL scripts use SERIAL integer keys
while callers pass ids as strings.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    UniqueConstraint,
    insert,
    select,
)

from hostel_engine.core.exceptions import RoomNotFoundError
from hostel_engine.db import SchemaCapabilityCache
from hostel_engine.schemas.registration import CallerContext, StudentRegistrationRequest
from hostel_engine.services.background.semester_transition_service import SemesterTransitionService
from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.registration.student_registration_service import (
    StudentRegistrationService,
)
from hostel_engine.services.room.occupancy_service import RoomOccupancyService
from tests.conftest import FIXED_NOW, RecordingNotificationDispatcher, make_database

metadata = MetaData()

hostels = Table(
    "hostels", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
)
users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("password", String(255), nullable=False),
    Column("role", String(30), nullable=False),
    Column("hostel_id", Integer),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)
rooms = Table(
    "rooms", metadata,
    Column("id", Integer, primary_key=True),
    Column("hostel_id", Integer, nullable=False),
    Column("room_number", String(50), nullable=False),
    Column("capacity", Integer, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("gender_allowed", String(10), nullable=False),
    Column("current_occupants", Integer, nullable=False),
    Column("status", String(30), nullable=False),
    Column("updated_at", DateTime),
)
semesters = Table(
    "semesters", metadata,
    Column("id", Integer, primary_key=True),
    Column("hostel_id", Integer, nullable=False),
    Column("name", String(100), nullable=False),
    Column("academic_year", String(20), nullable=False),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("is_current", Boolean, nullable=False),
    Column("status", String(20), nullable=False),
    Column("updated_at", DateTime),
)
enrollments = Table(
    "semester_enrollments", metadata,
    Column("id", Integer, primary_key=True),
    Column("semester_id", Integer, nullable=False),
    Column("user_id", Integer, nullable=False),
    Column("room_id", Integer),
    Column("enrollment_date", Date),
    Column("enrollment_status", String(20), nullable=False),
    Column("total_amount", Numeric(12, 2)),
    Column("amount_paid", Numeric(12, 2)),
    Column("balance", Numeric(12, 2)),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("user_id", "semester_id"),
)
assignments = Table(
    "student_room_assignments", metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, nullable=False),
    Column("room_id", Integer, nullable=False),
    Column("semester_id", Integer),
    Column("assigned_by", Integer),
    Column("assigned_at", DateTime),
    Column("status", String(20), nullable=False),
)
payments = Table(
    "payments", metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, nullable=False),
    Column("hostel_id", Integer),
    Column("semester_id", Integer),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(10)),
    Column("payment_method", String(30)),
    Column("recorded_by", Integer),
    Column("payment_date", DateTime),
    Column("notes", String(255)),
)
profiles = Table(
    "student_profiles", metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, nullable=False, unique=True),
    Column("gender", String(20)),
    Column("phone", String(30)),
)


@pytest.fixture
def serial_db():
    db = make_database()
    metadata.create_all(db.engine)
    with db.engine.begin() as conn:
        conn.execute(insert(hostels).values(id=1, name="Nana Hostel"))
        conn.execute(insert(users).values(
            id=40, email="custodian@nana.example.com", name="Custodian",
            password="x", role="custodian", hostel_id=1,
        ))
        for room_id, number in ((5, "F5"), (6, "F6")):
            conn.execute(insert(rooms).values(
                id=room_id, hostel_id=1, room_number=number, capacity=2,
                price=Decimal("600000"), gender_allowed="female",
                current_occupants=0, status="available",
            ))
        conn.execute(insert(semesters).values(
            id=3, hostel_id=1, name="Semester II", academic_year="2025/2026",
            start_date=date(2026, 1, 15), end_date=date(2026, 5, 30),
            is_current=True, status="active",
        ))
    yield db
    db.dispose()


@pytest.fixture
def serial_services(serial_db, settings):
    cache = SchemaCapabilityCache(settings.SCHEMA_CAPABILITY_TTL_SECONDS)
    occupancy = RoomOccupancyService(serial_db, settings, cache, lambda: FIXED_NOW)
    notifier = RecordingNotificationDispatcher()
    registration = StudentRegistrationService(
        serial_db, settings, occupancy, AuditLogger(serial_db), notifier, clock=lambda: FIXED_NOW
    )
    return registration, occupancy, SemesterTransitionService(occupancy, notifier)


CALLER = CallerContext(acting_user_id="40", role="custodian", hostel_scope="1")


def _request(room_id="5", **extra):
    values = dict(
        name="Achieng Grace",
        email="achieng@students.example.com",
        gender="female",
        hostel_id="1",
        room_id=room_id,
        semester_id="3",
        initial_payment_amount=Decimal("200000"),
    )
    values.update(extra)
    return StudentRegistrationRequest(**values)


def test_registration_with_integer_keys(serial_db, serial_services):
    registration, _, _ = serial_services

    result = registration.register_student(_request(), CALLER)

    assert result.is_new_user
    assert result.room_occupancy == 1
    assert result.room_status == "partially_occupied"

    with serial_db.engine.connect() as conn:
        assignment = conn.execute(select(assignments)).mappings().one()
        assert assignment["room_id"] == 5
        assert assignment["semester_id"] == 3
        assert str(assignment["user_id"]) == result.user_id

        payment = conn.execute(select(payments)).mappings().one()
        assert payment["semester_id"] == 3
        assert payment["hostel_id"] == 1

        room = conn.execute(select(rooms).where(rooms.c.id == 5)).mappings().one()
        assert room["current_occupants"] == 1


def test_room_move_with_integer_keys(serial_db, serial_services):
    registration, _, _ = serial_services

    registration.register_student(_request(room_id="5"), CALLER)
    moved = registration.register_student(_request(room_id="6"), CALLER)

    assert moved.room_occupancy == 1
    with serial_db.engine.connect() as conn:
        statuses = dict(conn.execute(select(assignments.c.room_id, assignments.c.status)).all())
        occupants = dict(conn.execute(select(rooms.c.id, rooms.c.current_occupants)).all())

    assert statuses == {5: "cancelled", 6: "active"}
    assert occupants == {5: 0, 6: 1}


def test_reregistration_reuses_integer_keyed_assignment(serial_db, serial_services):
    registration, _, _ = serial_services

    first = registration.register_student(_request(), CALLER)
    again = registration.register_student(_request(), CALLER)

    assert again.assignment_id == first.assignment_id
    assert again.room_occupancy == 1


def test_unknown_integer_room_is_rejected(serial_services):
    registration, _, _ = serial_services

    with pytest.raises(RoomNotFoundError):
        registration.register_student(_request(room_id="99"), CALLER)


def test_reconcile_accepts_string_ids(serial_services):
    registration, occupancy, _ = serial_services
    registration.register_student(_request(), CALLER)

    results = occupancy.reconcile(["5", "6", "77"])

    assert [(item.room_id, item.occupancy) for item in results] == [("5", 1), ("6", 0)]


def test_closing_semester_with_integer_keys(serial_db, serial_services):
    registration, _, transitions = serial_services
    registration.register_student(_request(), CALLER)

    report = transitions.close_ended_semesters(date(2026, 6, 1))

    assert report.closed == ["3"]
    with serial_db.engine.connect() as conn:
        room = conn.execute(select(rooms).where(rooms.c.id == 5)).mappings().one()
    assert room["current_occupants"] == 0
    assert room["status"] == "available"
