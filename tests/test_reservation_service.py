from datetime import date, datetime
from decimal import Decimal

import pytest

from hostel_engine.core.exceptions import ReservationError
from hostel_engine.models import Hostel, Payment, Room, RoomReservation
from hostel_engine.models.base import PaymentMethod
from hostel_engine.schemas.reservation import ReservationRequest
from hostel_engine.services.reservation.reservation_service import ReservationService
from hostel_engine.utils.date_utils import UTC
from tests.conftest import FIXED_NOW


@pytest.fixture
def reservations(database, settings, audit, capability_cache, clock) -> ReservationService:
    return ReservationService(database, settings, audit, capability_cache, clock)


@pytest.fixture
def resident(registration, seed, admin_caller, make_request, hostel_id):
    room_id = seed.room(hostel_id)
    result = registration.register_student(make_request(room_id, "amina@students.example.com"), admin_caller)
    return result.user_id, room_id


@pytest.fixture
def next_semester(seed, hostel_id):
    return seed.semester(
        hostel_id,
        name="Semester II",
        start_date=date(2026, 8, 10),
        end_date=date(2026, 12, 15),
        status="upcoming",
        is_current=False,
    )


def test_reservation_without_fee_stays_active(reservations, seed, resident, next_semester):
    user_id, room_id = resident

    result = reservations.create_reservation(ReservationRequest(
        user_id=user_id, room_id=room_id, reserved_for_semester_id=next_semester,
    ))

    assert result.status == "active"
    assert result.payment_id is None
    assert result.expires_at == datetime(2026, 4, 1, 10, 0, tzinfo=UTC)
    assert seed.fetch(RoomReservation, result.reservation_id).status == "active"


def test_hold_never_outlives_semester_start(reservations, seed, resident, hostel_id):
    user_id, room_id = resident
    soon = seed.semester(
        hostel_id,
        name="Recess",
        start_date=date(2026, 3, 10),
        end_date=date(2026, 4, 10),
        status="upcoming",
        is_current=False,
    )

    result = reservations.create_reservation(ReservationRequest(
        user_id=user_id, room_id=room_id, reserved_for_semester_id=soon,
    ))

    assert result.expires_at == datetime(2026, 3, 10, tzinfo=UTC)


def test_cash_booking_fee_confirms_reservation(reservations, seed, hostel_id, resident, next_semester, database):
    user_id, room_id = resident
    with database.session() as session:
        session.get(Hostel, hostel_id).booking_fee = Decimal("50000")

    result = reservations.create_reservation(ReservationRequest(
        user_id=user_id,
        room_id=room_id,
        reserved_for_semester_id=next_semester,
        payment_method=PaymentMethod.CASH,
    ))

    assert result.status == "confirmed"
    payment = seed.fetch(Payment, result.payment_id)
    assert payment.amount == Decimal("50000")
    assert payment.semester_id == next_semester
    assert seed.fetch(RoomReservation, result.reservation_id).confirmed_at is not None


def test_mobile_money_without_reference_does_not_confirm(
    reservations, hostel_id, resident, next_semester, database
):
    user_id, room_id = resident
    with database.session() as session:
        session.get(Hostel, hostel_id).booking_fee = Decimal("50000")

    result = reservations.create_reservation(ReservationRequest(
        user_id=user_id,
        room_id=room_id,
        reserved_for_semester_id=next_semester,
        payment_method=PaymentMethod.MOBILE_MONEY,
    ))

    assert result.status == "active"
    assert result.payment_id is None


def test_reservations_never_count_toward_occupancy(reservations, seed, resident, next_semester):
    user_id, room_id = resident
    before = seed.fetch(Room, room_id).current_occupants

    reservations.create_reservation(ReservationRequest(
        user_id=user_id, room_id=room_id, reserved_for_semester_id=next_semester,
    ))

    assert seed.fetch(Room, room_id).current_occupants == before == 1


def test_duplicate_reservation_is_rejected(reservations, resident, next_semester):
    user_id, room_id = resident
    request = ReservationRequest(user_id=user_id, room_id=room_id, reserved_for_semester_id=next_semester)
    reservations.create_reservation(request)

    with pytest.raises(ReservationError) as exc_info:
        reservations.create_reservation(request)

    assert exc_info.value.status_code == 409


def test_student_must_live_in_the_room(reservations, seed, hostel_id, resident, next_semester):
    user_id, _ = resident
    other_room = seed.room(hostel_id, room_number="Z9")

    with pytest.raises(ReservationError) as exc_info:
        reservations.create_reservation(ReservationRequest(
            user_id=user_id, room_id=other_room, reserved_for_semester_id=next_semester,
        ))

    assert exc_info.value.status_code == 403


def test_target_semester_must_be_open(reservations, seed, hostel_id, resident):
    user_id, room_id = resident
    past = seed.semester(hostel_id, name="Old", status="completed", is_current=False)

    with pytest.raises(ReservationError) as exc_info:
        reservations.create_reservation(ReservationRequest(
            user_id=user_id, room_id=room_id, reserved_for_semester_id=past,
        ))

    assert exc_info.value.status_code == 400


def test_cancel_reservation(reservations, seed, resident, next_semester):
    user_id, room_id = resident
    result = reservations.create_reservation(ReservationRequest(
        user_id=user_id, room_id=room_id, reserved_for_semester_id=next_semester,
    ))

    assert reservations.cancel_reservation(result.reservation_id, user_id)
    assert seed.fetch(RoomReservation, result.reservation_id).status == "cancelled"
    assert not reservations.cancel_reservation(result.reservation_id, user_id)

    with pytest.raises(ReservationError):
        reservations.cancel_reservation(result.reservation_id, "someone-else")
