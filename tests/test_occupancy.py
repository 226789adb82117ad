from decimal import Decimal

import pytest

from hostel_engine.models import Room
from hostel_engine.models.base import RoomStatus
from hostel_engine.services.room.occupancy_service import RoomOccupancyService
from tests.conftest import minutes_before


@pytest.mark.parametrize(
    "occupancy,capacity,expected",
    [
        (0, 2, RoomStatus.AVAILABLE),
        (1, 2, RoomStatus.PARTIALLY_OCCUPIED),
        (2, 2, RoomStatus.OCCUPIED),
        (1, 1, RoomStatus.OCCUPIED),
        (3, 4, RoomStatus.PARTIALLY_OCCUPIED),
    ],
)
def test_derive_status(occupancy, capacity, expected):
    assert RoomOccupancyService.derive_status(occupancy, capacity) is expected


class TestPaymentGating:

    def test_assignment_without_payment_is_not_counted(self, seed, occupancy, hostel_id, semester_id):
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id)
        seed.assignment(student, room_id, semester_id)

        result = occupancy.recompute(room_id)

        assert result.occupancy == 0
        assert result.status == RoomStatus.AVAILABLE.value

    def test_payment_for_the_semester_counts(self, seed, occupancy, hostel_id, semester_id):
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id)
        seed.assignment(student, room_id, semester_id)
        seed.payment(student, semester_id=semester_id)

        result = occupancy.recompute(room_id)

        assert result.occupancy == 1
        assert result.status == RoomStatus.PARTIALLY_OCCUPIED.value
        room = seed.fetch(Room, room_id)
        assert room.current_occupants == 1
        assert room.status == RoomStatus.PARTIALLY_OCCUPIED.value

    def test_payment_without_semester_counts(self, seed, occupancy, hostel_id, semester_id):
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id)
        seed.assignment(student, room_id, semester_id)
        seed.payment(student, semester_id=None)

        assert occupancy.recompute(room_id).occupancy == 1

    def test_payment_for_another_semester_does_not_count(self, seed, occupancy, hostel_id, semester_id):
        other = seed.semester(hostel_id, name="Semester II", status="upcoming", is_current=False)
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id)
        seed.assignment(student, room_id, semester_id)
        seed.payment(student, semester_id=other)

        assert occupancy.recompute(room_id).occupancy == 0

    def test_enrollment_without_balance_does_not_count(self, seed, occupancy, hostel_id, semester_id):
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id, balance=None)
        seed.assignment(student, room_id, semester_id)
        seed.payment(student, semester_id=semester_id)

        assert occupancy.recompute(room_id).occupancy == 0

    def test_cancelled_assignment_does_not_count(self, seed, occupancy, hostel_id, semester_id):
        room_id = seed.room(hostel_id)
        student = seed.user("amina@students.example.com", hostel_id=hostel_id)
        seed.enrollment(student, semester_id)
        seed.assignment(student, room_id, semester_id, status="cancelled")
        seed.payment(student, semester_id=semester_id)

        assert occupancy.recompute(room_id).occupancy == 0


def _registered(seed, hostel_id, semester_id, room_id, email):
    student = seed.user(email, hostel_id=hostel_id)
    seed.enrollment(student, semester_id)
    seed.assignment(student, room_id, semester_id)
    seed.payment(student, semester_id=semester_id)
    return student


def test_reconcile_clamps_to_capacity(seed, occupancy, hostel_id, semester_id):
    room_id = seed.room(hostel_id, capacity=1)
    _registered(seed, hostel_id, semester_id, room_id, "one@students.example.com")
    _registered(seed, hostel_id, semester_id, room_id, "two@students.example.com")

    result = occupancy.recompute(room_id)

    assert result.occupancy == 1
    assert result.status == RoomStatus.OCCUPIED.value
    assert seed.fetch(Room, room_id).current_occupants == 1


def test_reconcile_is_idempotent(seed, occupancy, hostel_id, semester_id):
    room_id = seed.room(hostel_id)
    _registered(seed, hostel_id, semester_id, room_id, "one@students.example.com")

    first = occupancy.reconcile([room_id])
    second = occupancy.reconcile([room_id])

    assert first == second


def test_count_occupants_excludes_user(seed, occupancy, hostel_id, semester_id):
    room_id = seed.room(hostel_id)
    empty_room = seed.room(hostel_id, room_number="A2")
    one = _registered(seed, hostel_id, semester_id, room_id, "one@students.example.com")
    _registered(seed, hostel_id, semester_id, room_id, "two@students.example.com")

    assert occupancy.count_occupants([room_id, empty_room]) == {room_id: 2, empty_room: 0}
    assert occupancy.count_occupants([room_id], exclude_user_id=one) == {room_id: 1}


def test_list_available_rooms_subtracts_occupants_and_held_bookings(seed, occupancy, hostel_id, semester_id):
    half_full = seed.room(hostel_id, room_number="A1", capacity=2)
    roomy = seed.room(hostel_id, room_number="B1", capacity=3, price=Decimal("400000"))
    _registered(seed, hostel_id, semester_id, half_full, "one@students.example.com")
    seed.booking(hostel_id, minutes_before(5), room_id=half_full)
    seed.booking(hostel_id, minutes_before(5), room_id=roomy, status="cancelled")
    seed.booking(hostel_id, minutes_before(5), room_id=roomy, status="booked")

    available = occupancy.list_available_rooms(hostel_id)

    assert [room.room_number for room in available] == ["B1"]
    assert available[0].occupancy == 0
    assert available[0].held_by_bookings == 1
    assert available[0].available_spaces == 2
