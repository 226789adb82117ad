from datetime import date, timedelta

import pytest

from hostel_engine.core.exceptions import InvalidStateTransitionError, SemesterNotFoundError
from hostel_engine.models import Room, Semester, SemesterEnrollment, StudentRoomAssignment
from hostel_engine.services.background.semester_transition_service import SemesterTransitionService
from hostel_engine.services.room.occupancy_service import RoomOccupancyService
from tests.conftest import TODAY, make_settings


@pytest.fixture
def transitions(occupancy, notifier) -> SemesterTransitionService:
    return SemesterTransitionService(occupancy, notifier)


@pytest.fixture
def ended_semester(seed, hostel_id):
    return seed.semester(
        hostel_id,
        name="Semester II 2025",
        start_date=date(2025, 8, 10),
        end_date=date(2026, 2, 20),
        is_current=False,
    )


class TestCloseEndedSemesters:

    def test_ended_semester_is_completed(
        self, transitions, registration, seed, admin_caller, make_request, hostel_id, ended_semester
    ):
        room_id = seed.room(hostel_id)
        result = registration.register_student(
            make_request(room_id, "amina@students.example.com", semester_id=ended_semester), admin_caller
        )
        assert seed.fetch(Room, room_id).current_occupants == 1

        report = transitions.close_ended_semesters(TODAY)

        assert report.closed == [ended_semester]
        semester = seed.fetch(Semester, ended_semester)
        assert semester.status == "completed"
        assert not semester.is_current

        enrollment = seed.fetch(SemesterEnrollment, result.enrollment_id)
        assert enrollment.enrollment_status == "completed"
        assert enrollment.completed_at is not None
        assert seed.fetch(StudentRoomAssignment, result.assignment_id).status == "completed"

        room = seed.fetch(Room, room_id)
        assert room.current_occupants == 0
        assert room.status == "available"

    def test_closing_clears_the_current_flag(self, transitions, seed):
        current = seed.semester(
            seed.hostel("Kikoni Hall"),
            start_date=date(2025, 8, 1),
            end_date=date(2026, 1, 31),
        )

        transitions.close_ended_semesters(TODAY)

        semester = seed.fetch(Semester, current)
        assert semester.status == "completed"
        assert not semester.is_current

    def test_running_semester_is_left_alone(self, transitions, seed, semester_id):
        report = transitions.close_ended_semesters(TODAY)

        assert report.closed == []
        assert seed.fetch(Semester, semester_id).status == "active"

    def test_inconsistent_dates_are_skipped(self, transitions, seed, hostel_id, ended_semester):
        broken = seed.semester(
            seed.hostel("Kikoni Hall"),
            start_date=date(2026, 2, 10),
            end_date=date(2026, 1, 15),
            status="upcoming",
            is_current=False,
        )

        report = transitions.close_ended_semesters(TODAY)

        assert report.skipped == [broken]
        assert report.closed == [ended_semester]
        assert seed.fetch(Semester, broken).status == "upcoming"

    def test_failure_on_one_semester_does_not_stop_the_batch(
        self, transitions, seed, hostel_id, ended_semester, monkeypatch
    ):
        failing = seed.semester(
            seed.hostel("Kikoni Hall"),
            start_date=date(2025, 8, 1),
            end_date=date(2026, 1, 31),
        )
        close_one = transitions._close_one

        def flaky(semester_id, today):
            if semester_id == failing:
                raise RuntimeError("lock timeout")
            return close_one(semester_id, today)

        monkeypatch.setattr(transitions, "_close_one", flaky)

        report = transitions.close_ended_semesters(TODAY)

        assert report.failed == [failing]
        assert report.closed == [ended_semester]
        assert seed.fetch(Semester, failing).status == "active"

    def test_legacy_ended_status_is_not_closed_again(self, transitions, seed, hostel_id):
        seed.semester(
            hostel_id,
            start_date=date(2025, 8, 1),
            end_date=date(2026, 1, 31),
            status="ended",
            is_current=False,
        )

        assert transitions.close_ended_semesters(TODAY).closed == []


class TestReminders:

    def test_staff_are_reminded_once(self, transitions, seed, notifier, hostel_id, semester_id):
        seed.user("warden@heights.example.com", role="hostel_admin", hostel_id=hostel_id)
        seed.user("keeper@heights.example.com", role="custodian", hostel_id=hostel_id)
        seed.user("amina@students.example.com", role="user", hostel_id=hostel_id)
        upcoming = seed.semester(
            hostel_id,
            name="Semester II",
            start_date=TODAY + timedelta(days=5),
            end_date=TODAY + timedelta(days=120),
            status="upcoming",
            is_current=False,
        )

        assert transitions.send_upcoming_reminders(TODAY) == 1
        assert transitions.send_upcoming_reminders(TODAY + timedelta(days=1)) == 0

        assert sorted(to for to, _, _ in notifier.sent) == [
            "keeper@heights.example.com",
            "warden@heights.example.com",
        ]
        assert "5 day(s)" in notifier.sent[0][1]
        assert seed.fetch(Semester, upcoming).reminder_sent_at is not None

    def test_semesters_outside_the_window_are_ignored(self, transitions, seed, notifier, hostel_id):
        seed.user("warden@heights.example.com", role="hostel_admin", hostel_id=hostel_id)
        seed.semester(
            hostel_id,
            start_date=TODAY + timedelta(days=30),
            end_date=TODAY + timedelta(days=150),
            status="upcoming",
            is_current=False,
        )

        assert transitions.send_upcoming_reminders(TODAY) == 0
        assert notifier.sent == []

    def test_delivery_failures_do_not_block_the_marker(self, occupancy, seed, hostel_id):
        from tests.conftest import RecordingNotificationDispatcher

        failing = SemesterTransitionService(occupancy, RecordingNotificationDispatcher(fail=True))
        seed.user("warden@heights.example.com", role="hostel_admin", hostel_id=hostel_id)
        seed.semester(
            hostel_id,
            start_date=TODAY + timedelta(days=2),
            end_date=TODAY + timedelta(days=120),
            status="upcoming",
            is_current=False,
        )

        assert failing.send_upcoming_reminders(TODAY) == 1
        assert failing.send_upcoming_reminders(TODAY) == 0


class TestActivation:

    def test_activation_moves_the_current_flag(self, transitions, seed, hostel_id, semester_id):
        upcoming = seed.semester(
            hostel_id,
            name="Semester II",
            start_date=date(2026, 6, 1),
            end_date=date(2026, 10, 30),
            status="upcoming",
            is_current=False,
        )

        activated = transitions.activate_semester(upcoming)

        assert activated["status"] == "active"
        assert activated["is_current"]
        assert not seed.fetch(Semester, semester_id).is_current
        assert transitions.resolve_active_semester(hostel_id) == upcoming

    def test_completed_semester_cannot_be_activated(self, transitions, seed, hostel_id):
        done = seed.semester(hostel_id, status="completed", is_current=False)

        with pytest.raises(InvalidStateTransitionError):
            transitions.activate_semester(done)

    def test_unknown_semester(self, transitions):
        with pytest.raises(SemesterNotFoundError):
            transitions.activate_semester("missing")


class TestResolveActiveSemester:

    def test_returns_none_without_active_semester(self, transitions, hostel_id):
        assert transitions.resolve_active_semester(hostel_id) is None

    def test_strict_mode_raises(self, database, capability_cache, notifier, hostel_id, clock):
        strict = make_settings(REQUIRE_ACTIVE_SEMESTER=True)
        occupancy = RoomOccupancyService(database, strict, capability_cache, clock)
        service = SemesterTransitionService(occupancy, notifier)

        with pytest.raises(SemesterNotFoundError):
            service.resolve_active_semester(hostel_id)

    def test_current_but_upcoming_semester_is_not_active(self, transitions, seed, hostel_id):
        seed.semester(hostel_id, status="upcoming", is_current=True)

        assert transitions.resolve_active_semester(hostel_id) is None
