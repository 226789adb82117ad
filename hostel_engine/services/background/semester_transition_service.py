"""
Semester transition scheduler.

Daily duties:
- close semesters whose end date has passed, completing their
  enrollments and assignments and reconciling the rooms they held;
- remind hostel staff once about semesters starting soon.

Each semester is handled in its own transaction. A semester that fails
(or has inconsistent dates) is logged and the batch moves on.
"""

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from hostel_engine.core.exceptions import (
    BaseAppException,
    InvalidStateTransitionError,
    SemesterNotFoundError,
)
from hostel_engine.models.base import SemesterStatus
from hostel_engine.repositories import (
    AssignmentRepository,
    EnrollmentRepository,
    RoomRepository,
    SemesterRepository,
    UserRepository,
)
from hostel_engine.schemas.registration import CallerContext
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.services.base.notification_dispatcher import NotificationDispatcher
from hostel_engine.services.room.occupancy_service import RoomOccupancyService
from hostel_engine.utils.date_utils import days_between

CLOSED = "closed"
SKIPPED = "skipped"


@dataclass
class SemesterTransitionReport:
    """Outcome of one scheduler run."""
    closed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    reminders_sent: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "closed": self.closed,
            "skipped": self.skipped,
            "failed": self.failed,
            "reminders_sent": self.reminders_sent,
            "duration_ms": round(self.duration_ms, 2),
        }


class SemesterTransitionService(BaseService):

    def __init__(self, occupancy: RoomOccupancyService, notifier: NotificationDispatcher):
        super().__init__(occupancy.database, occupancy.settings, occupancy.capability_cache, occupancy.clock)
        self.occupancy = occupancy
        self.notifier = notifier

    def run(self, today: Optional[date] = None) -> SemesterTransitionReport:
        """Close ended semesters, then send reminders."""
        today = today or self.clock().date()
        report = self.close_ended_semesters(today)
        report.reminders_sent = self.send_upcoming_reminders(today)
        return report

    # -------------------------------------------------------------------------
    # Closing
    # -------------------------------------------------------------------------

    def close_ended_semesters(self, today: Optional[date] = None) -> SemesterTransitionReport:
        today = today or self.clock().date()
        started = time.perf_counter()
        report = SemesterTransitionReport()
        caps = self.capabilities()

        with self.unit_of_work("list_ended_semesters") as session:
            ended = SemesterRepository(session, caps).list_ended_ids(today)

        for semester_id in ended:
            try:
                outcome = self._close_one(semester_id, today)
            except Exception as e:
                self._logger.error(
                    f"Failed to close semester {semester_id}: {e}",
                    exc_info=True,
                    extra={"semester_id": str(semester_id)},
                )
                report.failed.append(str(semester_id))
                continue

            if outcome == CLOSED:
                report.closed.append(str(semester_id))
            else:
                report.skipped.append(str(semester_id))

        report.duration_ms = (time.perf_counter() - started) * 1000
        self._logger.info(
            f"Semester check finished: {len(report.closed)} closed, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed",
            extra=report.to_dict(),
        )
        return report

    def _close_one(self, semester_id: Any, today: date) -> str:
        caps = self.capabilities()
        now = self.clock()
        with self.unit_of_work("close_semester") as session:
            semesters = SemesterRepository(session, caps)
            assignments = AssignmentRepository(session, caps)

            semester = semesters.lock(semester_id)
            if semester is None or not SemesterStatus.is_open(semester["status"]):
                return SKIPPED
            if semester["end_date"] < semester["start_date"]:
                self._logger.error(
                    f"Semester {semester_id} ends before it starts; leaving it open",
                    extra={"semester_id": str(semester_id)},
                )
                return SKIPPED
            if semester["end_date"] >= today:
                return SKIPPED

            room_ids = {row["room_id"] for row in assignments.find_active_in_semester(semester_id)}
            locked = RoomRepository(session, caps).lock(room_ids)
            # Re-read under the locks; reconcile_in locks any room added meanwhile.
            room_ids |= {row["room_id"] for row in assignments.find_active_in_semester(semester_id)}

            semesters.close(semester_id)
            enrollments = EnrollmentRepository(session, caps).complete_for_semester(semester_id, now)
            completed = assignments.complete_for_semester(semester_id)
            self.occupancy.reconcile_in(session, caps, room_ids, locked=locked)

        self._logger.info(
            f"Semester {semester_id} completed",
            extra={
                "semester_id": str(semester_id),
                "enrollments_completed": enrollments,
                "assignments_completed": completed,
                "rooms_reconciled": len(room_ids),
            },
        )
        return CLOSED

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def send_upcoming_reminders(self, today: Optional[date] = None) -> int:
        """
        Notify hostel staff about semesters starting within the lookahead window.

        With a ``reminder_sent_at`` column each semester is claimed before
        sending, so it is reminded once. Without it, reminders go out only
        on the day the semester enters the window.
        """
        today = today or self.clock().date()
        lookahead = self.settings.SEMESTER_REMINDER_LOOKAHEAD_DAYS
        caps = self.capabilities()
        marker = caps.semester_has_reminder_marker

        with self.unit_of_work("list_upcoming_semesters") as session:
            upcoming = SemesterRepository(session, caps).list_starting_between(
                today, today + timedelta(days=lookahead)
            )

        sent = 0
        for semester in upcoming:
            if marker:
                if semester["reminder_sent_at"] is not None:
                    continue
            elif days_between(today, semester["start_date"]) != lookahead:
                continue

            try:
                sent += self._remind(semester, today, marker)
            except BaseAppException as e:
                self._logger.error(
                    f"Reminder for semester {semester['id']} failed: {e}",
                    exc_info=True,
                    extra={"semester_id": str(semester["id"])},
                )
        return sent

    def _remind(self, semester, today: date, marker: bool) -> int:
        caps = self.capabilities()
        with self.unit_of_work("semester_reminder") as session:
            if marker and not SemesterRepository(session, caps).mark_reminder_sent(
                semester["id"], self.clock()
            ):
                return 0
            staff = UserRepository(session, caps).list_staff(semester["hostel_id"])

        days = days_between(today, semester["start_date"])
        subject = f"Semester '{semester['name']}' starts in {days} day(s)"
        body = (
            f"<p>The semester <strong>{semester['name']}</strong> "
            f"({semester['academic_year']}) starts on {semester['start_date'].isoformat()}.</p>"
            f"<p>Please make sure rooms and enrollments are ready.</p>"
        )
        for member in staff:
            self.notifier.notify_async(member["email"], subject, body)

        self._logger.info(
            f"Reminded {len(staff)} staff about semester {semester['id']}",
            extra={"semester_id": str(semester["id"]), "recipients": len(staff)},
        )
        return 1

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    def activate_semester(self, semester_id: Any, caller: Optional[CallerContext] = None) -> Dict[str, Any]:
        """
        Make a semester the hostel's active, current one.

        Every other semester of the hostel loses the current flag, so the
        most recently activated semester wins.
        """
        caps = self.capabilities()
        with self.unit_of_work("activate_semester") as session:
            semesters = SemesterRepository(session, caps)
            semester = semesters.lock(semester_id)
            if semester is None:
                raise SemesterNotFoundError(semester_id)
            if caller is not None:
                self.authorize(caller, semester["hostel_id"])

            status = SemesterStatus.normalize(semester["status"])
            if not SemesterStatus.is_open(status):
                raise InvalidStateTransitionError("semester", status.value, SemesterStatus.ACTIVE.value)

            semesters.clear_current(semester["hostel_id"], semester_id)
            semesters.mark_active(semester_id, self.clock())
            activated = dict(semesters.get(semester_id))

        self._logger.info(
            f"Semester {semester_id} activated",
            extra={"semester_id": str(semester_id), "hostel_id": str(activated["hostel_id"])},
        )
        return activated

    def resolve_active_semester(self, hostel_id: Any) -> Optional[Any]:
        """
        Id of the hostel's current active semester.

        Returns None when there is none, unless ``REQUIRE_ACTIVE_SEMESTER``
        is set, in which case ``SemesterNotFoundError`` is raised.
        """
        strict = self.settings.REQUIRE_ACTIVE_SEMESTER
        caps = self.capabilities()
        if not caps.has_table("semesters"):
            if strict:
                raise SemesterNotFoundError()
            self._logger.warning("Semesters table missing; skipping active semester enforcement")
            return None

        with self.unit_of_work("resolve_active_semester") as session:
            current = [
                row for row in SemesterRepository(session, caps).find_current(hostel_id)
                if SemesterStatus.normalize(row["status"]) is SemesterStatus.ACTIVE
            ]

        if len(current) > 1:
            self._logger.warning(
                f"Hostel {hostel_id} has {len(current)} current semesters; using the latest activated",
                extra={"hostel_id": str(hostel_id)},
            )
        if current:
            return current[0]["id"]

        if strict:
            raise SemesterNotFoundError()
        self._logger.warning(
            f"No active semester found for hostel {hostel_id}; proceeding without semester linkage",
            extra={"hostel_id": str(hostel_id)},
        )
        return None
