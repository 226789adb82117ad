"""
Room assignment lifecycle: status changes and student release.

Every change ends with a reconciliation of the rooms it touched.
"""

from typing import Any, List

from hostel_engine.core.exceptions import (
    AssignmentNotFoundError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
)
from hostel_engine.models.base import AssignmentStatus
from hostel_engine.repositories import AssignmentRepository, RoomRepository, UserRepository
from hostel_engine.schemas.occupancy import RoomOccupancy
from hostel_engine.schemas.registration import CallerContext
from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.services.room.occupancy_service import RoomOccupancyService

# Assignments only ever leave the active state
ALLOWED_TRANSITIONS = {
    AssignmentStatus.ACTIVE: {AssignmentStatus.CANCELLED, AssignmentStatus.COMPLETED},
}


class AssignmentService(BaseService):

    def __init__(self, occupancy: RoomOccupancyService, audit: AuditLogger):
        super().__init__(occupancy.database, occupancy.settings, occupancy.capability_cache, occupancy.clock)
        self.occupancy = occupancy
        self.audit = audit

    def change_status(
        self,
        assignment_id: Any,
        status: str,
        caller: CallerContext,
    ) -> RoomOccupancy:
        """
        Move an assignment to ``status`` and reconcile its room.

        Returns the room's occupancy after the change.
        """
        target = AssignmentStatus(status)
        caps = self.capabilities()

        with self.unit_of_work("change_assignment_status") as session:
            assignments = AssignmentRepository(session, caps)
            rooms = RoomRepository(session, caps)

            assignment = assignments.get(assignment_id)
            if assignment is None:
                raise AssignmentNotFoundError(assignment_id)

            locked = rooms.lock([assignment["room_id"]])
            room = locked.get(assignment["room_id"])
            if room is None:
                raise ResourceNotFoundError("Room", str(assignment["room_id"]))
            self.authorize(caller, room["hostel_id"])

            # Re-read under the room lock
            assignment = assignments.get(assignment_id)
            current = AssignmentStatus(assignment["status"])
            if current != target:
                if target not in ALLOWED_TRANSITIONS.get(current, set()):
                    raise InvalidStateTransitionError("assignment", current.value, target.value)
                assignments.set_status([assignment_id], target.value)

            result = self.occupancy.reconcile_in(session, caps, locked.keys(), locked=locked)[0]
            user_id = assignment[assignments.user_column]

        self._logger.info(
            f"Assignment {assignment_id} is now {target.value}",
            extra={"assignment_id": str(assignment_id), "room_status": result.status},
        )
        self.audit.append(
            "assignment.status_changed",
            caller.acting_user_id,
            str(user_id),
            {"assignment_id": str(assignment_id), "from": current.value, "to": target.value},
            entity_type="assignment",
        )
        return result

    def release_student(self, user_id: Any, caller: CallerContext) -> List[RoomOccupancy]:
        """
        Cancel every active assignment of a student (e.g. on removal).

        Returns the reconciled occupancy of each room the student left.
        """
        caps = self.capabilities()

        with self.unit_of_work("release_student") as session:
            users = UserRepository(session, caps)
            assignments = AssignmentRepository(session, caps)
            rooms = RoomRepository(session, caps)

            user = users.get(user_id)
            if user is None:
                raise ResourceNotFoundError("Student", str(user_id))
            self.authorize(caller, user["hostel_id"])

            room_ids = {row["room_id"] for row in assignments.find_active_for_user(user_id)}
            locked = rooms.lock(room_ids)

            active = assignments.find_active_for_user(user_id)
            cancelled = assignments.set_status(
                [row["id"] for row in active], AssignmentStatus.CANCELLED.value
            )
            touched = room_ids | {row["room_id"] for row in active}
            results = self.occupancy.reconcile_in(session, caps, touched, locked=locked)

        self._logger.info(
            f"Released student {user_id} from {cancelled} assignments",
            extra={"user_id": str(user_id), "rooms": len(results)},
        )
        self.audit.append(
            "student.released",
            caller.acting_user_id,
            str(user_id),
            {"cancelled_assignments": cancelled},
            entity_type="student",
        )
        return results
