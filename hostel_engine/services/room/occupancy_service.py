"""
Room occupancy calculation and reconciliation.

Occupancy is never incremented or decremented in place: it is recounted
from assignments, enrollments and payments, so the reconciliation can be
run after any change, any number of times.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Session

from hostel_engine.db.capabilities import SchemaCapabilities
from hostel_engine.models.base import RoomStatus
from hostel_engine.repositories import AssignmentRepository, BookingRepository, RoomRepository
from hostel_engine.schemas.occupancy import RoomAvailability, RoomOccupancy
from hostel_engine.services.base.base_service import BaseService


def room_capacity(room: Mapping[str, Any]) -> int:
    """Capacity as an int (older schemas store it as text)."""
    try:
        return int(room.get("capacity") or 1)
    except (TypeError, ValueError):
        return 1


class RoomOccupancyService(BaseService):
    """Counts legitimately registered occupants and persists room status."""

    @staticmethod
    def derive_status(occupancy: int, capacity: int) -> RoomStatus:
        if occupancy >= capacity:
            return RoomStatus.OCCUPIED
        if occupancy > 0:
            return RoomStatus.PARTIALLY_OCCUPIED
        return RoomStatus.AVAILABLE

    def count_occupants(
        self,
        room_ids: Iterable[Any],
        exclude_user_id: Optional[Any] = None,
    ) -> Dict[Any, int]:
        """Registered occupants per room; rooms with none map to 0."""
        ids = list(room_ids)
        with self.unit_of_work("count_occupants") as session:
            counts = AssignmentRepository(session, self.capabilities()).count_registered_occupants(
                ids, exclude_user_id=exclude_user_id
            )
        return {room_id: counts.get(room_id, 0) for room_id in ids}

    def recompute(self, room_id: Any) -> Optional[RoomOccupancy]:
        """Recount one room in its own transaction."""
        results = self.reconcile([room_id])
        return results[0] if results else None

    def reconcile(self, room_ids: Iterable[Any]) -> List[RoomOccupancy]:
        """Recount and persist several rooms in one transaction."""
        ids = list(room_ids)
        with self.unit_of_work("reconcile_rooms") as session:
            return self.reconcile_in(session, self.capabilities(), ids)

    def reconcile_in(
        self,
        session: Session,
        caps: SchemaCapabilities,
        room_ids: Iterable[Any],
        locked: Optional[Mapping[Any, RowMapping]] = None,
    ) -> List[RoomOccupancy]:
        """
        Recount rooms inside the caller's transaction.

        Rooms not already in ``locked`` are locked here, in id order. The
        counts are read after the locks are held.
        """
        rooms = RoomRepository(session, caps)
        held: Dict[Any, RowMapping] = dict(locked or {})
        known = {str(key) for key in held}
        wanted = {str(room_id) for room_id in room_ids if room_id is not None}
        missing = [room_id for room_id in wanted if room_id not in known]
        if missing:
            held.update(rooms.lock(missing))

        targets = sorted(
            (row for key, row in held.items() if str(key) in wanted),
            key=lambda row: row["id"],
        )
        for room_id in wanted - {str(row["id"]) for row in targets}:
            self._logger.warning(f"Skipping reconcile of missing room {room_id}")

        counts = AssignmentRepository(session, caps).count_registered_occupants(
            [row["id"] for row in targets]
        )

        results: List[RoomOccupancy] = []
        for room in targets:
            room_id = room["id"]
            capacity = room_capacity(room)
            counted = counts.get(room_id, 0)
            if counted > capacity:
                self._logger.warning(
                    f"Room {room_id} has {counted} registered occupants for {capacity} places",
                    extra={"room_id": room_id, "counted": counted, "capacity": capacity},
                )
            occupancy = min(counted, capacity)
            status = self.derive_status(occupancy, capacity)

            if room.get("current_occupants") != occupancy or room.get("status") != status.value:
                rooms.set_occupancy(room_id, occupancy, status.value)

            results.append(RoomOccupancy(
                room_id=str(room_id),
                capacity=capacity,
                occupancy=occupancy,
                status=status.value,
            ))

        self._logger.debug("Rooms reconciled", extra={"room_count": len(results)})
        return results

    def list_available_rooms(
        self,
        hostel_id: Any,
        semester_id: Optional[Any] = None,
    ) -> List[RoomAvailability]:
        """
        Rooms of a hostel that still have free places.

        Free places subtract both registered occupants and public bookings
        that are holding a place (pending, booked or checked in).
        """
        caps = self.capabilities()
        with self.unit_of_work("list_available_rooms") as session:
            rows = RoomRepository(session, caps).list_for_hostel(hostel_id)
            ids = [row["id"] for row in rows]
            counts = AssignmentRepository(session, caps).count_registered_occupants(ids)
            held: Dict[Any, int] = {}
            if caps.has_public_bookings:
                held = BookingRepository(session, caps).count_held(ids, semester_id)

        available: List[RoomAvailability] = []
        for row in rows:
            capacity = room_capacity(row)
            occupancy = counts.get(row["id"], 0)
            holding = held.get(row["id"], 0)
            spaces = capacity - occupancy - holding
            if spaces <= 0:
                continue
            available.append(RoomAvailability(
                room_id=str(row["id"]),
                room_number=str(row["room_number"]),
                capacity=capacity,
                price=row["price"],
                gender_allowed=row.get("gender_allowed"),
                occupancy=occupancy,
                held_by_bookings=holding,
                available_spaces=spaces,
            ))
        return available
