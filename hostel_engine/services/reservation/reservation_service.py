"""
Next-semester room reservations.

A student who currently lives in a room may keep it for a coming
semester. Reservations never count toward occupancy; the booking sweeper
expires them once ``expires_at`` passes.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy import select

from hostel_engine.config.settings import Settings
from hostel_engine.core.exceptions import ReservationError, RoomNotFoundError
from hostel_engine.db.capabilities import SchemaCapabilityCache
from hostel_engine.db.session import Database
from hostel_engine.models.base import (
    AssignmentStatus,
    PaymentMethod,
    ReservationStatus,
    SemesterStatus,
)
from hostel_engine.repositories import (
    AssignmentRepository,
    PaymentRepository,
    ReservationRepository,
    RoomRepository,
    SemesterRepository,
)
from hostel_engine.schemas.reservation import ReservationRequest, ReservationResult
from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.utils.date_utils import now_utc, start_of_day, to_utc

# Methods that may confirm a reservation on the spot
INSTANT_METHODS = (PaymentMethod.CASH, PaymentMethod.MOBILE_MONEY)


class ReservationService(BaseService):

    def __init__(
        self,
        database: Database,
        settings: Settings,
        audit: AuditLogger,
        capability_cache: Optional[SchemaCapabilityCache] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(database, settings, capability_cache, clock)
        self.audit = audit

    def create_reservation(self, request: ReservationRequest) -> ReservationResult:
        """
        Reserve the student's current room for ``reserved_for_semester_id``.

        Raises:
            ReservationError: The student is not in the room this semester,
                the target semester is not open, or a reservation exists
            RoomNotFoundError: Unknown room
        """
        caps = self.capabilities()
        now = self.clock()

        with self.unit_of_work("create_reservation") as session:
            rooms = RoomRepository(session, caps)
            semesters = SemesterRepository(session, caps)
            assignments = AssignmentRepository(session, caps)
            reservations = ReservationRepository(session, caps)

            room = rooms.get(request.room_id)
            if room is None:
                raise RoomNotFoundError(request.room_id)

            current = self._current_assignment(session, caps, request, room["hostel_id"])
            if current is None:
                raise ReservationError(
                    "You must be currently assigned to this room to reserve it for next semester",
                    status_code=403,
                )

            semester = semesters.get_in_hostel(request.reserved_for_semester_id, room["hostel_id"])
            if semester is None:
                raise ReservationError("Reserved semester not found for this hostel", status_code=404)
            if not SemesterStatus.is_open(semester["status"]):
                raise ReservationError("Can only reserve rooms for upcoming or active semesters")

            if reservations.find_live(request.user_id, request.room_id, request.reserved_for_semester_id):
                raise ReservationError(
                    "You already have an active reservation for this room and semester",
                    status_code=409,
                )

            hold_until = now + timedelta(days=self.settings.RESERVATION_HOLD_DAYS)
            expires_at = min(start_of_day(semester["start_date"]), to_utc(hold_until))

            booking_fee = self._booking_fee(session, caps, room["hostel_id"])
            payment_id = None
            status = ReservationStatus.ACTIVE
            if self._pays_now(request, booking_fee):
                payment_id = PaymentRepository(session, caps).record(
                    user_id=request.user_id,
                    amount=booking_fee,
                    currency=self.settings.DEFAULT_CURRENCY,
                    payment_method=request.payment_method.value,
                    recorded_by=request.user_id,
                    now=now,
                    hostel_id=room["hostel_id"],
                    semester_id=request.reserved_for_semester_id,
                    notes="Booking fee for room reservation",
                )
                status = ReservationStatus.CONFIRMED

            reservation_id = reservations.insert({
                "user_id": request.user_id,
                "room_id": request.room_id,
                "current_semester_id": current,
                "reserved_for_semester_id": request.reserved_for_semester_id,
                "status": status.value,
                "reservation_date": now,
                "confirmed_at": now if status is ReservationStatus.CONFIRMED else None,
                "expires_at": expires_at,
                "notes": request.notes,
            })

        self._logger.info(
            f"Room reserved ({status.value})",
            extra={"reservation_id": str(reservation_id), "room_id": str(request.room_id)},
        )
        self.audit.append(
            "reservation.created",
            request.user_id,
            str(reservation_id),
            {"status": status.value, "payment_id": str(payment_id) if payment_id else None},
            entity_type="reservation",
        )
        return ReservationResult(
            reservation_id=str(reservation_id),
            status=status.value,
            expires_at=expires_at,
            payment_id=str(payment_id) if payment_id is not None else None,
        )

    def cancel_reservation(self, reservation_id: Any, user_id: Any) -> bool:
        """Cancel one of the student's own live reservations."""
        caps = self.capabilities()
        with self.unit_of_work("cancel_reservation") as session:
            reservations = ReservationRepository(session, caps)
            reservation = reservations.get(reservation_id)
            if reservation is None or str(reservation["user_id"]) != str(user_id):
                raise ReservationError("Reservation not found", status_code=404)
            cancelled = reservations.cancel(reservation_id) > 0

        if cancelled:
            self.audit.append("reservation.cancelled", user_id, str(reservation_id), entity_type="reservation")
        return cancelled

    # -------------------------------------------------------------------------

    @staticmethod
    def _current_assignment(session, caps, request: ReservationRequest, hostel_id: Any):
        """Semester id of the student's active assignment to the room in the current active semester."""
        sra = caps.table("student_room_assignments")
        semesters = caps.table("semesters")
        user_col = sra.c[AssignmentRepository(session, caps).user_column]
        stmt = (
            select(sra.c.semester_id)
            .join(semesters, semesters.c.id == sra.c.semester_id)
            .where(
                user_col == request.user_id,
                sra.c.room_id == request.room_id,
                sra.c.status == AssignmentStatus.ACTIVE.value,
                semesters.c.hostel_id == hostel_id,
                semesters.c.is_current.is_(True),
                semesters.c.status == SemesterStatus.ACTIVE.value,
            )
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _booking_fee(session, caps, hostel_id: Any) -> Decimal:
        if not caps.has_column("hostels", "booking_fee"):
            return Decimal("0")
        hostels = caps.table("hostels")
        fee = session.execute(
            select(hostels.c.booking_fee).where(hostels.c.id == hostel_id)
        ).scalar_one_or_none()
        return Decimal(fee or 0)

    @staticmethod
    def _pays_now(request: ReservationRequest, booking_fee: Decimal) -> bool:
        if booking_fee <= 0 or request.payment_method is None:
            return False
        if request.payment_method not in INSTANT_METHODS:
            return False
        return request.payment_method is PaymentMethod.CASH or bool(request.payment_reference)
