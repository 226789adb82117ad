"""
Student registration transaction.

Registers (or re-registers) a student into a room for a semester:
identity, profile, enrollment, assignment, payment and room occupancy
are written in one transaction, so a rejected registration leaves no
trace. Rooms are locked before the capacity check and re-read under the
lock, so concurrent registrations cannot jointly overfill a room.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from hostel_engine.config.settings import Settings
from hostel_engine.core.exceptions import (
    CapacityExceededError,
    GenderMismatchError,
    IdentityConflictError,
    InvalidAmountError,
    RoomNotFoundError,
    SemesterNotFoundError,
)
from hostel_engine.core.logging import bind_caller
from hostel_engine.core.retry import call_with_retry
from hostel_engine.db.capabilities import SchemaCapabilities
from hostel_engine.db.session import Database
from hostel_engine.models.base import AssignmentStatus, GenderPolicy, UserRole
from hostel_engine.repositories import (
    AssignmentRepository,
    EnrollmentRepository,
    PaymentRepository,
    ProfileRepository,
    RoomRepository,
    SemesterRepository,
    UserRepository,
)
from hostel_engine.schemas.registration import (
    CallerContext,
    RegistrationResult,
    StudentRegistrationRequest,
)
from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.services.base.notification_dispatcher import NotificationDispatcher
from hostel_engine.services.room.occupancy_service import RoomOccupancyService, room_capacity
from hostel_engine.utils.date_utils import now_utc
from hostel_engine.utils.hashing import PasswordHasher

PROFILE_FIELDS = (
    "access_number",
    "registration_number",
    "course",
    "phone",
    "whatsapp",
    "emergency_contact",
    "guardian_name",
    "guardian_phone",
    "gender",
    "date_of_birth",
)

WELCOME_SUBJECT = "Your hostel account"


@dataclass
class _Identity:
    user_id: Any
    is_new: bool
    temporary_password: Optional[str] = None


class StudentRegistrationService(BaseService):
    """
    Atomic student registration.

    Audit and notification collaborators are invoked only after the
    transaction committed; their failures are logged and swallowed.
    """

    def __init__(
        self,
        database: Database,
        settings: Settings,
        occupancy: RoomOccupancyService,
        audit: AuditLogger,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(database, settings, occupancy.capability_cache, clock)
        self.occupancy = occupancy
        self.audit = audit
        self.notifier = notifier

    def register_student(
        self,
        request: StudentRegistrationRequest,
        caller: CallerContext,
        capabilities: Optional[SchemaCapabilities] = None,
    ) -> RegistrationResult:
        """
        Register a student and return the ids of everything written.

        Raises:
            AuthorizationError: Caller may not register into this hostel
            InvalidAmountError: Initial payment missing or not positive
            SemesterNotFoundError / RoomNotFoundError: Unknown or foreign ids
            IdentityConflictError: Email belongs to staff or another hostel
            GenderMismatchError: Room policy excludes the student's gender
            CapacityExceededError: Room already full
            PersistenceConflictError / TransientConnectionError: Database failures
        """
        self.authorize(caller, request.hostel_id)
        amount = self._validate_amount(request.initial_payment_amount)
        caps = capabilities or self.capabilities()
        caps.require("rooms", "capacity", "current_occupants", "status", "price")
        caps.require("semester_enrollments", "user_id", "semester_id", "balance")
        caps.require("student_room_assignments", "room_id", "semester_id", "status")

        with bind_caller(caller.acting_user_id, str(request.hostel_id)):
            self._logger.info(
                "Registering student",
                extra={"room_id": request.room_id, "semester_id": request.semester_id},
            )
            isolation = self.settings.REGISTRATION_ISOLATION_LEVEL
            with self.unit_of_work("register_student", isolation_level=isolation) as session:
                identity, result = self._register(session, caps, request, caller, amount, isolation)

            self._logger.info(
                "Student registered",
                extra={
                    "user_id": result.user_id,
                    "enrollment_id": result.enrollment_id,
                    "is_new_user": result.is_new_user,
                    "room_status": result.room_status,
                },
            )
            self._after_commit(request, caller, identity, result)
        return result

    # -------------------------------------------------------------------------
    # Transaction body
    # -------------------------------------------------------------------------

    def _register(
        self,
        session: Session,
        caps: SchemaCapabilities,
        request: StudentRegistrationRequest,
        caller: CallerContext,
        amount: Decimal,
        isolation: Optional[str],
    ):
        now = self.clock()
        users = UserRepository(session, caps)
        profiles = ProfileRepository(session, caps)
        rooms = RoomRepository(session, caps)
        semesters = SemesterRepository(session, caps)
        enrollments = EnrollmentRepository(session, caps)
        assignments = AssignmentRepository(session, caps)
        payments = PaymentRepository(session, caps)

        def restart() -> None:
            session.rollback()
            if isolation:
                session.connection(execution_options={"isolation_level": isolation})

        existing = call_with_retry(
            lambda: users.find_by_email(request.email),
            max_attempts=self.settings.IDENTITY_LOOKUP_MAX_ATTEMPTS,
            backoff_seconds=self.settings.IDENTITY_LOOKUP_BACKOFF_SECONDS,
            on_retry=restart,
            operation="identity_lookup",
        )

        # Semester first, then rooms: the same order the semester closer takes.
        semester = semesters.lock(request.semester_id)
        if semester is None or str(semester["hostel_id"]) != str(request.hostel_id):
            raise SemesterNotFoundError(request.semester_id)
        room_row = rooms.get_in_hostel(request.room_id, request.hostel_id)
        if room_row is None:
            raise RoomNotFoundError(request.room_id)
        semester_id, room_id = semester["id"], room_row["id"]

        identity = self._resolve_identity(users, existing, request)
        profiles.upsert(identity.user_id, {name: getattr(request, name) for name in PROFILE_FIELDS})

        previous = assignments.find_active_for_semester(identity.user_id, semester_id)
        locked = rooms.lock({room_id, *(row["room_id"] for row in previous)})
        # Re-read under the locks; a concurrent move may have committed meanwhile.
        previous = assignments.find_active_for_semester(identity.user_id, semester_id)
        late = {row["room_id"] for row in previous} - set(locked)
        if late:
            locked.update(rooms.lock(late))
        room = locked.get(room_id)
        if room is None:
            raise RoomNotFoundError(request.room_id)

        gender = request.gender or profiles.get_gender(identity.user_id)
        self._check_gender(caps, room, gender)
        self._check_capacity(assignments, room, identity.user_id)

        total_amount = Decimal(room["price"] or 0)
        balance = max(Decimal("0"), total_amount - amount)
        enrollment_id = enrollments.upsert(
            user_id=identity.user_id,
            semester_id=semester_id,
            room_id=room_id,
            total_amount=total_amount,
            amount_paid=amount,
            balance=balance,
            enrollment_date=now.date(),
        )

        assignment_id = self._assign_room(
            assignments, previous, identity.user_id, room_id, semester_id, caller, now
        )

        # Payment must exist before the recount: it is the registration gate.
        payment_id = payments.record(
            user_id=identity.user_id,
            amount=amount,
            currency=request.currency or self.settings.DEFAULT_CURRENCY,
            payment_method=self.settings.DEFAULT_PAYMENT_METHOD,
            recorded_by=caller.acting_user_id,
            now=now,
            hostel_id=semester["hostel_id"],
            semester_id=semester_id,
        )

        occupancy = {
            item.room_id: item
            for item in self.occupancy.reconcile_in(session, caps, locked.keys(), locked=locked)
        }
        target = occupancy.get(str(room_id))

        result = RegistrationResult(
            user_id=str(identity.user_id),
            enrollment_id=str(enrollment_id),
            assignment_id=str(assignment_id),
            payment_id=str(payment_id),
            is_new_user=identity.is_new,
            room_status=target.status if target else None,
            room_occupancy=target.occupancy if target else None,
        )
        return identity, result

    def _resolve_identity(
        self,
        users: UserRepository,
        existing: Optional[Mapping[str, Any]],
        request: StudentRegistrationRequest,
    ) -> _Identity:
        if existing is not None:
            if existing["role"] != UserRole.USER.value:
                raise IdentityConflictError(
                    "Email already exists for another account type", request.email
                )
            if existing["hostel_id"] is not None and str(existing["hostel_id"]) != str(request.hostel_id):
                raise IdentityConflictError(
                    "Email already registered under a different hostel", request.email
                )

            updates: Dict[str, Any] = {}
            if existing["hostel_id"] is None:
                updates["hostel_id"] = request.hostel_id
            if request.name and request.name != existing["name"]:
                updates["name"] = request.name
            if updates:
                users.update_by_id(existing["id"], updates)
            return _Identity(user_id=existing["id"], is_new=False)

        temporary = PasswordHasher.generate_temporary_password(self.settings.TEMP_PASSWORD_LENGTH)
        password_hash = PasswordHasher.hash_password(temporary, self.settings.PASSWORD_BCRYPT_ROUNDS)
        user_id = users.create(
            email=request.email,
            name=request.name,
            password_hash=password_hash,
            hostel_id=request.hostel_id,
        )
        return _Identity(user_id=user_id, is_new=True, temporary_password=temporary)

    def _assign_room(
        self,
        assignments: AssignmentRepository,
        previous: List[Mapping[str, Any]],
        user_id: Any,
        room_id: Any,
        semester_id: Any,
        caller: CallerContext,
        now: datetime,
    ) -> Any:
        """Reuse the active assignment to the room, cancelling any other one."""
        reused = next((row for row in previous if row["room_id"] == room_id), None)
        stale = [row["id"] for row in previous if row is not reused]
        if stale:
            assignments.set_status(stale, AssignmentStatus.CANCELLED.value)
            self._logger.info(
                "Student moved rooms within the semester",
                extra={"user_id": user_id, "cancelled_assignments": len(stale)},
            )
        if reused is not None:
            return reused["id"]
        return assignments.create(
            user_id=user_id,
            room_id=room_id,
            semester_id=semester_id,
            assigned_by=caller.acting_user_id,
            now=now,
        )

    # -------------------------------------------------------------------------
    # Business rules
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_amount(amount: Any) -> Decimal:
        if amount is None:
            raise InvalidAmountError(amount)
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(amount) from None
        if not value.is_finite() or value <= 0:
            raise InvalidAmountError(amount)
        return value

    @staticmethod
    def _check_gender(caps: SchemaCapabilities, room: Mapping[str, Any], gender: Optional[str]) -> None:
        if not caps.room_has_gender_policy:
            return
        policy = str(room.get("gender_allowed") or GenderPolicy.BOTH.value).lower()
        if policy == GenderPolicy.BOTH.value:
            return
        declared = gender.strip().lower() if gender else None
        if declared != policy:
            raise GenderMismatchError(policy, declared)

    @staticmethod
    def _check_capacity(assignments: AssignmentRepository, room: Mapping[str, Any], user_id: Any) -> None:
        capacity = room_capacity(room)
        others = assignments.count_registered_occupants([room["id"]], exclude_user_id=user_id)
        occupancy = others.get(room["id"], 0)
        if occupancy >= capacity:
            raise CapacityExceededError(str(room["id"]), capacity, occupancy)

    # -------------------------------------------------------------------------
    # Post-commit collaborators
    # -------------------------------------------------------------------------

    def _after_commit(
        self,
        request: StudentRegistrationRequest,
        caller: CallerContext,
        identity: _Identity,
        result: RegistrationResult,
    ) -> None:
        self.audit.append(
            "student.registered",
            caller.acting_user_id,
            result.user_id,
            {
                "hostel_id": str(request.hostel_id),
                "room_id": str(request.room_id),
                "semester_id": str(request.semester_id),
                "enrollment_id": result.enrollment_id,
                "payment_id": result.payment_id,
                "amount": str(request.initial_payment_amount),
                "is_new_user": result.is_new_user,
            },
            entity_type="student",
        )

        if identity.is_new and identity.temporary_password:
            try:
                self.notifier.notify_async(
                    request.email,
                    WELCOME_SUBJECT,
                    self._welcome_body(request.name, request.email, identity.temporary_password),
                )
            except Exception as e:
                self._logger.warning(f"Welcome notification not queued: {e}")

    @staticmethod
    def _welcome_body(name: str, email: str, password: str) -> str:
        return (
            f"<p>Hello {name},</p>"
            f"<p>Your hostel account has been created.</p>"
            f"<p>Username: <strong>{email}</strong><br>"
            f"Temporary password: <strong>{password}</strong></p>"
            f"<p>Please change your password after your first login.</p>"
        )
