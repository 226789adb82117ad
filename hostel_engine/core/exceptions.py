"""
Custom Exceptions for the Hostel Occupancy Engine

This module defines the typed failures raised by the registration,
occupancy and scheduling services. Business-rule rejections carry a
human-readable message meant to be shown to the caller as-is.
"""

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError


class ErrorCode(str, Enum):
    """Standard error codes for the engine"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Registration errors
    IDENTITY_CONFLICT = "IDENTITY_CONFLICT"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    SEMESTER_NOT_FOUND = "SEMESTER_NOT_FOUND"
    GENDER_MISMATCH = "GENDER_MISMATCH"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"

    # Lifecycle errors
    ASSIGNMENT_NOT_FOUND = "ASSIGNMENT_NOT_FOUND"
    RESERVATION_REJECTED = "RESERVATION_REJECTED"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Database errors
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    PERSISTENCE_CONFLICT = "PERSISTENCE_CONFLICT"
    TRANSIENT_CONNECTION = "TRANSIENT_CONNECTION"


class BaseAppException(Exception):
    """
    Base exception class for all engine exceptions.

    Provides consistent error handling across the engine with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Registration Exceptions
# ========================================

class IdentityConflictError(BaseAppException):
    """Email is already used by an account that cannot be registered here"""

    def __init__(self, message: str, email: Optional[str] = None):
        super().__init__(message, ErrorCode.IDENTITY_CONFLICT, {"email": email}, 409)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details, 404)


class RoomNotFoundError(ResourceNotFoundError):
    """Exception raised when a room is not found in the hostel"""

    def __init__(self, room_id: Optional[str] = None):
        super().__init__("Room", room_id, "Room not found", ErrorCode.ROOM_NOT_FOUND)


class SemesterNotFoundError(ResourceNotFoundError):
    """Exception raised when a semester is not found in the hostel"""

    def __init__(self, semester_id: Optional[str] = None):
        super().__init__(
            "Semester", semester_id, "Semester not found for this hostel",
            ErrorCode.SEMESTER_NOT_FOUND,
        )


class AssignmentNotFoundError(ResourceNotFoundError):
    def __init__(self, assignment_id: Optional[str] = None):
        super().__init__(
            "Room assignment", assignment_id, None, ErrorCode.ASSIGNMENT_NOT_FOUND,
        )


class GenderMismatchError(BaseAppException):
    """Student gender does not satisfy the room's gender policy"""

    def __init__(self, required_gender: str, declared_gender: Optional[str]):
        if declared_gender:
            message = (
                f"This room is allocated for {required_gender} students only. "
                f"Your gender ({declared_gender}) does not match."
            )
        else:
            message = (
                f"This room is allocated for {required_gender} students only. "
                f"A gender must be provided to register in it."
            )
        details = {"required_gender": required_gender, "declared_gender": declared_gender}
        super().__init__(message, ErrorCode.GENDER_MISMATCH, details, 422)


class InvalidAmountError(BaseAppException):
    """Initial payment is missing, not a number or not positive"""

    def __init__(self, amount: Any = None):
        super().__init__(
            "Booking fee is required and must be greater than 0",
            ErrorCode.INVALID_AMOUNT,
            {"amount": str(amount) if amount is not None else None},
            422,
        )


class CapacityExceededError(BaseAppException):
    """Room has no legitimate space left"""

    def __init__(self, room_id: str, capacity: int, occupancy: int):
        super().__init__(
            f"Room is full ({occupancy}/{capacity} places taken)",
            ErrorCode.CAPACITY_EXCEEDED,
            {"room_id": room_id, "capacity": capacity, "occupancy": occupancy},
            409,
        )


class AuthorizationError(BaseAppException):
    """Exception raised when the caller may not perform the operation"""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, {}, 403)


class ReservationError(BaseAppException):
    """Room reservation request rejected by a business rule"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message, ErrorCode.RESERVATION_REJECTED, {}, status_code)


class InvalidStateTransitionError(BaseAppException):
    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}'",
            ErrorCode.INVALID_STATE_TRANSITION,
            {"entity": entity, "current": current, "target": target},
            409,
        )


# ========================================
# Database Exceptions
# ========================================

class SchemaMismatchError(BaseAppException):
    """A column or table the engine cannot work without is missing"""

    def __init__(self, table: str, column: Optional[str] = None):
        target = f"{table}.{column}" if column else table
        super().__init__(
            f"Required schema element is missing: {target}",
            ErrorCode.SCHEMA_MISMATCH,
            {"table": table, "column": column},
            500,
        )


class PersistenceConflictError(BaseAppException):
    """Constraint violation or other database failure not otherwise classified"""

    def __init__(self, message: str = "Database constraint violated", original: Optional[str] = None):
        details = {"original_error": original} if original else {}
        super().__init__(message, ErrorCode.PERSISTENCE_CONFLICT, details, 409)


class TransientConnectionError(BaseAppException):
    """Retryable connection failure (timeout, reset)"""

    def __init__(self, message: str = "Database connection interrupted", original: Optional[str] = None):
        details = {"original_error": original} if original else {}
        super().__init__(message, ErrorCode.TRANSIENT_CONNECTION, details, 503)


_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "connection reset",
    "server closed the connection",
    "could not connect",
    "connection refused",
    "terminating connection",
)


def is_transient_db_error(exc: BaseException) -> bool:
    """Check whether a SQLAlchemy error is a retryable connection failure"""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        text = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in text for marker in _TRANSIENT_MARKERS)
    return False


def translate_db_error(exc: SQLAlchemyError) -> BaseAppException:
    """
    Map a SQLAlchemy error onto the engine taxonomy.

    Args:
        exc: The caught database error

    Returns:
        TransientConnectionError or PersistenceConflictError
    """
    original = str(getattr(exc, "orig", None) or exc)
    if is_transient_db_error(exc):
        return TransientConnectionError(original=original)
    if isinstance(exc, IntegrityError):
        return PersistenceConflictError(original=original)
    return PersistenceConflictError("Database operation failed", original=original)
