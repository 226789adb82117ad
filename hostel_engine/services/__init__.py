"""
Service layer root package.

Each service owns its units of work: it opens a session per transaction
through ``BaseService.unit_of_work``, builds repositories over the
reflected tables of the current ``SchemaCapabilities``, and runs audit and
notification side effects only after commit.

Typical wiring::

    database = Database.from_settings(settings)
    cache = SchemaCapabilityCache(settings.SCHEMA_CAPABILITY_TTL_SECONDS)
    occupancy = RoomOccupancyService(database, settings, cache)
    registration = StudentRegistrationService(
        database, settings, occupancy, AuditLogger(database),
        SMTPNotificationDispatcher.from_settings(settings),
    )
"""

from hostel_engine.services.background import (
    BookingExpiryService,
    SemesterTransitionReport,
    SemesterTransitionService,
    SweepReport,
)
from hostel_engine.services.base import (
    AuditLogger,
    BaseService,
    NotificationDispatcher,
    NullNotificationDispatcher,
    SMTPNotificationDispatcher,
)
from hostel_engine.services.registration import StudentRegistrationService
from hostel_engine.services.reservation import ReservationService
from hostel_engine.services.room import AssignmentService, RoomOccupancyService

__all__ = [
    "BaseService",
    "AuditLogger",
    "NotificationDispatcher",
    "SMTPNotificationDispatcher",
    "NullNotificationDispatcher",
    "RoomOccupancyService",
    "AssignmentService",
    "StudentRegistrationService",
    "ReservationService",
    "BookingExpiryService",
    "SweepReport",
    "SemesterTransitionService",
    "SemesterTransitionReport",
]
