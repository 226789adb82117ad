"""
Background Services Module

Periodic jobs run by the Celery beat schedule (see ``hostel_engine.tasks``):

    - BookingExpiryService: expires unpaid public bookings and lapsed
      room reservations
    - SemesterTransitionService: closes ended semesters, reminds staff
      of upcoming ones, and activates semesters

Both report their outcome as a dataclass (``SweepReport``,
``SemesterTransitionReport``) and never let one row's failure stop a batch.
"""

from hostel_engine.services.background.booking_expiry_service import (
    BookingExpiryService,
    SweepReport,
)
from hostel_engine.services.background.semester_transition_service import (
    SemesterTransitionReport,
    SemesterTransitionService,
)

__all__ = [
    "BookingExpiryService",
    "SweepReport",
    "SemesterTransitionService",
    "SemesterTransitionReport",
]
