"""
Periodic task bodies.

Both jobs report their outcome as a plain dict so the result backend can
store it as JSON.
"""

from typing import Any, Dict

from hostel_engine.tasks.celery_app import SEMESTER_TASK, SWEEP_TASK, celery_app, get_resources


@celery_app.task(name=SWEEP_TASK, ignore_result=False)
def sweep_expired_bookings() -> Dict[str, Any]:
    """Expire stale public bookings and room reservations."""
    return get_resources(celery_app).booking_expiry.sweep().to_dict()


@celery_app.task(name=SEMESTER_TASK, ignore_result=False)
def run_semester_transitions() -> Dict[str, Any]:
    """Close ended semesters and send upcoming-semester reminders."""
    return get_resources(celery_app).semester_transition.run().to_dict()
