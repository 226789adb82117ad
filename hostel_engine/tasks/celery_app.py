"""
Celery application and beat schedule for the engine's periodic jobs.

Run a worker and the scheduler with::

    celery -A hostel_engine.tasks.celery_app worker --loglevel=info
    celery -A hostel_engine.tasks.celery_app beat --loglevel=info
"""

from typing import Optional

from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_init, worker_process_shutdown

from hostel_engine.config.settings import Settings, get_settings
from hostel_engine.core.logging import get_logger, setup_logging
from hostel_engine.tasks.resources import EngineResources

logger = get_logger(__name__)

SWEEP_TASK = "hostel_engine.tasks.sweep_expired_bookings"
SEMESTER_TASK = "hostel_engine.tasks.run_semester_transitions"


def create_celery_app(settings: Optional[Settings] = None) -> Celery:
    """Build the Celery app with its beat schedule."""
    settings = settings or get_settings()

    app = Celery(
        "hostel_engine",
        broker=settings.get_broker_url(),
        backend=settings.get_result_backend(),
        include=["hostel_engine.tasks.scheduled"],
    )
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        task_track_started=True,
        worker_prefetch_multiplier=1,
        task_acks_late=True,
    )
    app.conf.beat_schedule = {
        "sweep-expired-bookings": {
            "task": SWEEP_TASK,
            "schedule": crontab(minute=f"*/{settings.BOOKING_SWEEP_INTERVAL_MINUTES}"),
        },
        "semester-transitions": {
            "task": SEMESTER_TASK,
            "schedule": crontab(hour=settings.SEMESTER_CHECK_HOUR_UTC, minute=0),
        },
    }
    app.engine_settings = settings
    app.engine_resources = None
    return app


def get_resources(app: Celery) -> EngineResources:
    """Resources of the current process, created on first use."""
    if app.engine_resources is None:
        app.engine_resources = EngineResources.from_settings(app.engine_settings)
    return app.engine_resources


celery_app = create_celery_app()


@worker_process_init.connect
def init_worker_resources(**kwargs) -> None:
    setup_logging(celery_app.engine_settings)
    celery_app.engine_resources = EngineResources.from_settings(celery_app.engine_settings)
    logger.info("Worker resources initialized")


@worker_process_shutdown.connect
def close_worker_resources(**kwargs) -> None:
    if celery_app.engine_resources is not None:
        celery_app.engine_resources.close()
        celery_app.engine_resources = None
