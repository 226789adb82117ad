"""
Per-process engine resources.

A Celery worker process builds one ``EngineResources`` after fork and
keeps it on the Celery app; nothing here is module-global.
"""

from typing import Optional

from hostel_engine.config.settings import Settings
from hostel_engine.db.capabilities import SchemaCapabilityCache
from hostel_engine.db.session import Database
from hostel_engine.services.background.booking_expiry_service import BookingExpiryService
from hostel_engine.services.background.semester_transition_service import SemesterTransitionService
from hostel_engine.services.base.notification_dispatcher import (
    NotificationDispatcher,
    SMTPNotificationDispatcher,
)
from hostel_engine.services.room.occupancy_service import RoomOccupancyService


class EngineResources:
    """Database, capability cache, notifier and the scheduled services."""

    def __init__(
        self,
        settings: Settings,
        database: Database,
        notifier: NotificationDispatcher,
        capability_cache: Optional[SchemaCapabilityCache] = None,
    ):
        self.settings = settings
        self.database = database
        self.notifier = notifier
        self.capability_cache = capability_cache or SchemaCapabilityCache(
            settings.SCHEMA_CAPABILITY_TTL_SECONDS
        )

        occupancy = RoomOccupancyService(database, settings, self.capability_cache)
        self.booking_expiry = BookingExpiryService(database, settings, self.capability_cache)
        self.semester_transition = SemesterTransitionService(occupancy, notifier)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineResources":
        return cls(
            settings=settings,
            database=Database.from_settings(settings),
            notifier=SMTPNotificationDispatcher.from_settings(settings),
        )

    def close(self) -> None:
        self.notifier.shutdown(wait=True)
        self.database.dispose()
