"""
Shared service plumbing and side-effect collaborators.
"""

from hostel_engine.services.base.audit_logger import AuditLogger
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.services.base.notification_dispatcher import (
    NotificationDispatcher,
    NullNotificationDispatcher,
    SMTPNotificationDispatcher,
)

__all__ = [
    "BaseService",
    "AuditLogger",
    "NotificationDispatcher",
    "SMTPNotificationDispatcher",
    "NullNotificationDispatcher",
]
