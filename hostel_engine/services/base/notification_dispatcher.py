"""
Notification dispatcher.

Delivery is fire-and-forget from the engine's point of view: ``notify``
reports success as a boolean and never raises, ``notify_async`` hands
the work to a small thread pool and returns immediately.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from hostel_engine.config.settings import Settings
from hostel_engine.core.logging import get_logger
from hostel_engine.utils.email import EmailConfig, EmailMessage, send_email


class NotificationDispatcher(ABC):
    """Sends a subject and HTML body to one recipient."""

    def __init__(self, max_workers: int = 2):
        self._logger = get_logger(self.__class__.__name__)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    @abstractmethod
    def deliver(self, to: str, subject: str, html_body: str) -> None:
        """Deliver one message, raising on failure."""

    def notify(self, to: str, subject: str, html_body: str) -> bool:
        """
        Deliver a message and report whether it went out.

        Failures are logged at WARNING and never propagate.
        """
        try:
            self.deliver(to, subject, html_body)
            return True
        except Exception as e:
            self._logger.warning(
                f"Notification to {to} failed: {e}",
                extra={"recipient": to, "subject": subject},
            )
            return False

    def notify_async(self, to: str, subject: str, html_body: str) -> Future:
        """Queue a message on the dispatcher's thread pool."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="notify",
            )
        return self._executor.submit(self.notify, to, subject, html_body)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None


class SMTPNotificationDispatcher(NotificationDispatcher):
    """Email delivery over SMTP; logs instead of sending when SMTP is unconfigured."""

    def __init__(self, config: EmailConfig, max_workers: int = 2):
        super().__init__(max_workers=max_workers)
        self.config = config

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPNotificationDispatcher":
        return cls(EmailConfig.from_settings(settings), max_workers=settings.NOTIFICATION_WORKERS)

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        message = EmailMessage(subject=subject, to=[to], body_html=html_body)
        if not self.config.is_configured:
            self._logger.info(
                f"SMTP not configured, skipping email: {subject}",
                extra={"recipient": to},
            )
            return
        send_email(message, self.config)


class NullNotificationDispatcher(NotificationDispatcher):
    """Drops every message."""

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        self._logger.debug(f"Dropping notification: {subject}", extra={"recipient": to})
