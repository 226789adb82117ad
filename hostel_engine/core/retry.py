"""
Retry helpers for read paths that may hit a dropped connection.
"""

import time
from functools import wraps
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from hostel_engine.core.exceptions import TransientConnectionError, translate_db_error
from hostel_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    backoff_seconds: float = 0.2,
    on_retry: Optional[Callable[[], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    operation: Optional[str] = None,
) -> T:
    """
    Call ``func`` and retry transient connection failures with linear backoff.

    Only ``TransientConnectionError`` (or a SQLAlchemy error that translates
    to one) is retried; every other failure propagates on the first attempt.

    Args:
        func: Zero-argument callable performing the read
        max_attempts: Total number of attempts, including the first
        backoff_seconds: Delay multiplied by the attempt number
        on_retry: Called before each new attempt (e.g. session rollback)
        sleep: Sleep function (injectable for tests)
        operation: Name used in log records

    Returns:
        Whatever ``func`` returns
    """
    name = operation or getattr(func, "__name__", "operation")
    attempts = 0
    while True:
        try:
            return func()
        except SQLAlchemyError as exc:
            translated = translate_db_error(exc)
            if not isinstance(translated, TransientConnectionError):
                raise translated from exc
            error = translated
        except TransientConnectionError as exc:
            error = exc

        attempts += 1
        if attempts >= max_attempts:
            logger.error(
                f"{name} failed after {attempts} attempts",
                extra={"operation": name, "attempts": attempts},
            )
            raise error

        logger.warning(
            f"Transient failure in {name} (attempt {attempts}/{max_attempts})",
            extra={"operation": name, "attempt": attempts},
        )
        if on_retry is not None:
            on_retry()
        sleep(backoff_seconds * attempts)


def retry_transient(
    max_attempts: int = 3,
    backoff_seconds: float = 0.2,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`call_with_retry`."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return call_with_retry(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                backoff_seconds=backoff_seconds,
                operation=func.__name__,
            )

        return wrapper

    return decorator
