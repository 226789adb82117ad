"""
Transaction manager for service layer units of work.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from hostel_engine.core.logging import get_logger
from hostel_engine.utils.date_utils import now_utc


@dataclass
class TransactionContext:
    """Context information for a transaction."""

    transaction_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=now_utc)
    committed: bool = False
    rolled_back: bool = False
    completed_at: Optional[datetime] = None
    error: Optional[Exception] = None

    @property
    def duration_ms(self) -> Optional[float]:
        """Get transaction duration in milliseconds."""
        if self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds() * 1000
        return None


class TransactionManager:
    """
    Runs one unit of work in one database transaction.

    Commits when the block exits normally and rolls back on any
    exception, which is re-raised unchanged.
    """

    def __init__(self, db_session: Session):
        self.db = db_session
        self._logger = get_logger(self.__class__.__name__)

    @contextmanager
    def start(self, isolation_level: Optional[str] = None) -> Iterator[TransactionContext]:
        """
        Start a new transaction.

        Args:
            isolation_level: Optional isolation level, e.g. ``SERIALIZABLE``.
                Must be requested before the session touched the database.

        Yields:
            TransactionContext instance
        """
        ctx = TransactionContext()

        if isolation_level:
            self.db.connection(execution_options={"isolation_level": isolation_level})

        self._logger.debug(
            f"Transaction started: {ctx.transaction_id}",
            extra={"transaction_id": ctx.transaction_id, "isolation_level": isolation_level},
        )

        try:
            yield ctx
            self.db.commit()
            ctx.committed = True
        except Exception as exc:
            ctx.error = exc
            self.db.rollback()
            ctx.rolled_back = True
            self._logger.warning(
                f"Transaction rolled back: {ctx.transaction_id}",
                extra={
                    "transaction_id": ctx.transaction_id,
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            ctx.completed_at = now_utc()
            self._logger.debug(
                f"Transaction completed: {ctx.transaction_id} "
                f"({'committed' if ctx.committed else 'rolled back'}) "
                f"in {ctx.duration_ms:.2f}ms",
                extra={
                    "transaction_id": ctx.transaction_id,
                    "committed": ctx.committed,
                    "duration_ms": ctx.duration_ms,
                },
            )
