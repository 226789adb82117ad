"""
Base service class providing the plumbing shared by all engine services.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_engine.config.settings import Settings
from hostel_engine.core.exceptions import AuthorizationError, translate_db_error
from hostel_engine.core.logging import get_logger
from hostel_engine.db.capabilities import SchemaCapabilities, SchemaCapabilityCache
from hostel_engine.db.session import Database
from hostel_engine.db.transaction_manager import TransactionManager
from hostel_engine.schemas.registration import CallerContext
from hostel_engine.utils.date_utils import now_utc


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger, settings and database
    - Schema capabilities from a shared TTL cache
    - One-transaction units of work with database error translation
    - Caller authorization against the hostel scope
    """

    def __init__(
        self,
        database: Database,
        settings: Settings,
        capability_cache: Optional[SchemaCapabilityCache] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        """
        Initialize base service.

        Args:
            database: Database owning the engine and session factory
            settings: Engine settings
            capability_cache: Shared schema capability cache
            clock: Returns the current UTC time (injectable for tests)
        """
        self.database = database
        self.settings = settings
        self.capability_cache = capability_cache or SchemaCapabilityCache(
            settings.SCHEMA_CAPABILITY_TTL_SECONDS
        )
        self.clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def capabilities(self) -> SchemaCapabilities:
        return self.capability_cache.get(self.database)

    @contextmanager
    def unit_of_work(
        self,
        operation: str,
        isolation_level: Optional[str] = None,
    ) -> Iterator[Session]:
        """
        Run the block in one transaction on a fresh session.

        Commits on success and rolls back on any error. SQLAlchemy errors
        are translated into the engine's taxonomy; engine exceptions
        propagate unchanged.
        """
        session = self.database.new_session()
        try:
            with TransactionManager(session).start(isolation_level=isolation_level):
                yield session
        except SQLAlchemyError as exc:
            self._logger.error(
                f"Database error during {operation}: {exc}",
                extra={"operation": operation, "exception_type": type(exc).__name__},
            )
            raise translate_db_error(exc) from exc
        finally:
            session.close()

    def authorize(self, caller: CallerContext, hostel_id: Any) -> None:
        """Check that the caller may act on ``hostel_id``."""
        if caller.role not in self.settings.REGISTRATION_ALLOWED_ROLES:
            raise AuthorizationError(f"Role '{caller.role}' may not perform this operation")
        if caller.is_super_admin:
            return
        if caller.hostel_scope is None or str(caller.hostel_scope) != str(hostel_id):
            raise AuthorizationError("You can only manage students of your own hostel")
