"""Database engine and session management."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from hostel_engine.config.settings import Settings
from hostel_engine.core.logging import get_logger

logger = get_logger(__name__)


class Database:
    """
    Owns one SQLAlchemy engine and its session factory.

    A ``Database`` is created once per process (API worker, Celery worker,
    test) and handed to every service that needs persistence.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create the engine from configuration."""
        url = settings.get_database_url()
        engine_kwargs: Dict[str, Any] = {
            "pool_pre_ping": True,
            "echo": settings.DB_ECHO,
        }
        connect_args: Dict[str, Any] = dict(settings.DB_CONNECT_ARGS)

        if url.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_POOL_OVERFLOW,
                pool_recycle=settings.DB_POOL_RECYCLE,
            )
            connect_args.setdefault("connect_timeout", settings.DB_CONNECT_TIMEOUT_SECONDS)
            connect_args.setdefault(
                "options", f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
            )

        if connect_args:
            engine_kwargs["connect_args"] = connect_args

        logger.info(
            "Creating database engine",
            extra={"dialect": url.split(":", 1)[0], "pool_size": settings.DB_POOL_SIZE},
        )
        return cls(create_engine(url, **engine_kwargs))

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "Database":
        return cls(create_engine(url, **engine_kwargs))

    def new_session(self) -> Session:
        """Return a new, unmanaged session. The caller closes it."""
        return self.SessionLocal()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Yield a session that commits on success and rolls back on error.

        Usage:
            with database.session() as session:
                session.add(obj)
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release every pooled connection."""
        self.engine.dispose()
        logger.info("Database engine disposed")

