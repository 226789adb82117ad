"""Database initialization utilities."""

import hostel_engine.models  # noqa: F401  registers every table
from hostel_engine.core.logging import get_logger
from hostel_engine.db.session import Database
from hostel_engine.models.base import Base

logger = get_logger(__name__)


def init_db(database: Database) -> None:
    """
    Create every canonical table that does not exist yet.

    Suitable for development and tests; deployed databases are migrated
    out of band and probed at runtime.
    """
    try:
        Base.metadata.create_all(bind=database.engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(database: Database) -> None:
    """
    Drop all canonical tables.

    WARNING: This will delete all data!
    """
    try:
        Base.metadata.drop_all(bind=database.engine)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Error dropping database: {e}")
        raise
