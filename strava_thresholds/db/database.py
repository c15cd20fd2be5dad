"""Database connection and session management."""

import logging
from typing import Generator, List, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import config
from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """Database connection manager."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or config.DATABASE_URL

        # Special handling for SQLite to avoid threading issues
        if "sqlite" in self.database_url:
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def reset(self):
        """Drop and recreate every table, discarding profiles and history."""
        logger.warning(f"Resetting threshold database at {self.database_url}")
        self.drop_tables()
        self.create_tables()

    def table_names(self) -> List[str]:
        """Tables currently present in the database."""
        return sorted(inspect(self.engine).get_table_names())

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        The session is one unit of work: committed when the block exits
        normally, rolled back when it raises.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            logger.error("Database transaction failed, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close database connection."""
        self.engine.dispose()


# Global database instance
_db: Optional[Database] = None


def get_db() -> Database:
    """Get or create the global database instance.

    Missing tables are created on first use; existing ones are left alone.
    """
    global _db
    if _db is None:
        _db = Database()
        _db.create_tables()
    return _db


def close_db():
    """Close the global database connection."""
    global _db
    if _db is not None:
        _db.close()
        _db = None
