"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults (StaticPool for in-memory SQLite)
- Table definitions for habits, streak ledgers and groups
"""
import logging
import os
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, JSON, Text, Index, PrimaryKeyConstraint, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func

from habitstreak.core.config import settings

logger = logging.getLogger("habitstreak")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return os.getenv("DATABASE_URL") or settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        # A single shared connection keeps ":memory:" databases alive across sessions
        _engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


def dispose_engine() -> None:
    """Drop the engine so the next call re-initializes it. Used by tests."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    metadata.create_all(bind=get_engine())


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    metadata.drop_all(bind=get_engine())


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


users = Table(
    'users',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('username', String(100), nullable=False, unique=True),
    Column('display_name', Text, nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

habits = Table(
    'habits',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('name', Text, nullable=False),
    Column('schedule', JSON, nullable=False),
    # Day identifiers (YYYY-MM-DD) in the streak timezone
    Column('completions', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_habits_user_created', 'user_id', 'created_at'),
)

streak_ledgers = Table(
    'streak_ledgers',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('streak_count', Integer, nullable=False, default=0),
    Column('last_completed_day', String(10), nullable=True),
    Column('history', JSON, nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
)

groups = Table(
    'groups',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('name', Text, nullable=False),
    Column('creator_id', String(100), nullable=False),
    Column('tracking_type', String(20), nullable=False, default='shared'),
    Column('duration', Integer, nullable=False, default=0),
    Column('avatar', String(32), nullable=False, default=''),
    Column('description', Text, nullable=True),
    Column('is_active', Boolean, nullable=False, default=True, index=True),
    Column('group_streak', Integer, nullable=False, default=0),
    Column('last_group_completed_day', String(10), nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
)

group_members = Table(
    'group_members',
    metadata,
    Column('group_id', String(100), nullable=False),
    Column('user_id', String(100), nullable=False, index=True),
    Column('position', Integer, nullable=False),
    PrimaryKeyConstraint('group_id', 'user_id'),
)

group_habit_links = Table(
    'group_habit_links',
    metadata,
    Column('group_id', String(100), nullable=False),
    Column('user_id', String(100), nullable=False),
    Column('habit_id', String(100), nullable=False, index=True),
    PrimaryKeyConstraint('group_id', 'habit_id'),
)
