"""
Supabase PostgreSQL connection.

Supabase exposes a plain Postgres endpoint, so we talk to it with SQLAlchemy
and parameterised SQL. Row level security is bypassed by connecting as the
database owner; authorisation happens in the API layer.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from placeprep.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# pool_pre_ping: Supabase's pooler drops idle connections
engine = create_engine(
    settings.postgres_url,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
    echo=settings.debug  # Log SQL queries in debug mode
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.
    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM users"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def test_postgres_connection() -> bool:
    """
    Test if PostgreSQL is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except Exception as e:
        logger.error("PostgreSQL connection failed: %s", e)
        return False


def execute_raw_sql(sql: str, params: dict = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    Used for reads; writes go through get_db_session().
    """
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        columns = result.keys()
        return [dict(zip(columns, row)) for row in result.fetchall()]


def fetch_one(sql: str, params: dict = None) -> Optional[dict]:
    """Execute SQL and return the first row as a dict (or None)."""
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        row = result.mappings().first()
        return dict(row) if row else None
