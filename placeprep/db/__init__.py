"""
Database module - Supabase PostgreSQL connection.
"""
from placeprep.db.postgres import get_db_session, execute_raw_sql, fetch_one, test_postgres_connection

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "fetch_one",
    "test_postgres_connection"
]
