#!/usr/bin/env python3
"""
Connection Test Script

Checks the live Supabase database and the Gemini API.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from placeprep.core.config import get_settings
from placeprep.db.postgres import test_postgres_connection, execute_raw_sql
from placeprep.services.gemini_client import get_gemini_client

BANK_TABLES = ("aptitude_questions", "technical_questions", "interview_questions")


def main() -> int:
    settings = get_settings()
    failures = 0
    print("=" * 50)
    print("PLACEPREP - CONNECTION TEST")
    print("=" * 50)

    print("\n[1] Testing Supabase Postgres...")
    if settings.database_url:
        print("    URL: DATABASE_URL (from environment)")
    else:
        print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    if test_postgres_connection():
        print("    OK: CONNECTED")
        for table in BANK_TABLES:
            rows = execute_raw_sql(f"SELECT COUNT(*) AS n FROM {table} WHERE is_active = true")
            print(f"    {table}: {rows[0]['n']} active questions")
    else:
        print("    FAILED")
        failures += 1

    print("\n[2] Testing Gemini API...")
    if settings.gemini_configured:
        print(f"    Base URL: {settings.gemini_base_url}")
        print(f"    Model: {settings.gemini_model}")
        if get_gemini_client().test_connection():
            print("    OK: CONNECTED")
        else:
            print("    FAILED")
            failures += 1
    else:
        print("    SKIPPED: GEMINI_API_KEY not configured")

    print("\n" + "=" * 50)
    print("Connection test complete!" if not failures else f"{failures} check(s) failed")
    print("=" * 50)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
