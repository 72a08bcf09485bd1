#!/usr/bin/env python3
"""
Create (or promote) an admin account.

Usage: python scripts/create_admin.py admin@college.edu "Placement Office"
The password is prompted for.
"""
import argparse
import getpass
import sys
sys.path.insert(0, '.')

from sqlalchemy import text

from placeprep.core.auth import hash_password
from placeprep.db.postgres import get_db_session


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a PlacePrep admin account")
    parser.add_argument("email")
    parser.add_argument("full_name")
    args = parser.parse_args()

    password = getpass.getpass("Password (min 8 chars): ")
    if len(password) < 8:
        print("Password must be at least 8 characters")
        return 1
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match")
        return 1

    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO users (email, password_hash, full_name, role)
                VALUES (:email, :password_hash, :full_name, 'ADMIN')
                ON CONFLICT (email) DO UPDATE
                SET role = 'ADMIN', password_hash = EXCLUDED.password_hash, is_active = true
                RETURNING id
            """),
            {"email": args.email.lower(), "password_hash": hash_password(password), "full_name": args.full_name}
        )
        admin_id = result.fetchone()[0]

    print(f"Admin ready: {args.email} ({admin_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
