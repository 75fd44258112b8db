#!/usr/bin/env python3
"""
Create the storefront tables and optionally a platform admin

The schema lives in backend/storefront/db/schema.sql and is idempotent
(CREATE ... IF NOT EXISTS), so the script can be re-run safely.

ADMIN accounts cannot be created through signup; use --admin-email to
bootstrap the first one.

Usage:
    export DATABASE_URL="postgresql://..."
    python3 backend/scripts/migrations/init_schema.py [--admin-email a@b.com --admin-password ...]
"""
import argparse
import os
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from storefront.core.auth import PasswordHasher

load_dotenv()

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "storefront" / "db" / "schema.sql"


def apply_schema(conn) -> None:
    print(f"📄 Applying {SCHEMA_PATH.name}...")
    with conn.cursor() as cursor:
        cursor.execute(SCHEMA_PATH.read_text())
    conn.commit()
    print("✅ Schema ready")


def create_admin(conn, email: str, password: str, username: str, rounds: int) -> None:
    password_hash = PasswordHasher(rounds).hash(password)
    with conn.cursor() as cursor:
        cursor.execute(
            """
            INSERT INTO users (email, username, password, role)
            VALUES (%s, %s, %s, 'ADMIN')
            ON CONFLICT ((LOWER(email))) DO UPDATE SET role = 'ADMIN', updated_at = NOW()
            RETURNING id
            """,
            (email.lower(), username, password_hash),
        )
        admin_id = cursor.fetchone()[0]
    conn.commit()
    print(f"✅ Admin {email} ready (id {admin_id})")


def main():
    parser = argparse.ArgumentParser(description="Create the storefront schema")
    parser.add_argument("--admin-email", help="Create or promote this user to ADMIN")
    parser.add_argument("--admin-password", help="Password for a newly created admin")
    parser.add_argument("--admin-username", default="admin")
    args = parser.parse_args()

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("❌ DATABASE_URL is not set")
        sys.exit(1)

    if args.admin_email and not args.admin_password:
        print("❌ --admin-password is required with --admin-email")
        sys.exit(1)

    conn = psycopg2.connect(database_url)
    try:
        apply_schema(conn)
        if args.admin_email:
            rounds = int(os.getenv("BCRYPT_ROUNDS", "10"))
            create_admin(conn, args.admin_email, args.admin_password, args.admin_username, rounds)
    except psycopg2.Error as e:
        conn.rollback()
        print(f"❌ Database error: {e}")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
