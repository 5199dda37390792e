#!/usr/bin/env python3
"""
Database initialization script that runs migrations for the record store.
This runs automatically when the API container starts up.
"""

import sys
import os
import time
import subprocess

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine, text  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from core.dependencies import get_settings, init_settings  # noqa: E402


def wait_for_db(max_attempts=30, delay=2):
    """Wait for database to be ready."""
    settings = get_settings()

    for attempt in range(max_attempts):
        try:
            engine = create_engine(settings.DATABASE_URL)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            print(f"✅ Database ready after {attempt + 1} attempts")
            engine.dispose()
            return True
        except OperationalError:
            print(f"⏳ Database not ready, attempt {attempt + 1}/{max_attempts}...")
            time.sleep(delay)

    print(f"❌ Database not ready after {max_attempts} attempts")
    return False


def run_migrations():
    """Run Alembic migrations."""
    print("🔄 Running database migrations...")
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
    )
    if result.returncode == 0:
        print("✅ Migrations completed successfully")
        return True
    print(f"❌ Migration failed: {result.stderr}")
    return False


def init_database():
    """Wait for the database, then bring the schema up to date."""
    print("🚀 Initializing database...")

    init_settings()

    if not wait_for_db():
        print("❌ Database initialization failed - database not ready")
        sys.exit(1)

    if not run_migrations():
        print("❌ Database initialization failed - migration error")
        sys.exit(1)

    print("🎉 Database initialization completed successfully!")


if __name__ == "__main__":
    init_database()
