"""Create (or drop and recreate) the company schema in a SQLite DB.

Without `--reset` this only creates missing tables, so it is safe to run on a
database that already holds staging or migrated data. With `--reset` every
table is dropped first.

Why: SQLite doesn't auto-migrate when models change, and the migration
relies on the UNIQUE constraints declared on the models.

Usage:
    python utils/recreate_sqlite_db.py                  # create missing tables
    python utils/recreate_sqlite_db.py --reset          # with confirmation prompt
    python utils/recreate_sqlite_db.py --reset --yes    # skip confirmation
    python utils/recreate_sqlite_db.py --reset --backup # create backup before reset
"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from datetime import datetime

# Allow running as: `python utils/recreate_sqlite_db.py`
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import settings
from db import make_engine, sqlite_url
from models import Base

DB_PATH = settings.DB_PATH


def bootstrap_schema(engine: Engine) -> list[str]:
    """Create every model table that does not exist yet. Returns created tables."""
    before = set(inspect(engine).get_table_names())
    Base.metadata.create_all(engine)
    after = set(inspect(engine).get_table_names())
    return sorted(after - before)


def reset_schema(engine: Engine) -> None:
    """Drop and recreate every model table."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)


def _confirm_or_exit(db_path: str, assume_yes: bool) -> None:
    """Prompt user for confirmation before proceeding with destructive operation."""
    if assume_yes:
        return

    if os.path.exists(db_path):
        size_mb = os.path.getsize(db_path) / (1024 * 1024)
        print(f"\n⚠️  WARNING: Database exists ({size_mb:.2f} MB)")

    resp = input(
        f"\nThis will DROP and RECREATE ALL TABLES in:\n  {db_path}\n\n"
        "⚠️  ALL DATA WILL BE LOST!\n\n"
        "Continue? [y/N]: "
    ).strip()
    if resp.lower() not in {"y", "yes"}:
        print("Aborted.")
        raise SystemExit(1)


def _create_backup(db_path: str) -> str | None:
    """Create a timestamped backup of the database."""
    if not os.path.exists(db_path):
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = f"{db_path}.backup_{timestamp}"

    try:
        shutil.copy2(db_path, backup_path)
    except OSError as e:
        print(f"⚠️  Failed to create backup: {e}")
        return None
    size_mb = os.path.getsize(backup_path) / (1024 * 1024)
    print(f"✓ Backup created: {backup_path} ({size_mb:.2f} MB)")
    return backup_path


def _show_tables(engine: Engine, title: str) -> None:
    tables = inspect(engine).get_table_names()
    if not tables:
        print(f"\n{title}: none")
        return
    print(f"\n{title} ({len(tables)}):")
    for table in sorted(tables):
        print(f"  - {table}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Create the company schema (or reset it with --reset)."
    )
    parser.add_argument("--db", default=DB_PATH, help="Path to SQLite DB (default: data/company.db)")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all tables before recreating them.",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Do not prompt for confirmation.",
    )
    parser.add_argument(
        "--backup",
        "-b",
        action="store_true",
        help="Create a timestamped backup before resetting.",
    )
    args = parser.parse_args(argv)

    db_path = args.db
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    engine = make_engine(sqlite_url(db_path))
    try:
        _show_tables(engine, "Existing tables")

        if args.reset:
            _confirm_or_exit(db_path, args.yes)
            if args.backup:
                _create_backup(db_path)
            print("\n🔄 Dropping and recreating all tables...")
            reset_schema(engine)
        else:
            created = bootstrap_schema(engine)
            print(f"\n🔨 Created {len(created)} missing table(s).")

        _show_tables(engine, "Tables")
    finally:
        engine.dispose()
    print(f"\nDatabase location: {db_path}")


if __name__ == "__main__":
    main()
