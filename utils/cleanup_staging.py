"""Drop the staging columns that the migration has normalized away.

Run after `jobs/migrate_companies.py` has completed every stage. It removes
the nested/categorical columns from `company_raw`; the normalized tables hold
that data now. This cannot be undone, so the script refuses to run unless the
run ledger (`migration_runs`) shows a successful run of every stage.

SQLite supports `ALTER TABLE ... DROP COLUMN` since 3.35. Columns that are
already gone are skipped, so the script can be re-run.

Usage:
    python utils/cleanup_staging.py          # with confirmation prompt
    python utils/cleanup_staging.py --yes
"""

from __future__ import annotations

import argparse
import os
import sqlite3
import sys

# Allow running as: `python utils/cleanup_staging.py`
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import settings
from jobs.migrate_companies import STAGES

STAGING_TABLE = "company_raw"

# Columns whose content lives in normalized tables after the migration.
REDUNDANT_COLUMNS: tuple[str, ...] = (
    "industry",
    "hq",
    "company_type",
    "specialities",
    "locations",
    "similar_companies",
    "affiliated_companies",
    "updates",
    "company_size",
    "exit_data",
    "acquisitions",
    "extra",
    "funding_data",
    "categories",
    "customer_list",
)

REQUIRED_STAGES: tuple[str, ...] = STAGES


class CleanupRefusedError(RuntimeError):
    """Cleanup would drop data that has not been migrated yet."""


def _existing_columns(cur: sqlite3.Cursor, table: str) -> set[str]:
    cur.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cur.fetchall()}


def _table_exists(cur: sqlite3.Cursor, table: str) -> bool:
    cur.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1", (table,)
    )
    return cur.fetchone() is not None


def drop_column_if_present(cur: sqlite3.Cursor, table: str, col: str) -> bool:
    if col not in _existing_columns(cur, table):
        return False
    cur.execute(f"ALTER TABLE {table} DROP COLUMN {col}")
    return True


def missing_stages(cur: sqlite3.Cursor) -> list[str]:
    """Stages with no successful run recorded in `migration_runs`."""
    if not _table_exists(cur, "migration_runs"):
        return list(REQUIRED_STAGES)
    cur.execute("SELECT DISTINCT stage FROM migration_runs WHERE status = 'ok'")
    done = {row[0] for row in cur.fetchall()}
    return [s for s in REQUIRED_STAGES if s not in done]


def cleanup_staging(cur: sqlite3.Cursor, *, force: bool = False) -> list[str]:
    """Drop redundant staging columns. Returns the columns actually dropped.

    Raises:
        CleanupRefusedError: if a stage has not completed (unless `force`).
    """
    if not _table_exists(cur, STAGING_TABLE):
        return []

    if not force:
        pending = missing_stages(cur)
        if pending:
            raise CleanupRefusedError(
                "Migration incomplete; no successful run for stage(s): "
                + ", ".join(pending)
            )

    dropped = []
    for col in REDUNDANT_COLUMNS:
        if drop_column_if_present(cur, STAGING_TABLE, col):
            dropped.append(col)
    return dropped


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Drop normalized columns from company_raw")
    p.add_argument("--db", default=settings.DB_PATH, help="Path to SQLite DB (default: data/company.db)")
    p.add_argument("--yes", "-y", action="store_true", help="Do not prompt for confirmation.")
    p.add_argument(
        "--force",
        action="store_true",
        help="Skip the migration_runs completeness check.",
    )
    args = p.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"Database not found: {args.db}")
        return 2

    if not args.yes:
        resp = input(
            f"\nThis will DROP {len(REDUNDANT_COLUMNS)} column(s) from {STAGING_TABLE} in:\n"
            f"  {args.db}\n\nContinue? [y/N]: "
        ).strip()
        if resp.lower() not in {"y", "yes"}:
            print("Aborted.")
            return 1

    con = sqlite3.connect(args.db)
    try:
        cur = con.cursor()
        try:
            dropped = cleanup_staging(cur, force=args.force)
        except CleanupRefusedError as e:
            print(f"Refusing to clean up: {e}")
            return 2
        con.commit()
        if dropped:
            print(f"Dropped column(s): {', '.join(dropped)}")
        else:
            print("No changes needed; staging columns already dropped.")
        return 0
    finally:
        con.close()


if __name__ == "__main__":
    sys.exit(main())
