"""Chunked bulk INSERT helpers for SQLite.

SQLite enforces a limit on the number of bound parameters per statement
(typically 999 unless SQLite was compiled with a higher value), so multi-row
statements are split into chunks sized by the number of columns per row.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from sqlalchemy import insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session as SASession

SQLITE_MAX_VARS_DEFAULT = 999


def rows_per_chunk(params_per_row: int) -> int:
    # Keep some margin for any additional parameters SQLAlchemy might add.
    return max(1, (SQLITE_MAX_VARS_DEFAULT // max(1, params_per_row)) - 5)


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def insert_ignore_bulk(session: SASession, model, rows: list[dict]) -> int:
    """Bulk insert rows using SQLite INSERT OR IGNORE.

    Rows that would violate a uniqueness constraint are skipped silently.
    Returns best-effort count of inserted rows.
    """
    if not rows:
        return 0

    inserted = 0
    for chunk in chunked(rows, rows_per_chunk(len(rows[0]))):
        stmt = sqlite_insert(model).values(list(chunk)).prefix_with("OR IGNORE")
        res = session.execute(stmt)
        # Ensure SQLite has actually executed the INSERT so rowcount is accurate.
        session.flush()
        inserted += int(getattr(res, "rowcount", 0) or 0)

    return inserted


def insert_bulk(session: SASession, model, rows: list[dict]) -> int:
    """Plain bulk insert (no conflict handling). Returns the number of rows sent."""
    if not rows:
        return 0
    for chunk in chunked(rows, rows_per_chunk(len(rows[0]))):
        session.execute(insert(model).values(list(chunk)))
    session.flush()
    return len(rows)
