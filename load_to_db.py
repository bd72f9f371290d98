"""Load provider company-profile JSON into the `company_raw` staging table.

Input: a file or directory of `.json` files (one profile object, or a list of
profile objects, per file) and/or `.jsonl` files (one profile per line).

Each profile becomes one `company_raw` row and receives its `company_id`.
Nested values (arrays, objects) are stored as JSON text so the migration can
parse them later; scalars are stored as text. Keys that are not staging
columns are ignored and counted.

Usage:
    python load_to_db.py raw_data/companies
    python load_to_db.py profiles.jsonl --db data/company.db
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections import Counter
from collections.abc import Iterable, Iterator
from pathlib import Path

from sqlalchemy.orm import Session as SASession
from sqlalchemy.orm import sessionmaker

from config import Config
from db import make_engine, sqlite_url
from logging_utils import get_logger
from models.company_raw import RAW_COLUMNS, CompanyRaw
from utils.bulk_insert import insert_bulk
from utils.timing import timed

logger = get_logger(__name__)

RAW_DATA_DIR = os.path.join(os.path.dirname(__file__), "raw_data", "companies")


def discover_profile_files(path: Path | str) -> list[Path]:
    """Return `.json` / `.jsonl` files under `path`, sorted for determinism."""
    p = Path(path)
    if p.is_file():
        return [p]
    if not p.is_dir():
        raise FileNotFoundError(f"No such file or directory: {p}")
    return sorted(
        f for f in p.rglob("*") if f.is_file() and f.suffix.lower() in {".json", ".jsonl"}
    )


def iter_profiles(file_path: Path, stats: Counter) -> Iterator[dict]:
    """Yield profile dicts from one file; unreadable entries are logged and counted."""
    if file_path.suffix.lower() == ".jsonl":
        with open(file_path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except (ValueError, RecursionError) as e:
                    logger.warning("Invalid JSON in %s line %s: %s", file_path, lineno, e)
                    stats["invalid_json"] += 1
                    continue
                if isinstance(obj, dict):
                    yield obj
                else:
                    stats["non_object_profiles"] += 1
        return

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (ValueError, RecursionError) as e:
        logger.warning("Invalid JSON in %s: %s", file_path, e)
        stats["invalid_json"] += 1
        return

    items = data if isinstance(data, list) else [data]
    for obj in items:
        if isinstance(obj, dict):
            yield obj
        else:
            stats["non_object_profiles"] += 1


def _column_value(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def profile_to_row(profile: dict) -> dict:
    """Map a provider profile dict onto `company_raw` columns."""
    return {col: _column_value(profile.get(col)) for col in RAW_COLUMNS}


@timed("load raw companies", logger_obj=logger)
def load_profiles(session: SASession, profiles: Iterable[dict], *, batch_size: int = 500) -> int:
    """Insert profiles into `company_raw`, committing per batch. Returns rows inserted."""
    total = 0
    pending: list[dict] = []
    for profile in profiles:
        pending.append(profile_to_row(profile))
        if len(pending) >= batch_size:
            total += insert_bulk(session, CompanyRaw, pending)
            session.commit()
            pending = []
    if pending:
        total += insert_bulk(session, CompanyRaw, pending)
        session.commit()
    return total


def load_path(session: SASession, path: Path | str, *, batch_size: int = 500) -> tuple[int, Counter]:
    """Load every profile file under `path`. Returns (rows inserted, stats)."""
    stats: Counter = Counter()
    files = discover_profile_files(path)
    logger.info("Loading company profiles from %s file(s) under %s", len(files), path)

    def _all_profiles():
        for file_path in files:
            for profile in iter_profiles(file_path, stats):
                stats["profiles"] += 1
                for key in profile:
                    if key not in RAW_COLUMNS:
                        stats["ignored_keys"] += 1
                yield profile

    inserted = load_profiles(session, _all_profiles(), batch_size=batch_size)
    logger.info("Loaded %s company_raw row(s); stats=%s", inserted, dict(stats))
    return inserted, stats


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Load provider company profiles into company_raw")
    p.add_argument(
        "path",
        nargs="?",
        default=RAW_DATA_DIR,
        help="File or directory of .json/.jsonl profiles (default: raw_data/companies)",
    )
    p.add_argument("--db", default=None, help="Path to SQLite DB (default: DATABASE_URL or data/company.db)")
    p.add_argument("--batch-size", type=int, default=Config().BATCH_SIZE, dest="batch_size")
    args = p.parse_args(argv)

    engine = make_engine(sqlite_url(args.db) if args.db else Config().DATABASE_URL)
    SessionLocal = sessionmaker(bind=engine, future=True)
    try:
        with SessionLocal() as session:
            inserted, _stats = load_path(session, args.path, batch_size=max(1, args.batch_size))
        print(f"Loaded {inserted} company profile(s).")
        return 0
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 2
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
