"""Shared helpers for tests.

Intended usage:
- spin up a temporary SQLite database
- create all SQLAlchemy tables
- insert provider-shaped company profiles into `company_raw`

These utilities keep tests small and consistent.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db import make_engine, sqlite_url
from load_to_db import profile_to_row
from models import Base
from models.company_raw import CompanyRaw

__all__ = [
    "make_sqlite_engine",
    "create_empty_sqlite_db",
    "add_raw_companies",
    "count_rows",
]


def make_sqlite_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine with the app's connection pragmas (foreign keys on)."""

    return make_engine(sqlite_url(str(db_path)))


def create_empty_sqlite_db(db_path: Path) -> tuple[Session, Engine]:
    """Create an empty SQLite DB file and initialize all models.

    Returns (session, engine).
    """

    engine = make_sqlite_engine(db_path)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal(), engine


def add_raw_companies(session: Session, profiles: Iterable[dict[str, Any]]) -> list[int]:
    """Insert provider-shaped profiles into company_raw and return their ids.

    Python lists/dicts are serialized to JSON text the same way the loader
    does it; pass strings to store raw text verbatim.
    """

    objs = [CompanyRaw(**profile_to_row(p)) for p in profiles]
    session.add_all(objs)
    session.commit()
    return [o.company_id for o in objs]


def count_rows(session: Session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()
