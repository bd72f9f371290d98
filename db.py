from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import Config


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    """Configure SQLite connections for the migration.

    Foreign keys are enforced so a detail/junction row pointing at a missing
    company fails loudly instead of being stored.
    """
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
        # Wait for locks instead of failing immediately.
        cursor.execute(f"PRAGMA busy_timeout={Config().SQLITE_BUSY_TIMEOUT_MS}")
        # Better concurrency (readers not blocked by writers).
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
    finally:
        cursor.close()


def make_engine(url: str) -> Engine:
    """Create an engine; SQLite URLs get the connection pragmas above."""
    if url.startswith("sqlite"):
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            pool_pre_ping=True,
        )
        event.listen(eng, "connect", _set_sqlite_pragmas)
        return eng
    return create_engine(url, pool_pre_ping=True)


def sqlite_url(db_path: str) -> str:
    return f"sqlite:///{db_path}"


SQLALCHEMY_DATABASE_URL = Config().DATABASE_URL

engine = make_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
