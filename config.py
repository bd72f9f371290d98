import os

import settings


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v.strip())
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def default_database_url() -> str:
    """Return the SQLAlchemy URL for the migration database.

    `DATABASE_URL` wins; otherwise the SQLite file under ./data is used.
    """

    url = os.getenv("DATABASE_URL")
    if url and url.strip():
        return url.strip()
    return f"sqlite:///{settings.DB_PATH}"


class Config:
    """Runtime configuration loaded from environment variables.

    Attributes are resolved when the class is instantiated so tests can
    monkeypatch the environment before building a Config.
    """

    def __init__(self) -> None:
        self.DATABASE_URL: str = default_database_url()
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", settings.LOG_LEVEL).upper()
        self.BATCH_SIZE: int = max(
            1, _env_int("MIGRATION_BATCH_SIZE", int(settings.BATCH_SIZE))
        )
        self.SQLITE_BUSY_TIMEOUT_MS: int = _env_int("SQLITE_BUSY_TIMEOUT_MS", 5000)
        self.ASSUME_YES: bool = _env_bool("MIGRATION_ASSUME_YES", False)
